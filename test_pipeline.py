"""
Pipeline tests: input queues, amplifier chains, feedback loops.
"""

import unittest

import pytest

from intcode import InputExhaustedError
from pipeline import AmplifierChain, QueueInput, max_thruster_signal

SERIAL_1 = [3, 15, 3, 16, 1002, 16, 10, 16, 1, 16, 15, 15, 4, 15, 99, 0, 0]
SERIAL_2 = [3, 23, 3, 24, 1002, 24, 10, 24, 1002, 23, -1, 23, 101, 5, 23, 23,
            1, 24, 23, 23, 4, 23, 99, 0, 0]
SERIAL_3 = [3, 31, 3, 32, 1002, 32, 10, 32, 1001, 31, -2, 31, 1007, 31, 0, 33,
            1002, 33, 7, 33, 1, 33, 31, 31, 1, 32, 31, 31, 4, 31, 99, 0, 0, 0]

FEEDBACK_1 = [3, 26, 1001, 26, -4, 26, 3, 27, 1002, 27, 2, 27, 1, 27, 26, 27,
              4, 27, 1001, 28, -1, 28, 1005, 28, 6, 99, 0, 0, 5]
FEEDBACK_2 = [3, 52, 1001, 52, -5, 52, 3, 53, 1, 52, 56, 54, 1007, 54, 5, 55,
              1005, 55, 26, 1001, 54, -5, 54, 1105, 1, 12, 1, 53, 54, 53, 1008,
              54, 0, 55, 1001, 55, 1, 55, 2, 53, 55, 53, 4, 53, 1001, 56, -1,
              56, 1005, 56, 6, 99, 0, 0, 0, 0, 10]


class TestQueueInput(unittest.TestCase):
    def test_fifo(self):
        q = QueueInput([1, 2])
        q.inject(3, 4)
        self.assertEqual(len(q), 4)
        self.assertEqual([q(), q(), q(), q()], [1, 2, 3, 4])
        self.assertFalse(q.has_data)

    def test_empty(self):
        with self.assertRaises(InputExhaustedError):
            QueueInput()()


class TestSerialChain(unittest.TestCase):
    def test_examples(self):
        for program, phases, expected in (
            (SERIAL_1, [4, 3, 2, 1, 0], 43210),
            (SERIAL_2, [0, 1, 2, 3, 4], 54321),
            (SERIAL_3, [1, 0, 4, 3, 2], 65210),
        ):
            self.assertEqual(AmplifierChain(program, phases).run_serial(0), expected)

    def test_machines_are_independent(self):
        chain = AmplifierChain(SERIAL_1, [4, 3, 2, 1, 0])
        chain.run_serial()
        mems = [m.memory for m in chain.machines]
        self.assertEqual(len(set(mems)), len(mems))
        self.assertEqual(chain.rounds, 1)

    def test_no_phases(self):
        with self.assertRaises(ValueError):
            AmplifierChain(SERIAL_1, [])

    @pytest.mark.slow
    def test_search(self):
        self.assertEqual(max_thruster_signal(SERIAL_1, range(5)),
                         (43210, (4, 3, 2, 1, 0)))
        self.assertEqual(max_thruster_signal(SERIAL_3, range(5)),
                         (65210, (1, 0, 4, 3, 2)))


class TestFeedbackLoop(unittest.TestCase):
    def test_five_amplifiers(self):
        chain = AmplifierChain(FEEDBACK_1, [9, 8, 7, 6, 5])
        self.assertEqual(chain.run_feedback(0), 139629729)
        self.assertTrue(chain.all_halted)
        self.assertGreater(chain.rounds, 1)

    def test_second_example(self):
        chain = AmplifierChain(FEEDBACK_2, [9, 7, 8, 5, 6])
        self.assertEqual(chain.run_feedback(0), 18216)

    @pytest.mark.slow
    def test_search(self):
        self.assertEqual(max_thruster_signal(FEEDBACK_1, range(5, 10), feedback=True),
                         (139629729, (9, 8, 7, 6, 5)))

    def test_single_amplifier_loops_on_itself(self):
        # Doubles its input three times, feeding back into itself
        program = [3, 20, 3, 21, 1002, 21, 2, 21, 4, 21, 1001, 20, -1, 20,
                   1005, 20, 2, 99, 0, 0, 0, 0]
        chain = AmplifierChain(program, [3])
        self.assertEqual(chain.run_feedback(1), 8)


if __name__ == "__main__":
    unittest.main()
