"""
Interactive device tests: painting robot and arcade cabinet.
"""

import unittest

from intcode import Intcode
from devices import (
    ArcadeCabinet, PaintingRobot, DeviceError, BLACK, WHITE, UP, LEFT, DOWN, RIGHT,
    TILE_BALL, TILE_BLOCK, TILE_PADDLE, TILE_WALL,
)


class TestPaintingRobot(unittest.TestCase):
    def test_feed_sequence(self):
        robot = PaintingRobot()
        # Example walk: paint/turn pairs
        for value in (1, 0, 0, 0, 1, 0, 1, 0, 0, 1, 1, 0, 1, 0):
            robot.feed(value)
        self.assertEqual(robot.painted_count, 6)
        self.assertEqual(robot.position, (0, 1))
        self.assertEqual(robot.direction, LEFT)
        self.assertEqual(robot(), BLACK)
        self.assertEqual(robot.color_at((1, 1)), WHITE)

    def test_turns(self):
        robot = PaintingRobot()
        robot.feed(BLACK)
        robot.feed(1)
        self.assertEqual(robot.direction, RIGHT)
        self.assertEqual(robot.position, (1, 0))
        robot.feed(BLACK)
        robot.feed(1)
        self.assertEqual(robot.direction, DOWN)
        self.assertEqual(robot.position, (1, -1))

    def test_camera_reads_unpainted_as_black(self):
        robot = PaintingRobot(start_color=WHITE)
        self.assertEqual(robot(), WHITE)
        self.assertEqual(robot.color_at((4, 4)), BLACK)
        self.assertEqual(robot.direction, UP)

    def test_bad_values(self):
        robot = PaintingRobot()
        with self.assertRaises(DeviceError):
            robot.feed(2)
        robot.feed(0)
        with self.assertRaises(DeviceError):
            robot.feed(5)
        with self.assertRaises(DeviceError):
            PaintingRobot(start_color=3)

    def test_drive_program(self):
        # Read, paint white, turn left; read, paint black, turn left; halt
        cpu = Intcode([3, 100, 104, 1, 104, 0, 3, 100, 104, 0, 104, 0, 99])
        robot = PaintingRobot()
        self.assertEqual(robot.drive(cpu), 4)
        self.assertTrue(cpu.done)
        self.assertEqual(robot.painted_count, 2)
        self.assertEqual(robot.white_panels(), {(0, 0)})
        self.assertEqual(robot.position, (-1, -1))

    def test_drive_echoes_start_colour(self):
        # Paint whatever the camera reports, then turn right
        cpu = Intcode([3, 100, 4, 100, 104, 1, 99])
        robot = PaintingRobot(start_color=WHITE)
        robot.drive(cpu)
        self.assertEqual(robot.panels, {(0, 0): WHITE})
        self.assertEqual(robot.position, (1, 0))


ARCADE_DEMO = [
    104, 3, 104, 5, 104, 3,     # paddle at (3, 5)
    104, 1, 104, 4, 104, 4,     # ball at (1, 4)
    104, 6, 104, 0, 104, 2,     # block at (6, 0)
    104, 0, 104, 0, 104, 1,     # wall at (0, 0)
    3, 50,                      # read joystick
    104, -1, 104, 0, 4, 50,     # report it as the score
    99,
]


class TestArcadeCabinet(unittest.TestCase):
    def test_tiles_and_score(self):
        cab = ArcadeCabinet()
        for v in (1, 2, 3, 5, 5, 4, -1, 0, 12345, 7, 2, 2):
            cab.feed(v)
        self.assertEqual(cab.score, 12345)
        self.assertEqual(cab.paddle, (1, 2))
        self.assertEqual(cab.ball, (5, 5))
        self.assertEqual(cab.count(TILE_BLOCK), 1)
        self.assertNotIn((-1, 0), cab.screen)

    def test_joystick_follows_ball(self):
        cab = ArcadeCabinet()
        self.assertEqual(cab(), 0)
        cab.paddle = (5, 20)
        cab.ball = (2, 10)
        self.assertEqual(cab(), -1)
        cab.ball = (9, 10)
        self.assertEqual(cab(), 1)
        cab.ball = (5, 19)
        self.assertEqual(cab(), 0)

    def test_unknown_tile(self):
        cab = ArcadeCabinet()
        with self.assertRaises(DeviceError):
            for v in (0, 0, 9):
                cab.feed(v)

    def test_drive_program(self):
        cab = ArcadeCabinet()
        self.assertEqual(cab.drive(Intcode(ARCADE_DEMO)), 15)
        self.assertEqual(cab.count(TILE_BLOCK), 1)
        self.assertEqual(cab.count(TILE_WALL), 1)
        self.assertEqual(cab.screen[(3, 5)], TILE_PADDLE)
        self.assertEqual(cab.screen[(1, 4)], TILE_BALL)
        # Ball is left of the paddle when the joystick is read
        self.assertEqual(cab.score, -1)

    def test_max_outputs(self):
        cab = ArcadeCabinet()
        cpu = Intcode(ARCADE_DEMO)
        self.assertEqual(cab.drive(cpu, max_outputs=6), 6)
        self.assertFalse(cpu.done)
        self.assertEqual(len(cab.screen), 2)

    def test_free_play_patches_cell_zero(self):
        cpu = Intcode([1, 0, 0, 0, 99])
        ArcadeCabinet(free_play=True).attach(cpu)
        self.assertEqual(cpu.mem_read(0), 2)
        cpu = Intcode([1, 0, 0, 0, 99])
        ArcadeCabinet().attach(cpu)
        self.assertEqual(cpu.mem_read(0), 1)

    def test_resumed_drive_keeps_program_writes(self):
        # Free play makes cell 0 a MUL; the program then stores 5 there
        # and reports it as the score after one wall tile.
        program = [1, 30, 30, 31, 1101, 5, 0, 0,
                   104, 1, 104, 1, 104, 1,
                   104, -1, 104, 0, 4, 0, 99] + [0] * 12
        cpu = Intcode(program)
        cab = ArcadeCabinet(free_play=True)
        self.assertEqual(cab.drive(cpu, max_outputs=3), 3)
        self.assertEqual(cpu.mem_read(0), 5)
        cab.drive(cpu)
        self.assertTrue(cpu.done)
        self.assertEqual(cpu.mem_read(0), 5)
        self.assertEqual(cab.score, 5)


if __name__ == "__main__":
    unittest.main()
