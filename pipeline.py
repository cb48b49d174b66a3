"""
Intcode Pipelines
=================
Wires several Intcode machines together:

  - ``QueueInput``: a FIFO input source, the machine-side end of a link
  - ``AmplifierChain``: N machines running the same program, each primed
    with a phase setting; run once in series or round-robin with feedback
  - ``max_thruster_signal``: exhaustive search over phase orderings

Round-robin stepping follows the cooperative model: each machine runs until
it emits one value (or halts), then the next machine gets its turn.
"""

from __future__ import annotations
import itertools
import logging
from collections import deque
from typing import Iterable, Optional, Sequence

from intcode import Intcode, InputExhaustedError

log = logging.getLogger(__name__)


class QueueInput:
    """Input source fed from a queue of pending values."""

    def __init__(self, values: Iterable[int] = ()):
        self.buffer: deque[int] = deque(values)

    def inject(self, *values: int):
        """Append values to the end of the queue."""
        self.buffer.extend(values)

    @property
    def has_data(self) -> bool:
        return len(self.buffer) > 0

    def __len__(self) -> int:
        return len(self.buffer)

    def __call__(self) -> int:
        if not self.buffer:
            raise InputExhaustedError("Input queue is empty")
        return self.buffer.popleft()


class AmplifierChain:
    """
    A row of amplifiers, one Intcode machine per phase setting.

    Every machine gets a private copy of *program*.  Its first input is its
    phase setting; after that it reads the signal produced by the previous
    amplifier (the last one feeds the first when run with feedback).
    """

    def __init__(self, program: Sequence[int], phases: Sequence[int]):
        if not phases:
            raise ValueError("At least one phase setting is required")
        self.phases = tuple(phases)
        self.machines = [Intcode(program) for _ in self.phases]
        self.inputs = [QueueInput([phase]) for phase in self.phases]
        self.rounds: int = 0

    def __len__(self) -> int:
        return len(self.machines)

    @property
    def all_halted(self) -> bool:
        """True if every amplifier has halted."""
        return all(m.halted for m in self.machines)

    def run_serial(self, signal: int = 0) -> int:
        """Run each amplifier once, in order, passing the signal along."""
        for machine, source in zip(self.machines, self.inputs):
            source.inject(signal)
            value = machine.step(source)
            if value is None:
                raise InputExhaustedError(
                    "Amplifier halted without producing a signal")
            signal = value
        self.rounds += 1
        return signal

    def run_feedback(self, signal: int = 0) -> int:
        """Drive the amplifiers round-robin until all have halted.

        Returns the last signal emitted by the final amplifier.
        """
        n = len(self.machines)
        self.inputs[0].inject(signal)
        last: Optional[int] = None
        while not self.all_halted:
            for i, machine in enumerate(self.machines):
                if machine.halted:
                    continue
                value = machine.step(self.inputs[i])
                if value is None:
                    log.info("Amplifier %d halted after %d rounds", i, self.rounds)
                    continue
                self.inputs[(i + 1) % n].inject(value)
                if i == n - 1:
                    last = value
            self.rounds += 1
        if last is None:
            raise InputExhaustedError("Final amplifier never produced a signal")
        return last


def max_thruster_signal(program: Sequence[int], phases: Iterable[int],
                        feedback: bool = False) -> tuple[int, tuple[int, ...]]:
    """Try every ordering of *phases*; return (best signal, its ordering)."""
    best: Optional[tuple[int, tuple[int, ...]]] = None
    for order in itertools.permutations(phases):
        chain = AmplifierChain(program, order)
        signal = chain.run_feedback() if feedback else chain.run_serial()
        log.debug("phases=%s signal=%d", order, signal)
        if best is None or signal > best[0]:
            best = (signal, order)
    if best is None:
        raise ValueError("No phase settings given")
    return best
