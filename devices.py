"""
Intcode Interactive Devices
===========================
Hosts that sit on both ends of one machine: every value the program emits is
fed to the device, and every value the program reads is computed by the
device from what it has seen so far.  Nothing is queued up front.

  - ``PaintingRobot``: hull painting robot (camera in, paint/turn out)
  - ``ArcadeCabinet``: block-breaker cabinet (joystick in, tiles out)

A device is its own input source: ``cpu.step(device)`` calls it once per IN.
"""

from __future__ import annotations
import logging
from typing import Optional

from intcode import Intcode

log = logging.getLogger(__name__)


class DeviceError(Exception):
    """The program sent a value the device cannot interpret."""
    pass


# ---------------------------------------------------------------------------
#  Device base class
# ---------------------------------------------------------------------------

class Device:
    """Abstract interactive peripheral."""

    name = "device"

    def __call__(self) -> int:
        """Produce the next input value for the program."""
        raise NotImplementedError

    def feed(self, value: int):
        """Consume one output value from the program."""
        raise NotImplementedError

    def attach(self, cpu: Intcode):
        """Hook for devices that patch memory before the program starts."""
        pass

    def drive(self, cpu: Intcode, max_outputs: Optional[int] = None) -> int:
        """Run *cpu* against this device until it halts.

        ``attach`` only runs on a machine that has not executed anything
        yet, so a paused run can be resumed with another call.  Stops early
        after *max_outputs* values if given.  Returns the number of outputs
        consumed.
        """
        if cpu.instructions_executed == 0:
            self.attach(cpu)
        count = 0
        while max_outputs is None or count < max_outputs:
            value = cpu.step(self)
            if value is None:
                log.info("%s: program halted after %d outputs", self.name, count)
                break
            self.feed(value)
            count += 1
        return count


# ---------------------------------------------------------------------------
#  Painting robot
# ---------------------------------------------------------------------------
# Input:   colour of the panel under the robot (0 = black, 1 = white)
# Output:  pairs of (paint colour, turn); turn 0 = left 90°, 1 = right 90°,
#          followed by a move of one panel forward.
# The robot starts at (0, 0) facing up; y grows upward.

BLACK = 0
WHITE = 1

TURN_LEFT  = 0
TURN_RIGHT = 1

# Headings in clockwise order
UP    = (0, 1)
RIGHT = (1, 0)
DOWN  = (0, -1)
LEFT  = (-1, 0)
HEADINGS = [UP, RIGHT, DOWN, LEFT]


class PaintingRobot(Device):
    name = "robot"

    def __init__(self, start_color: int = BLACK):
        if start_color not in (BLACK, WHITE):
            raise DeviceError(f"Bad start colour: {start_color}")
        self.position: tuple[int, int] = (0, 0)
        self.heading: int = 0  # index into HEADINGS
        self.panels: dict[tuple[int, int], int] = {}
        self.start_color = start_color
        self._expect_paint = True

    @property
    def direction(self) -> tuple[int, int]:
        return HEADINGS[self.heading]

    @property
    def painted_count(self) -> int:
        """Number of panels painted at least once."""
        return len(self.panels)

    def color_at(self, pos: tuple[int, int]) -> int:
        if pos in self.panels:
            return self.panels[pos]
        return self.start_color if pos == (0, 0) else BLACK

    def __call__(self) -> int:
        return self.color_at(self.position)

    def feed(self, value: int):
        if self._expect_paint:
            if value not in (BLACK, WHITE):
                raise DeviceError(f"Bad paint colour: {value}")
            self.panels[self.position] = value
        else:
            if value == TURN_LEFT:
                self.heading = (self.heading - 1) % 4
            elif value == TURN_RIGHT:
                self.heading = (self.heading + 1) % 4
            else:
                raise DeviceError(f"Bad turn command: {value}")
            dx, dy = self.direction
            self.position = (self.position[0] + dx, self.position[1] + dy)
        self._expect_paint = not self._expect_paint

    def white_panels(self) -> set[tuple[int, int]]:
        return {pos for pos, color in self.panels.items() if color == WHITE}


# ---------------------------------------------------------------------------
#  Arcade cabinet
# ---------------------------------------------------------------------------
# Output:  triples (x, y, tile id); the triple (-1, 0, n) sets the score.
# Input:   joystick position: -1 left, 0 neutral, +1 right.
# Cell 0 = 2 puts the cabinet in free-play mode.

TILE_EMPTY  = 0
TILE_WALL   = 1
TILE_BLOCK  = 2
TILE_PADDLE = 3
TILE_BALL   = 4

TILE_NAMES = {
    TILE_EMPTY: "empty", TILE_WALL: "wall", TILE_BLOCK: "block",
    TILE_PADDLE: "paddle", TILE_BALL: "ball",
}

SCORE_POS = (-1, 0)
FREE_PLAY_ADDR = 0
FREE_PLAY_VALUE = 2


class ArcadeCabinet(Device):
    name = "arcade"

    def __init__(self, free_play: bool = False):
        self.free_play = free_play
        self.screen: dict[tuple[int, int], int] = {}
        self.score: int = 0
        self.ball: Optional[tuple[int, int]] = None
        self.paddle: Optional[tuple[int, int]] = None
        self._pending: list[int] = []

    def attach(self, cpu: Intcode):
        if self.free_play:
            cpu.mem_write(FREE_PLAY_ADDR, FREE_PLAY_VALUE)

    def count(self, tile: int) -> int:
        return sum(1 for t in self.screen.values() if t == tile)

    def __call__(self) -> int:
        # Track the ball with the paddle
        if self.ball is None or self.paddle is None:
            return 0
        if self.ball[0] < self.paddle[0]:
            return -1
        if self.ball[0] > self.paddle[0]:
            return 1
        return 0

    def feed(self, value: int):
        self._pending.append(value)
        if len(self._pending) < 3:
            return
        x, y, tile = self._pending
        self._pending = []
        if (x, y) == SCORE_POS:
            self.score = tile
            return
        if tile not in TILE_NAMES:
            raise DeviceError(f"Unknown tile id {tile} at ({x}, {y})")
        self.screen[(x, y)] = tile
        if tile == TILE_BALL:
            self.ball = (x, y)
        elif tile == TILE_PADDLE:
            self.paddle = (x, y)
