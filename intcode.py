"""
Intcode Emulator
================
A resumable interpreter for Intcode programs: a tape of signed integers that
is both the program and its working memory.

Every instruction is decoded from the raw cell at the instruction pointer:
the opcode lives in the two low decimal digits, the parameter modes in the
digits above them.  Memory grows with zeros whenever an access lands past
the end, so addresses are never out of bounds.

The machine suspends in exactly one place: right after an OUT instruction.
``step()`` runs until that happens (or until HALT), which lets a host drive
several machines cooperatively, one output at a time.
"""

from __future__ import annotations
import logging
from typing import Callable, Iterable, NamedTuple, Optional

log = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
#  Constants
# ---------------------------------------------------------------------------

# Opcodes
OP_ADD  = 1   # dest = a + b
OP_MUL  = 2   # dest = a * b
OP_IN   = 3   # dest = next input
OP_OUT  = 4   # emit a, suspend
OP_JT   = 5   # if a != 0: pc = b
OP_JF   = 6   # if a == 0: pc = b
OP_LT   = 7   # dest = a < b
OP_EQ   = 8   # dest = a == b
OP_ARB  = 9   # relative_base += a
OP_HALT = 99

# Parameter modes
MODE_POSITION  = 0
MODE_IMMEDIATE = 1
MODE_RELATIVE  = 2

OP_NAMES = {
    OP_ADD: "ADD", OP_MUL: "MUL", OP_IN: "IN", OP_OUT: "OUT",
    OP_JT: "JT", OP_JF: "JF", OP_LT: "LT", OP_EQ: "EQ",
    OP_ARB: "ARB", OP_HALT: "HALT",
}

# Cells consumed by each instruction (opcode cell included)
OP_WIDTHS = {
    OP_ADD: 4, OP_MUL: 4, OP_LT: 4, OP_EQ: 4,
    OP_IN: 2, OP_OUT: 2, OP_ARB: 2,
    OP_JT: 3, OP_JF: 3,
    OP_HALT: 1,
}

MODE_NAMES = {
    MODE_POSITION: "position",
    MODE_IMMEDIATE: "immediate",
    MODE_RELATIVE: "relative",
}

NUM_PARAMS = 3

InputSource = Callable[[], int]

# ---------------------------------------------------------------------------
#  Errors
# ---------------------------------------------------------------------------

class IntcodeError(Exception):
    """Base for errors raised by the emulator."""
    pass

class UnknownOpcodeError(IntcodeError):
    def __init__(self, value: int):
        self.value = value
        super().__init__(f"Unknown opcode: {value}")

class UnknownModeError(IntcodeError):
    def __init__(self, digit: int):
        self.digit = digit
        super().__init__(f"Unknown mode: {digit}")

class IllegalDestinationError(IntcodeError):
    """A write operand was encoded in a mode that has no address."""
    def __init__(self, mode: int):
        self.mode = mode
        super().__init__(f"Unexpected mode: {MODE_NAMES.get(mode, mode)}")

class AddressError(IntcodeError):
    def __init__(self, addr: int):
        self.addr = addr
        super().__init__(f"Negative address: {addr}")

class HaltError(IntcodeError):
    pass

class InputExhaustedError(IntcodeError):
    pass

class ProgramFormatError(ValueError):
    pass

# ---------------------------------------------------------------------------
#  Decoder
# ---------------------------------------------------------------------------

class Instruction(NamedTuple):
    opcode: int
    modes: tuple[int, int, int]

    @property
    def name(self) -> str:
        return OP_NAMES[self.opcode]

    @property
    def width(self) -> int:
        """Number of cells the pointer advances past this instruction."""
        return OP_WIDTHS[self.opcode]

    @property
    def num_params(self) -> int:
        return self.width - 1

    def mode(self, k: int) -> int:
        """Mode of parameter *k* (1-based)."""
        return self.modes[k - 1]


def decode(value: int) -> Instruction:
    """Split one cell into its opcode and three parameter modes.

    ``1002`` decodes to MUL with modes (position, immediate, position).
    Raises UnknownOpcodeError / UnknownModeError for malformed cells.
    """
    if value < 0:
        raise UnknownOpcodeError(value)
    opcode = value % 100
    if opcode not in OP_NAMES:
        raise UnknownOpcodeError(value)

    rest = value // 100
    modes = []
    for _ in range(NUM_PARAMS):
        digit = rest % 10
        if digit not in MODE_NAMES:
            raise UnknownModeError(digit)
        modes.append(digit)
        rest //= 10
    if rest:
        # Digits beyond the five-digit field
        while rest % 10 == 0:
            rest //= 10
        raise UnknownModeError(rest % 10)
    return Instruction(opcode, tuple(modes))

# ---------------------------------------------------------------------------
#  Program text
# ---------------------------------------------------------------------------

def parse_program(text: str) -> list[int]:
    """Parse comma-separated decimal integers ("1,0,0,3,99")."""
    text = text.strip()
    if not text:
        return []
    values = []
    for i, tok in enumerate(text.split(",")):
        tok = tok.strip()
        try:
            values.append(int(tok, 10))
        except ValueError:
            raise ProgramFormatError(
                f"Bad value {tok!r} at position {i}") from None
    return values


def format_program(values: Iterable[int]) -> str:
    return ",".join(str(v) for v in values)


def load_program(path: str) -> list[int]:
    """Read and parse a program file."""
    with open(path, "r") as f:
        return parse_program(f.read())

# ---------------------------------------------------------------------------
#  Engine
# ---------------------------------------------------------------------------

def _cell(value) -> int:
    """Check that *value* can be stored in a memory cell."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"Memory cells hold integers, got {value!r}")
    return value


class Intcode:
    """One Intcode machine: private memory, pointer and relative base."""

    def __init__(self, program: Iterable[int]):
        self.mem: list[int] = [_cell(v) for v in program]

        self.pc: int = 0
        self.relative_base: int = 0

        # Terminal state: set by HALT or by a fault, never cleared
        self.halted: bool = False
        self.fault: Optional[IntcodeError] = None

        # Counters
        self.instructions_executed: int = 0
        self.outputs_produced: int = 0

    # -- State queries --

    @property
    def done(self) -> bool:
        return self.halted

    @property
    def memory(self) -> tuple[int, ...]:
        """Snapshot of the current memory contents."""
        return tuple(self.mem)

    @property
    def mem_size(self) -> int:
        return len(self.mem)

    # -- Memory access --

    def _ensure(self, addr: int):
        if addr < 0:
            raise AddressError(addr)
        if addr >= len(self.mem):
            self.mem.extend([0] * (addr + 1 - len(self.mem)))

    def mem_read(self, addr: int) -> int:
        self._ensure(addr)
        return self.mem[addr]

    def mem_write(self, addr: int, val: int):
        self._ensure(addr)
        self.mem[addr] = _cell(val)

    # -- Operand resolution --

    def _param_value(self, inst: Instruction, k: int) -> int:
        raw = self.mem_read(self.pc + k)
        mode = inst.mode(k)
        if mode == MODE_IMMEDIATE:
            return raw
        if mode == MODE_RELATIVE:
            return self.mem_read(raw + self.relative_base)
        return self.mem_read(raw)

    def _param_addr(self, inst: Instruction, k: int) -> int:
        raw = self.mem_read(self.pc + k)
        mode = inst.mode(k)
        if mode == MODE_IMMEDIATE:
            raise IllegalDestinationError(mode)
        if mode == MODE_RELATIVE:
            addr = raw + self.relative_base
        else:
            addr = raw
        self._ensure(addr)
        return addr

    # =====================================================================
    #  STEP: decode/execute
    # =====================================================================

    def current_instruction(self) -> Instruction:
        """Decode the cell at the pointer without executing it."""
        return decode(self.mem_read(self.pc))

    def step_instruction(self, input_source: Optional[InputSource] = None) -> Optional[int]:
        """Execute exactly one instruction.

        Returns the emitted value if the instruction was OUT, else None.
        A decode or address fault marks the machine dead and re-raises.
        """
        if self.halted:
            if self.fault is not None:
                raise HaltError(f"Machine faulted: {self.fault}")
            raise HaltError("Machine is halted")
        try:
            value = self._execute(input_source)
        except InputExhaustedError:
            # Pointer still at the IN; the host may supply input and retry
            raise
        except IntcodeError as e:
            self.halted = True
            self.fault = e
            log.warning("Fault at pc=%d: %s", self.pc, e)
            raise
        self.instructions_executed += 1
        return value

    def _execute(self, input_source: Optional[InputSource]) -> Optional[int]:
        inst = self.current_instruction()
        op = inst.opcode
        if log.isEnabledFor(logging.DEBUG):
            log.debug("%6d: %s modes=%s rb=%d", self.pc, inst.name,
                      inst.modes[:inst.num_params], self.relative_base)

        if op == OP_ADD or op == OP_MUL or op == OP_LT or op == OP_EQ:
            a = self._param_value(inst, 1)
            b = self._param_value(inst, 2)
            dest = self._param_addr(inst, 3)
            if op == OP_ADD:
                self.mem[dest] = a + b
            elif op == OP_MUL:
                self.mem[dest] = a * b
            elif op == OP_LT:
                self.mem[dest] = 1 if a < b else 0
            else:
                self.mem[dest] = 1 if a == b else 0

        elif op == OP_IN:
            dest = self._param_addr(inst, 1)
            if input_source is None:
                raise InputExhaustedError("No input source")
            self.mem[dest] = _cell(input_source())

        elif op == OP_OUT:
            value = self._param_value(inst, 1)
            self.pc += inst.width
            self.outputs_produced += 1
            return value

        elif op == OP_JT or op == OP_JF:
            cond = self._param_value(inst, 1)
            target = self._param_value(inst, 2)
            if (cond != 0) == (op == OP_JT):
                self.pc = target
                return None

        elif op == OP_ARB:
            self.relative_base += self._param_value(inst, 1)

        elif op == OP_HALT:
            self.halted = True
            return None

        self.pc += inst.width
        return None

    def step(self, input_source: Optional[InputSource] = None) -> Optional[int]:
        """Run until the next output value (returned) or HALT (None).

        *input_source* is called once for every IN instruction executed.
        """
        while True:
            value = self.step_instruction(input_source)
            if value is not None:
                return value
            if self.halted:
                return None

    # -- Run loop --

    def run(self, inputs: Iterable[int] = ()) -> list[int]:
        """Run to completion, feeding *inputs* in order. Returns all outputs."""
        pending = iter(inputs)

        def next_input() -> int:
            try:
                return next(pending)
            except StopIteration:
                raise InputExhaustedError("Input sequence exhausted") from None

        outputs = []
        while True:
            value = self.step(next_input)
            if value is None:
                break
            outputs.append(value)
        return outputs

    # -- Debug / introspection --

    def dump_regs(self) -> str:
        lines = [
            f"  PC = {self.pc}  RB = {self.relative_base}  MEM = {len(self.mem)} cells",
            f"  Halted: {self.halted}"
            + (f"  Fault: {self.fault}" if self.fault is not None else ""),
            f"  Instructions: {self.instructions_executed}  "
            f"Outputs: {self.outputs_produced}",
        ]
        return "\n".join(lines)
