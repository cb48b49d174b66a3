#!/usr/bin/env python3
"""
Intcode Runner / Monitor
========================
Command-line interface for the Intcode emulator.

Provides:
  - Batch runs with inputs supplied on the command line
  - Memory patches before the run (--set ADDR=VAL)
  - Amplifier chains, with feedback and phase search
  - Interactive devices (painting robot, arcade cabinet)
  - An interactive monitor: step / run / breakpoints / memory inspection

Usage:
  python cli.py PROGRAM [-i N ...] [--set ADDR=VAL ...] [--ascii]
  python cli.py PROGRAM --amplifiers 9,8,7,6,5 [--feedback] [--search]
  python cli.py PROGRAM --paint [--start-color 1]
  python cli.py PROGRAM --arcade [--free-play]
  python cli.py PROGRAM --monitor
"""

from __future__ import annotations
import argparse
import cmd
import logging
import os
import shlex
import sys
from typing import Optional, Sequence

from intcode import (
    Intcode, IntcodeError, HaltError, InputExhaustedError, ProgramFormatError,
    decode, load_program, format_program, OP_HALT, MODE_IMMEDIATE, MODE_RELATIVE,
)
from pipeline import AmplifierChain, QueueInput, max_thruster_signal
from devices import ArcadeCabinet, PaintingRobot, DeviceError, TILE_BLOCK

log = logging.getLogger(__name__)

DEFAULT_MAX_STEPS = int(os.environ.get("INTCODE_MAX_STEPS", "10000000"))
DEFAULT_LOG_LEVEL = os.environ.get("INTCODE_LOG_LEVEL", "WARNING")

# ---------------------------------------------------------------------------
#  Disassembler
# ---------------------------------------------------------------------------

def _fmt_operand(raw: int, mode: int) -> str:
    if mode == MODE_IMMEDIATE:
        return f"#{raw}"
    if mode == MODE_RELATIVE:
        return f"[rb{raw:+d}]"
    return f"[{raw}]"


def disasm_one(mem: Sequence[int], addr: int) -> tuple[str, int]:
    """Disassemble one instruction at `addr`. Returns (text, cell_count).

    Cells that do not decode are shown as ``DATA n`` with a width of 1.
    """
    def rc(a):
        return mem[a] if 0 <= a < len(mem) else 0

    value = rc(addr)
    try:
        inst = decode(value)
    except IntcodeError:
        return f"DATA {value}", 1

    if inst.opcode == OP_HALT:
        return inst.name, 1
    operands = [_fmt_operand(rc(addr + k), inst.mode(k))
                for k in range(1, inst.num_params + 1)]
    return f"{inst.name:<4s} {', '.join(operands)}", inst.width

# ---------------------------------------------------------------------------
#  Interactive monitor
# ---------------------------------------------------------------------------

class IntcodeMonitor(cmd.Cmd):
    """Interactive monitor for one Intcode machine."""

    intro = (
        "\n"
        "Intcode Monitor. Type 'help' for commands, 'quit' to exit.\n"
    )
    prompt = "IC> "

    def __init__(self, cpu: Intcode, stdout=None):
        super().__init__(stdout=stdout)
        self.cpu = cpu
        self.input = QueueInput()
        self.outputs: list[int] = []
        self.breakpoints: set[int] = set()

    def _print(self, text: str = ""):
        self.stdout.write(text + "\n")

    # -- Parsing helpers --

    def _parse_addr(self, s: str) -> int:
        """Parse an address: integer (0x prefix allowed), 'pc' or 'rb'."""
        s = s.strip().lower()
        if s == "pc":
            return self.cpu.pc
        if s == "rb":
            return self.cpu.relative_base
        return int(s, 0)

    def _parse_int(self, s: str) -> int:
        return int(s.strip(), 0)

    def onecmd(self, line):
        try:
            return super().onecmd(line)
        except (ValueError, IntcodeError) as e:
            self._print(f"Error: {e}")
            return False

    def emptyline(self):
        pass

    # ================================================================
    #  Commands
    # ================================================================

    # -- Input / output --

    def do_input(self, arg):
        """Queue input values: input <n> [n] ..."""
        parts = shlex.split(arg)
        if not parts:
            self._print(f"Queued: {list(self.input.buffer)}")
            return
        self.input.inject(*(self._parse_int(p) for p in parts))
        self._print(f"Queued {len(parts)} value(s), {len(self.input)} pending")

    def do_output(self, arg):
        """Show all outputs produced so far."""
        self._print(", ".join(str(v) for v in self.outputs) or "(none)")

    # -- Execution --

    def _exec_one(self) -> bool:
        """Execute one instruction. Returns False when execution must stop."""
        try:
            value = self.cpu.step_instruction(self.input)
        except InputExhaustedError:
            self._print(f"Waiting for input at {self.cpu.pc}. "
                        "Use 'input <n>' then 'run' to continue.")
            return False
        except HaltError as e:
            self._print(str(e))
            return False
        except IntcodeError as e:
            self._print(f"Fault: {e}")
            return False
        if value is not None:
            self.outputs.append(value)
            self._print(f"  OUT {value}")
        if self.cpu.halted:
            self._print(f"Halted after {self.cpu.instructions_executed} instructions.")
            return False
        return True

    def do_step(self, arg):
        """Step N instructions: step [count]"""
        count = self._parse_int(arg) if arg.strip() else 1
        for _ in range(count):
            addr = self.cpu.pc
            text, _ = disasm_one(self.cpu.mem, addr)
            self._print(f"  {addr:6d}: {text}")
            if not self._exec_one():
                break

    def do_run(self, arg):
        """Run until halt/breakpoint/input needed: run [max_steps]"""
        max_steps = self._parse_int(arg) if arg.strip() else DEFAULT_MAX_STEPS
        for n in range(max_steps):
            if n and self.cpu.pc in self.breakpoints:
                self._print(f"Breakpoint hit at {self.cpu.pc}")
                return
            if not self._exec_one():
                return
        self._print(f"Stopped after {max_steps} steps.")

    def do_continue(self, arg):
        """Alias for 'run'."""
        self.do_run(arg)
    do_c = do_continue

    # -- Breakpoints --

    def do_bp(self, arg):
        """Set breakpoint: bp <address>. No argument lists them."""
        if not arg.strip():
            if self.breakpoints:
                for addr in sorted(self.breakpoints):
                    self._print(f"  {addr}")
            else:
                self._print("No breakpoints.")
            return
        addr = self._parse_addr(arg)
        self.breakpoints.add(addr)
        self._print(f"Breakpoint set at {addr}")

    def do_bpd(self, arg):
        """Delete breakpoint: bpd <address>  (or 'bpd all')"""
        if arg.strip() == "all":
            self.breakpoints.clear()
            self._print("All breakpoints cleared.")
            return
        addr = self._parse_addr(arg)
        self.breakpoints.discard(addr)
        self._print(f"Breakpoint removed at {addr}")

    # -- Inspection --

    def do_regs(self, arg):
        """Show pointer, relative base and counters."""
        self._print(self.cpu.dump_regs())

    def do_dump(self, arg):
        """Dump memory: dump [address] [count]
        Defaults to the whole tape, 8 cells per row."""
        parts = shlex.split(arg)
        addr = self._parse_addr(parts[0]) if parts else 0
        count = (self._parse_int(parts[1]) if len(parts) > 1
                 else max(self.cpu.mem_size - addr, 0))
        mem = self.cpu.memory
        for row in range(addr, addr + count, 8):
            cells = [str(mem[a]) if a < len(mem) else "0"
                     for a in range(row, min(row + 8, addr + count))]
            self._print(f"  {row:6d}: {' '.join(cells)}")

    def do_setmem(self, arg):
        """Set memory cells: setmem <address> <value> [value] ..."""
        parts = shlex.split(arg)
        if len(parts) < 2:
            self._print("Usage: setmem <addr> <value...>")
            return
        addr = self._parse_addr(parts[0])
        for i, tok in enumerate(parts[1:]):
            self.cpu.mem_write(addr + i, self._parse_int(tok))
        self._print(f"  Wrote {len(parts) - 1} cell(s) at {addr}")

    def do_disasm(self, arg):
        """Disassemble: disasm [address] [count]
        Defaults to the current pointer, 16 instructions."""
        parts = shlex.split(arg)
        addr = self._parse_addr(parts[0]) if parts else self.cpu.pc
        count = self._parse_int(parts[1]) if len(parts) > 1 else 16
        mem = self.cpu.memory
        for _ in range(count):
            if addr >= len(mem):
                break
            text, size = disasm_one(mem, addr)
            raw = ",".join(str(mem[a]) for a in range(addr, min(addr + size, len(mem))))
            marker = ">>>" if addr == self.cpu.pc else "   "
            self._print(f"  {marker} {addr:6d}: {raw:<24s} {text}")
            addr += size

    def do_status(self, arg):
        """Show machine, input queue and output summary."""
        self._print(self.cpu.dump_regs())
        self._print(f"  Pending input: {len(self.input)}  "
                    f"Outputs: {len(self.outputs)}  "
                    f"Breakpoints: {len(self.breakpoints)}")

    def do_quit(self, arg):
        """Exit the monitor."""
        return True
    do_q = do_quit

    def do_EOF(self, arg):
        self._print()
        return True

# ---------------------------------------------------------------------------
#  Batch modes
# ---------------------------------------------------------------------------

def _parse_patch(spec: str) -> tuple[int, int]:
    if "=" not in spec:
        raise argparse.ArgumentTypeError(f"expected ADDR=VAL, got {spec!r}")
    addr_s, val_s = spec.split("=", 1)
    try:
        return int(addr_s, 0), int(val_s, 0)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected ADDR=VAL, got {spec!r}") from None


def _parse_phases(spec: str) -> list[int]:
    try:
        return [int(p) for p in spec.split(",") if p.strip()]
    except ValueError:
        raise argparse.ArgumentTypeError(f"bad phase list {spec!r}") from None


def _format_outputs(outputs: list[int], ascii_mode: bool) -> str:
    if not ascii_mode:
        return "\n".join(str(v) for v in outputs)
    # Printable values as characters, anything else as a number
    parts = []
    for v in outputs:
        if 0 <= v < 0x80 and (0x20 <= v < 0x7F or v in (9, 10, 13)):
            parts.append(chr(v))
        else:
            parts.append(f"{v}\n")
    return "".join(parts).rstrip("\n")


def _run_amplifiers(program: list[int], args) -> None:
    if args.search:
        signal, order = max_thruster_signal(program, args.amplifiers,
                                            feedback=args.feedback)
        print(f"Max signal: {signal}  (phases {','.join(map(str, order))})")
        return
    chain = AmplifierChain(program, args.amplifiers)
    if args.feedback:
        signal = chain.run_feedback(args.signal)
    else:
        signal = chain.run_serial(args.signal)
    print(f"Signal: {signal}")


def _make_machine(program: list[int], patches: list[tuple[int, int]]) -> Intcode:
    cpu = Intcode(program)
    for addr, value in patches:
        cpu.mem_write(addr, value)
    return cpu


# ---------------------------------------------------------------------------
#  Main
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="intcode",
        description="Intcode emulator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="Examples:\n"
               "  intcode prog.txt -i 1\n"
               "  intcode prog.txt --set 1=12 --set 2=2 --dump\n"
               "  intcode amp.txt --amplifiers 5,6,7,8,9 --feedback --search\n"
               "  intcode robot.txt --paint --start-color 1\n"
               "  intcode prog.txt --monitor\n"
    )
    parser.add_argument("program",
                        help="Program file (comma-separated integers)")
    parser.add_argument("-i", "--input", type=lambda s: int(s, 0),
                        action="append", default=[], metavar="N",
                        help="Input value (can repeat, consumed in order; batch and --monitor only)")
    parser.add_argument("--set", type=_parse_patch, action="append",
                        default=[], metavar="ADDR=VAL", dest="patches",
                        help="Write VAL into cell ADDR before running (can repeat; not with --amplifiers)")
    parser.add_argument("--ascii", action="store_true",
                        help="Print printable outputs as text")
    parser.add_argument("--dump", action="store_true",
                        help="Print final memory after the run")

    group = parser.add_argument_group("amplifiers")
    group.add_argument("--amplifiers", type=_parse_phases, default=None,
                       metavar="P,P,...",
                       help="Run an amplifier chain with these phase settings")
    group.add_argument("--feedback", action="store_true",
                       help="Loop the last amplifier back into the first")
    group.add_argument("--search", action="store_true",
                       help="Try every ordering of the phase settings")
    group.add_argument("--signal", type=int, default=0,
                       help="Initial input signal (default: 0)")

    group = parser.add_argument_group("devices")
    group.add_argument("--paint", action="store_true",
                       help="Drive the painting robot")
    group.add_argument("--start-color", type=int, default=0, choices=(0, 1),
                       help="Colour of the robot's starting panel (default: 0)")
    group.add_argument("--arcade", action="store_true",
                       help="Drive the arcade cabinet")
    group.add_argument("--free-play", action="store_true",
                       help="Insert quarters (cell 0 = 2) before playing")

    parser.add_argument("--monitor", action="store_true",
                        help="Start the interactive monitor")
    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="More logging (-v info, -vv per-instruction trace)")
    return parser


def _configure_logging(verbose: int):
    if verbose >= 2:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = getattr(logging, DEFAULT_LOG_LEVEL.upper(), logging.WARNING)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.paint and args.arcade:
        parser.error("--paint and --arcade are exclusive")
    if (args.paint or args.arcade or args.amplifiers is not None) and args.input:
        parser.error("-i/--input only applies to batch runs and --monitor")
    if args.amplifiers is not None and args.patches:
        parser.error("--set does not apply to --amplifiers")
    _configure_logging(args.verbose)

    try:
        program = load_program(args.program)
        log.info("Loaded %d cells from '%s'", len(program), args.program)

        if args.amplifiers is not None:
            _run_amplifiers(program, args)
            return 0

        cpu = _make_machine(program, args.patches)

        if args.monitor:
            mon = IntcodeMonitor(cpu)
            mon.input.inject(*args.input)
            mon.cmdloop()
            return 0

        if args.paint:
            robot = PaintingRobot(start_color=args.start_color)
            robot.drive(cpu)
            print(f"Panels painted: {robot.painted_count}")
            return 0

        if args.arcade:
            cabinet = ArcadeCabinet(free_play=args.free_play)
            cabinet.drive(cpu)
            print(f"Blocks: {cabinet.count(TILE_BLOCK)}")
            print(f"Score: {cabinet.score}")
            return 0

        outputs = cpu.run(args.input)
        if outputs:
            print(_format_outputs(outputs, args.ascii))
        if args.dump:
            print(format_program(cpu.memory))
        return 0

    except (OSError, ProgramFormatError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except (IntcodeError, DeviceError) as e:
        print(f"Intcode error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
