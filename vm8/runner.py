"""Program runner with tracing for vm8."""

from dataclasses import dataclass, field
from typing import Iterable, Optional, Union

from .clock import CLOCK_HZ, Clock
from .devices import BufferedIO, IODevice
from .errors import ErrorInfo, VMError
from .instructions import MNEMONICS, InputEffect, OutputEffect
from .processor import CycleResult, CycleStatus, Processor


@dataclass
class RunOptions:
    """Options for program execution."""
    clock_hz: float = CLOCK_HZ
    realtime: bool = True
    max_cycles: Optional[int] = None
    trace: bool = False
    trace_watch: list[int] = field(default_factory=list)
    trace_registers: list[int] = field(default_factory=list)
    initial_registers: dict[int, int] = field(default_factory=dict)
    initial_memory: dict[int, int] = field(default_factory=dict)


@dataclass
class TraceRow:
    """Single row of execution trace."""
    cycle: int
    pc: int
    opcode: Optional[int]
    mnemonic: str
    sp: int
    flags: dict[str, bool]
    mem: dict[str, int]
    regs: dict[str, int]
    in_code: Optional[int] = None
    out_code: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "cycle": self.cycle,
            "pc": self.pc,
            "opcode": self.opcode,
            "mnemonic": self.mnemonic,
            "sp": self.sp,
            "flags": self.flags,
            "mem": self.mem,
            "regs": self.regs,
            "in_code": self.in_code,
            "out_code": self.out_code,
        }


@dataclass
class RunResult:
    """Result of program execution."""
    status: str  # "ok" | "error"
    output_text: str
    draw_commands: list[tuple[str, int]]
    cycles_executed: int
    final_state: dict
    registers: list[int]
    memory: list[int]
    trace_watch: list[int]
    trace: list[dict]
    error: Optional[ErrorInfo] = None

    def to_dict(self) -> dict:
        result = {
            "status": self.status,
            "output_text": self.output_text,
            "draw_commands": [list(cmd) for cmd in self.draw_commands],
            "cycles_executed": self.cycles_executed,
            "final_state": self.final_state,
            "registers": self.registers,
            "memory": self.memory,
            "trace_watch": self.trace_watch,
            "trace": self.trace,
        }
        if self.error:
            result["error"] = self.error.to_dict()
        return result


def _trace_row(proc: Processor, result: CycleResult, options: RunOptions) -> TraceRow:
    in_code = out_code = None
    if isinstance(result.effect, OutputEffect):
        out_code = result.effect.data
    elif isinstance(result.effect, InputEffect) and result.status is not CycleStatus.FAULT:
        in_code = getattr(proc.io, "last_in_code", None)
    cpu = proc.cpu
    return TraceRow(
        cycle=result.cycle,
        pc=result.pc,
        opcode=result.opcode,
        mnemonic=MNEMONICS.get(result.opcode, "???") if result.opcode is not None else "",
        sp=cpu.sp,
        flags={"equal": cpu.flag_equal, "less": cpu.flag_less, "more": cpu.flag_more},
        mem=proc.memory.get_watched(options.trace_watch),
        regs=cpu.registers.get_watched(options.trace_registers),
        in_code=in_code,
        out_code=out_code,
    )


def run_program(
    program: Iterable[int],
    input_data: Union[bytes, str] = b"",
    options: Optional[RunOptions] = None,
    io: Optional[IODevice] = None,
) -> RunResult:
    """Run a vm8 program image.

    Args:
        program: Program bytes, loaded at address 0
        input_data: Input bytes for IN instructions (ignored if io is given)
        options: Execution options
        io: Device to run against; defaults to an in-memory buffer

    Returns:
        RunResult with execution status, output, and trace
    """
    if options is None:
        options = RunOptions()
    if io is None:
        io = BufferedIO(input_data)

    trace_rows: list[dict] = []
    error_info: Optional[ErrorInfo] = None

    proc = Processor(io=io, clock=Clock(hz=options.clock_hz, enabled=options.realtime))

    try:
        proc.load(program)
        for addr, val in options.initial_memory.items():
            proc.memory.write(addr, val)
        for reg, val in options.initial_registers.items():
            proc.registers[reg] = val
    except VMError as e:
        error_info = e.to_error_info()
    else:
        observer = None
        if options.trace:
            def observer(p: Processor, result: CycleResult) -> None:
                trace_rows.append(_trace_row(p, result, options).to_dict())

        final = proc.run(max_cycles=options.max_cycles, observer=observer)
        if final.status is CycleStatus.FAULT:
            error_info = final.fault.to_error_info()

    return RunResult(
        status="ok" if error_info is None else "error",
        output_text=io.get_output() if isinstance(io, BufferedIO) else "",
        draw_commands=list(io.draw_commands) if isinstance(io, BufferedIO) else [],
        cycles_executed=proc.cycles,
        final_state=proc.cpu.get_state(),
        registers=list(proc.registers.snapshot()),
        memory=list(proc.memory.snapshot()),
        trace_watch=sorted(options.trace_watch),
        trace=trace_rows,
        error=error_info,
    )
