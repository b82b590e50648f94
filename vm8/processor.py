"""Processor: memory, registers and control state driven by a clocked loop."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Optional

from .clock import Clock
from .cpu import CPU, STACK_TOP
from .devices import ConsoleIO, IODevice
from .errors import CycleLimitExceeded, VMFault
from .instructions import Effect, InputEffect, OutputEffect, Port, execute_instruction
from .memory import MEMORY_SIZE, Memory
from .modes import store_operand

logger = logging.getLogger(__name__)


class CycleStatus(Enum):
    CONTINUE = "continue"
    HALTED = "halted"
    FAULT = "fault"


@dataclass
class CycleResult:
    """Outcome of one fetch-decode-execute cycle."""
    status: CycleStatus
    cycle: int
    pc: int
    opcode: Optional[int] = None
    effect: Optional[Effect] = None
    fault: Optional[VMFault] = None


CycleObserver = Callable[["Processor", CycleResult], None]


class Processor:
    """Single-threaded 8-bit processor.

    The I/O device and clock are injected; by default output goes to the
    console and cycles are paced at 16 Hz.
    """

    def __init__(self, io: Optional[IODevice] = None, clock: Optional[Clock] = None):
        self.io = io if io is not None else ConsoleIO()
        self.clock = clock if clock is not None else Clock()
        self.cpu = CPU()
        self.memory = Memory()
        self.cycles = 0

    @property
    def registers(self):
        return self.cpu.registers

    @property
    def halted(self) -> bool:
        return self.cpu.halted

    def load(self, program: Iterable[int]) -> int:
        """Load a program image at address 0.

        Raises:
            LoadError: image is not bytes or exceeds memory
        """
        return self.memory.load(program)

    def _apply(self, effect: Effect) -> None:
        """Carry an instruction's side effect out through the I/O device."""
        if isinstance(effect, OutputEffect):
            if effect.port == Port.CHAR:
                self.io.emit_char(effect.data)
            elif effect.port == Port.RECT:
                self.io.draw_rect(effect.data)
            elif effect.port == Port.CIRCLE:
                self.io.draw_circle(effect.data)
            elif effect.port == Port.LINE:
                self.io.draw_line(effect.data)
        elif isinstance(effect, InputEffect):
            value = self.io.read_byte()
            store_operand(effect.mode, effect.dest, value, self.cpu, self.memory)

    def step(self) -> CycleResult:
        """Execute one instruction and report how the cycle ended."""
        pc = self.cpu.pc
        if self.cpu.halted:
            return CycleResult(CycleStatus.HALTED, self.cycles, pc)
        if pc >= MEMORY_SIZE:
            self.cpu.halted = True
            return CycleResult(CycleStatus.HALTED, self.cycles, pc)

        self.cycles += 1
        opcode = self.memory.read(pc)
        effect = None
        try:
            effect = execute_instruction(self.cpu, self.memory)
            if effect is not None:
                self._apply(effect)
        except VMFault as e:
            e.cycle = self.cycles
            e.pc = pc
            e.opcode = opcode
            logger.debug("Fault at pc=0x%02x (cycle %d): %s", pc, self.cycles, e.message)
            return CycleResult(CycleStatus.FAULT, self.cycles, pc, opcode, effect, e)

        assert 0 <= self.cpu.pc < MEMORY_SIZE
        assert 0 <= self.cpu.sp <= STACK_TOP

        status = CycleStatus.HALTED if self.cpu.halted else CycleStatus.CONTINUE
        return CycleResult(status, self.cycles, pc, opcode, effect)

    def run(
        self,
        max_cycles: Optional[int] = None,
        observer: Optional[CycleObserver] = None,
    ) -> CycleResult:
        """Run until halt or fault.

        Args:
            max_cycles: Stop with CycleLimitExceeded after this many cycles
            observer: Called after every cycle with its result

        Returns:
            The final cycle result, tagged HALTED or FAULT
        """
        logger.info("Run started at pc=0x%02x", self.cpu.pc)
        while True:
            if max_cycles is not None and self.cycles >= max_cycles:
                fault = CycleLimitExceeded(
                    f"Cycle limit exceeded: {max_cycles}",
                    cycle=self.cycles,
                    pc=self.cpu.pc,
                )
                result = CycleResult(CycleStatus.FAULT, self.cycles, self.cpu.pc, fault=fault)
                break

            result = self.clock.run_cycle(self.step)
            if observer is not None:
                observer(self, result)
            if result.status is not CycleStatus.CONTINUE:
                break

        logger.info(
            "Run stopped after %d cycles: %s", self.cycles, result.status.value
        )
        return result
