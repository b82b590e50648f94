"""Custom exceptions for the vm8 processor emulator."""

from dataclasses import dataclass
from typing import Optional


@dataclass
class ErrorInfo:
    """Structured error information for run results and API responses."""
    type: str
    message: str
    cycle: int
    pc: int
    opcode: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "message": self.message,
            "cycle": self.cycle,
            "pc": self.pc,
            "opcode": self.opcode,
        }


class VMError(Exception):
    """Base exception for all vm8 errors."""

    def __init__(
        self,
        message: str,
        cycle: int = 0,
        pc: int = 0,
        opcode: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.cycle = cycle
        self.pc = pc
        self.opcode = opcode

    def to_error_info(self) -> ErrorInfo:
        return ErrorInfo(
            type=self.__class__.__name__,
            message=self.message,
            cycle=self.cycle,
            pc=self.pc,
            opcode=self.opcode,
        )


class LoadError(VMError):
    """Program image could not be loaded."""
    pass


class ProgramTooLarge(LoadError):
    """Program image does not fit in memory."""
    pass


class ImageFormatError(LoadError):
    """Malformed hex listing."""
    pass


class VMFault(VMError):
    """Unrecoverable error during execution."""
    pass


class InvalidAddressingMode(VMFault):
    """Mode byte does not name a defined addressing mode."""

    def __init__(self, mode: int, **kwargs):
        super().__init__(f"Invalid addressing mode: 0x{mode:02x}", **kwargs)
        self.mode = mode


class StackOverflow(VMFault):
    """PUSH/CAL with the stack pointer already at 0."""
    pass


class StackUnderflow(VMFault):
    """POP/RET with the stack pointer at its initial boundary."""
    pass


class UnknownOpcode(VMFault):
    """Opcode byte not in the instruction set."""
    pass


class MemoryAccessError(VMFault):
    """Memory address out of bounds."""
    pass


class InputExhausted(VMFault):
    """IN instruction with no input left to read."""
    pass


class CycleLimitExceeded(VMFault):
    """Maximum cycle count exceeded."""
    pass


class RegisterAccessError(VMFault):
    """Register id out of range."""
    pass
