"""CPU state model for the vm8 processor."""

from typing import Optional

from .errors import RegisterAccessError, StackOverflow, StackUnderflow

NUM_REGISTERS = 256
STACK_TOP = 0xFF


class RegisterFile:
    """256 byte-wide general-purpose registers addressed by id."""

    def __init__(self, initial_values: Optional[dict[int, int]] = None):
        self._data = bytearray(NUM_REGISTERS)
        if initial_values:
            for reg, val in initial_values.items():
                self[reg] = val

    def _check_bounds(self, reg: int) -> None:
        if reg < 0 or reg >= NUM_REGISTERS:
            raise RegisterAccessError(f"Register id out of range: {reg}")

    def __getitem__(self, reg: int) -> int:
        self._check_bounds(reg)
        return self._data[reg]

    def __setitem__(self, reg: int, value: int) -> None:
        self._check_bounds(reg)
        self._data[reg] = value & 0xFF

    def __len__(self) -> int:
        return NUM_REGISTERS

    def get_watched(self, ids: list[int]) -> dict[str, int]:
        """Get values of watched registers as string-keyed dict."""
        return {str(reg): self._data[reg] for reg in ids if 0 <= reg < NUM_REGISTERS}

    def snapshot(self) -> bytes:
        return bytes(self._data)


class CPU:
    """Control state: program counter, stack pointer and comparison flags."""

    def __init__(self):
        self.registers = RegisterFile()
        self.pc: int = 0
        self.sp: int = STACK_TOP
        self.halted: bool = False
        self.flag_equal: bool = False
        self.flag_less: bool = False
        self.flag_more: bool = False

    def advance(self, count: int = 1) -> None:
        """Move the program counter forward, wrapping at 256."""
        self.pc = (self.pc + count) & 0xFF

    def jump(self, addr: int) -> None:
        self.pc = addr & 0xFF

    def compare(self, left: int, right: int) -> None:
        """Set all three flags from an unsigned comparison."""
        self.flag_equal = left == right
        self.flag_less = left < right
        self.flag_more = left > right

    def push_slot(self) -> int:
        """Claim the next stack slot and return its address.

        The stack grows downward: the pointer is decremented first.
        """
        if self.sp <= 0:
            raise StackOverflow("Stack overflow")
        self.sp -= 1
        return self.sp

    def pop_slot(self) -> int:
        """Release the top stack slot and return its address.

        The pointer is incremented after the slot is taken, so a pop
        reads back the slot the matching push wrote.
        """
        if self.sp >= STACK_TOP:
            raise StackUnderflow("Stack underflow")
        addr = self.sp
        self.sp += 1
        return addr

    def get_state(self) -> dict:
        """Get current control state as dictionary."""
        return {
            "pc": self.pc,
            "sp": self.sp,
            "halted": self.halted,
            "equal": self.flag_equal,
            "less": self.flag_less,
            "more": self.flag_more,
        }

    def reset(self, start_address: int = 0) -> None:
        """Reset CPU to initial state."""
        self.registers = RegisterFile()
        self.pc = start_address
        self.sp = STACK_TOP
        self.halted = False
        self.flag_equal = False
        self.flag_less = False
        self.flag_more = False
