"""Addressing-mode resolution for vm8 operands.

A mode byte selects how an operand byte is interpreted. The low nibble
picks one of four families; the high nibble may be 0-3 and does not
change the meaning (CMP uses it to select the mode of its second operand):

    0x_0  immediate          the operand byte itself
    0x_1  register           registers[operand]
    0x_2  memory-direct      memory[operand]
    0x_3  register-indirect  memory[registers[operand]]

Fetch and store share the same decoding, so the read and write sides of
an instruction always agree.
"""

from enum import IntEnum

from .cpu import CPU
from .errors import InvalidAddressingMode
from .memory import Memory


class Mode(IntEnum):
    IMMEDIATE = 0
    REGISTER = 1
    MEMORY = 2
    INDIRECT = 3


def decode_mode(mode: int) -> Mode:
    """Map a mode byte to its addressing family."""
    if mode < 0 or mode >> 4 > 3 or mode & 0x0F > 3:
        raise InvalidAddressingMode(mode)
    return Mode(mode & 0x0F)


def fetch_operand(mode: int, operand: int, cpu: CPU, mem: Memory) -> int:
    """Resolve an operand byte to a value."""
    family = decode_mode(mode)
    if family is Mode.IMMEDIATE:
        return operand
    if family is Mode.REGISTER:
        return cpu.registers[operand]
    if family is Mode.MEMORY:
        return mem.read(operand)
    return mem.read(cpu.registers[operand])


def store_operand(mode: int, dest: int, value: int, cpu: CPU, mem: Memory) -> None:
    """Write a value to the location an operand byte names.

    Immediate destinations name no location; the value is discarded.
    """
    family = decode_mode(mode)
    if family is Mode.IMMEDIATE:
        return
    if family is Mode.REGISTER:
        cpu.registers[dest] = value
    elif family is Mode.MEMORY:
        mem.write(dest, value)
    else:
        mem.write(cpu.registers[dest], value)
