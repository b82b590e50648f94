"""Instruction decoding and execution for the vm8 processor.

Each executor consumes its own operand bytes from memory at the program
counter and applies the instruction to CPU and memory. Executors never
touch an I/O device: OUT and IN return an effect value that the
processor hands to its device.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Callable, Optional, Union

from .cpu import CPU
from .errors import UnknownOpcode
from .memory import Memory
from .modes import fetch_operand, store_operand


class Opcode(IntEnum):
    NOP = 0x00
    OUT = 0x01
    IN = 0x02
    LEA = 0x03
    MOV = 0x04
    RET = 0x05
    CAL = 0x06
    JMP = 0x07
    JL = 0x08
    JNL = 0x09
    JNM = 0x0A
    JM = 0x0B
    JNE = 0x0C
    JE = 0x0D
    CMP = 0x0E
    INT = 0x0F
    ADD = 0x10
    SUB = 0x11
    MUL = 0x12
    DIV = 0x13
    AND = 0x20
    OR = 0x21
    XOR = 0x22
    NOT = 0x23
    NOR = 0x24
    NAND = 0x25
    PUSH = 0x26
    POP = 0x27
    RSV0 = 0x30
    RSV1 = 0x31
    HLT = 0xFF


MNEMONICS: dict[int, str] = {op.value: op.name.lower() for op in Opcode}


class Port(IntEnum):
    """OUT port selectors."""
    CHAR = 0
    RECT = 1
    CIRCLE = 2
    LINE = 3


@dataclass(frozen=True)
class OutputEffect:
    """OUT request: the device call is selected by port, payload is data."""
    port: int
    data: int
    value: int


@dataclass(frozen=True)
class InputEffect:
    """IN request: read one byte and store it through mode/dest."""
    mode: int
    dest: int
    port: int


Effect = Union[OutputEffect, InputEffect]

InstructionExecutor = Callable[[CPU, Memory], Optional[Effect]]


def _next_byte(cpu: CPU, mem: Memory) -> int:
    """Read the byte at PC and advance past it."""
    value = mem.read(cpu.pc)
    cpu.advance()
    return value


def _operands(cpu: CPU, mem: Memory, count: int) -> tuple[int, ...]:
    return tuple(_next_byte(cpu, mem) for _ in range(count))


def execute_nop(cpu: CPU, mem: Memory) -> Optional[Effect]:
    """NOP, also used for the reserved INT and 0x30/0x31 slots."""
    return None


def execute_out(cpu: CPU, mem: Memory) -> Optional[Effect]:
    """OUT mode, data, port.

    The operand is resolved through the mode (and faults on a bad mode),
    but the device receives the literal data byte.
    """
    mode, data, port = _operands(cpu, mem, 3)
    value = fetch_operand(mode, data, cpu, mem)
    return OutputEffect(port=port, data=data, value=value)


def execute_in(cpu: CPU, mem: Memory) -> Optional[Effect]:
    """IN mode, dest, port: dest := next input byte"""
    mode, dest, port = _operands(cpu, mem, 3)
    return InputEffect(mode=mode, dest=dest, port=port)


def execute_lea(cpu: CPU, mem: Memory) -> Optional[Effect]:
    """LEA mode, dest, addr: dest := addr"""
    mode, dest, addr = _operands(cpu, mem, 3)
    store_operand(mode, dest, addr, cpu, mem)
    return None


def execute_mov(cpu: CPU, mem: Memory) -> Optional[Effect]:
    """MOV mode, dest, src: dest := src"""
    mode, dest, src = _operands(cpu, mem, 3)
    store_operand(mode, dest, fetch_operand(mode, src, cpu, mem), cpu, mem)
    return None


def execute_ret(cpu: CPU, mem: Memory) -> Optional[Effect]:
    """RET: PC := pop()"""
    cpu.jump(mem.read(cpu.pop_slot()))
    return None


def execute_cal(cpu: CPU, mem: Memory) -> Optional[Effect]:
    """CAL addr: push(PC); PC := addr"""
    addr = _next_byte(cpu, mem)
    mem.write(cpu.push_slot(), cpu.pc)
    cpu.jump(addr)
    return None


def execute_jmp(cpu: CPU, mem: Memory) -> Optional[Effect]:
    """JMP addr: PC := MEM[PC]"""
    cpu.jump(mem.read(cpu.pc))
    return None


def _conditional_jump(predicate: Callable[[CPU], bool], doc: str) -> InstructionExecutor:
    def execute(cpu: CPU, mem: Memory) -> Optional[Effect]:
        if predicate(cpu):
            cpu.jump(mem.read(cpu.pc))
        else:
            cpu.advance()
        return None

    execute.__doc__ = doc
    return execute


execute_jl = _conditional_jump(lambda cpu: cpu.flag_less, "JL addr: jump if less")
execute_jnl = _conditional_jump(lambda cpu: not cpu.flag_less, "JNL addr: jump if not less")
execute_jnm = _conditional_jump(lambda cpu: not cpu.flag_more, "JNM addr: jump if not more")
execute_jm = _conditional_jump(lambda cpu: cpu.flag_more, "JM addr: jump if more")
execute_jne = _conditional_jump(lambda cpu: not cpu.flag_equal, "JNE addr: jump if not equal")
execute_je = _conditional_jump(lambda cpu: cpu.flag_equal, "JE addr: jump if equal")


def execute_cmp(cpu: CPU, mem: Memory) -> Optional[Effect]:
    """CMP mode, op1, op2: set flags from op1 ? op2.

    Low nibble of mode addresses op1, high nibble addresses op2.
    """
    mode, op1, op2 = _operands(cpu, mem, 3)
    val1 = fetch_operand(mode & 0x0F, op1, cpu, mem)
    val2 = fetch_operand(mode >> 4, op2, cpu, mem)
    cpu.compare(val1, val2)
    return None


def _divide(a: int, b: int) -> int:
    # Division by zero yields 0
    if b == 0:
        return 0
    return a // b


def _binary_op(op: Callable[[int, int], int], doc: str) -> InstructionExecutor:
    def execute(cpu: CPU, mem: Memory) -> Optional[Effect]:
        mode, dest, src = _operands(cpu, mem, 3)
        val1 = fetch_operand(mode, dest, cpu, mem)
        val2 = fetch_operand(mode, src, cpu, mem)
        store_operand(mode, dest, op(val1, val2) & 0xFF, cpu, mem)
        return None

    execute.__doc__ = doc
    return execute


execute_add = _binary_op(lambda a, b: a + b, "ADD mode, dest, src: dest := dest + src")
execute_sub = _binary_op(lambda a, b: a - b, "SUB mode, dest, src: dest := dest - src")
execute_mul = _binary_op(lambda a, b: a * b, "MUL mode, dest, src: dest := dest * src")
execute_div = _binary_op(_divide, "DIV mode, dest, src: dest := dest / src (0 if src is 0)")
execute_and = _binary_op(lambda a, b: a & b, "AND mode, dest, src")
execute_or = _binary_op(lambda a, b: a | b, "OR mode, dest, src")
execute_xor = _binary_op(lambda a, b: a ^ b, "XOR mode, dest, src")
execute_nor = _binary_op(lambda a, b: ~(a | b), "NOR mode, dest, src")
execute_nand = _binary_op(lambda a, b: ~(a & b), "NAND mode, dest, src")


def execute_not(cpu: CPU, mem: Memory) -> Optional[Effect]:
    """NOT mode, dest: dest := ~dest"""
    mode, dest = _operands(cpu, mem, 2)
    value = fetch_operand(mode, dest, cpu, mem)
    store_operand(mode, dest, ~value & 0xFF, cpu, mem)
    return None


def execute_push(cpu: CPU, mem: Memory) -> Optional[Effect]:
    """PUSH mode, src"""
    mode, src = _operands(cpu, mem, 2)
    value = fetch_operand(mode, src, cpu, mem)
    mem.write(cpu.push_slot(), value)
    return None


def execute_pop(cpu: CPU, mem: Memory) -> Optional[Effect]:
    """POP mode, dest"""
    mode, dest = _operands(cpu, mem, 2)
    value = mem.read(cpu.pop_slot())
    store_operand(mode, dest, value, cpu, mem)
    return None


def execute_hlt(cpu: CPU, mem: Memory) -> Optional[Effect]:
    """HLT: halt execution"""
    cpu.halted = True
    return None


# Instruction dispatch table
INSTRUCTION_EXECUTORS: dict[int, InstructionExecutor] = {
    Opcode.NOP: execute_nop,
    Opcode.OUT: execute_out,
    Opcode.IN: execute_in,
    Opcode.LEA: execute_lea,
    Opcode.MOV: execute_mov,
    Opcode.RET: execute_ret,
    Opcode.CAL: execute_cal,
    Opcode.JMP: execute_jmp,
    Opcode.JL: execute_jl,
    Opcode.JNL: execute_jnl,
    Opcode.JNM: execute_jnm,
    Opcode.JM: execute_jm,
    Opcode.JNE: execute_jne,
    Opcode.JE: execute_je,
    Opcode.CMP: execute_cmp,
    Opcode.INT: execute_nop,
    Opcode.ADD: execute_add,
    Opcode.SUB: execute_sub,
    Opcode.MUL: execute_mul,
    Opcode.DIV: execute_div,
    Opcode.AND: execute_and,
    Opcode.OR: execute_or,
    Opcode.XOR: execute_xor,
    Opcode.NOT: execute_not,
    Opcode.NOR: execute_nor,
    Opcode.NAND: execute_nand,
    Opcode.PUSH: execute_push,
    Opcode.POP: execute_pop,
    Opcode.RSV0: execute_nop,
    Opcode.RSV1: execute_nop,
    Opcode.HLT: execute_hlt,
}


def execute_instruction(cpu: CPU, mem: Memory) -> Optional[Effect]:
    """Fetch, decode and execute the instruction at PC.

    Returns:
        An effect for the I/O device, or None
    """
    opcode = _next_byte(cpu, mem)
    executor = INSTRUCTION_EXECUTORS.get(opcode)
    if executor is None:
        raise UnknownOpcode(f"Unknown opcode: 0x{opcode:02x}", opcode=opcode)
    return executor(cpu, mem)
