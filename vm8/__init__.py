"""vm8: an 8-bit processor emulator with a 256-byte address space."""

__version__ = "0.1.0"

from .runner import run_program, RunOptions, RunResult
from .processor import Processor, CycleResult, CycleStatus
from .devices import IODevice, ConsoleIO, BufferedIO, CanvasIO
from .clock import Clock
from .image import read_program, parse_hex_image
from .errors import VMError, VMFault, LoadError, ProgramTooLarge

__all__ = [
    "run_program",
    "RunOptions",
    "RunResult",
    "Processor",
    "CycleResult",
    "CycleStatus",
    "IODevice",
    "ConsoleIO",
    "BufferedIO",
    "CanvasIO",
    "Clock",
    "read_program",
    "parse_hex_image",
    "VMError",
    "VMFault",
    "LoadError",
    "ProgramTooLarge",
]
