"""
vm8 - command-line runner
=========================

Loads a program image and runs it on the emulated processor.

Usage Examples
--------------
Run a binary on the console at 16 Hz:
    $ vm8 program.bin

Run a hex listing as fast as possible:
    $ vm8 program.hex --hex --no-clock

Render drawing output to an image, feeding input from the command line:
    $ vm8 demo.bin --canvas out.png --input "q"

Exit status is 0 when the program halts and 1 on any load or runtime fault.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import click

from vm8 import __version__
from vm8.clock import CLOCK_HZ, Clock
from vm8.devices import BufferedIO, CanvasIO, ConsoleIO, IODevice
from vm8.errors import LoadError, VMError
from vm8.image import parse_hex_image, read_program
from vm8.instructions import MNEMONICS
from vm8.processor import CycleResult, CycleStatus, Processor


def _echo_trace(proc: Processor, result: CycleResult) -> None:
    mnemonic = MNEMONICS.get(result.opcode, "???") if result.opcode is not None else "-"
    cpu = proc.cpu
    flags = "".join(
        name if flag else "."
        for name, flag in (("E", cpu.flag_equal), ("L", cpu.flag_less), ("M", cpu.flag_more))
    )
    click.echo(
        f"[{result.cycle:>5}] pc={result.pc:02x} {mnemonic:<4} sp={cpu.sp:02x} {flags}",
        err=True,
    )


def _load_image(program_file: Path, hex_listing: bool) -> bytes:
    if not hex_listing:
        return read_program(program_file)
    try:
        text = program_file.read_text()
    except (OSError, UnicodeDecodeError) as e:
        raise LoadError(f"Failed to read listing {program_file}: {e}") from e
    return parse_hex_image(text)


@click.command()
@click.argument(
    "program_file",
    type=click.Path(dir_okay=False, path_type=Path),
)
@click.option(
    "--hex", "hex_listing",
    is_flag=True,
    help="Treat PROGRAM_FILE as a hex listing instead of a raw binary",
)
@click.option(
    "--hz",
    type=float,
    default=CLOCK_HZ,
    show_default=True,
    help="Clock frequency in cycles per second",
)
@click.option(
    "--no-clock",
    is_flag=True,
    help="Run without pacing cycles to the clock",
)
@click.option(
    "--max-cycles",
    type=int,
    default=None,
    help="Fault after this many cycles (default: unlimited)",
)
@click.option(
    "--trace",
    is_flag=True,
    help="Print one line per cycle to stderr",
)
@click.option(
    "--canvas",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Render output to a PNG image at this path",
)
@click.option(
    "--input", "input_text",
    type=str,
    default=None,
    help="Feed IN instructions from this text instead of stdin",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose logging",
)
@click.version_option(version=__version__, prog_name="vm8")
def main(
    program_file: Path,
    hex_listing: bool,
    hz: float,
    no_clock: bool,
    max_cycles: Optional[int],
    trace: bool,
    canvas: Optional[Path],
    input_text: Optional[str],
    verbose: bool,
) -> None:
    """
    Run a vm8 program.

    PROGRAM_FILE is a raw binary of at most 256 bytes, loaded at address 0.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if hz <= 0:
        click.echo(f"Error: Clock frequency must be positive: {hz}", err=True)
        sys.exit(1)

    io: IODevice
    if canvas is not None:
        io = CanvasIO(input_data=input_text or "")
    elif input_text is not None:
        io = BufferedIO(input_text)
    else:
        io = ConsoleIO()

    proc = Processor(io=io, clock=Clock(hz=hz, enabled=not no_clock))

    try:
        proc.load(_load_image(program_file, hex_listing))
    except VMError as e:
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(1)

    result = proc.run(max_cycles=max_cycles, observer=_echo_trace if trace else None)

    if isinstance(io, BufferedIO):
        click.echo(io.get_output(), nl=False)
    if isinstance(io, CanvasIO):
        io.save(canvas)

    if result.status is CycleStatus.FAULT:
        click.echo(f"Error: {result.fault.message}", err=True)
        sys.exit(1)
    sys.exit(0)


if __name__ == "__main__":
    main()
