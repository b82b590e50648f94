"""FastAPI web adapter for the vm8 processor emulator."""

import base64
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from vm8 import __version__, run_program, RunOptions
from vm8.devices import CanvasIO
from vm8.errors import LoadError
from vm8.image import parse_hex_image


# Constants
MAX_LISTING_SIZE = 16 * 1024  # 16KB of hex text
MAX_CYCLES_LIMIT = 1_000_000


# Request/Response models
class RunOptionsModel(BaseModel):
    clock_hz: float = Field(default=16.0, gt=0, le=1000)
    realtime: bool = False
    max_cycles: int = Field(default=10000, ge=1, le=MAX_CYCLES_LIMIT)
    trace: bool = False
    trace_watch: list[int] = Field(default_factory=list)
    trace_registers: list[int] = Field(default_factory=list)
    initial_registers: dict[str, int] = Field(default_factory=dict)
    initial_memory: dict[str, int] = Field(default_factory=dict)


class RunRequest(BaseModel):
    program: str
    input: str = ""
    options: Optional[RunOptionsModel] = None
    canvas: bool = False


class RunResponse(BaseModel):
    status: str
    output_text: str
    draw_commands: list[list]
    cycles_executed: int
    final_state: dict
    registers: list[int]
    memory: list[int]
    trace_watch: list[int]
    trace: list[dict]
    error: Optional[dict] = None
    canvas_png: Optional[str] = None


def _byte_map(values: dict[str, int], what: str) -> dict[int, int]:
    """Convert string-keyed JSON object to an address/id -> byte map."""
    result = {}
    for k, v in values.items():
        try:
            key = int(k, 0)
        except ValueError:
            raise HTTPException(status_code=400, detail=f"Invalid {what} key: {k}")
        if not 0 <= key <= 0xFF or not 0 <= v <= 0xFF:
            raise HTTPException(status_code=400, detail=f"{what} entry out of range: {k}={v}")
        result[key] = v
    return result


# Create FastAPI app
app = FastAPI(
    title="vm8",
    description="Web API for running vm8 program images with tracing",
    version=__version__,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.post("/api/run", response_model=RunResponse)
async def run_code(request: RunRequest):
    """Execute a vm8 program given as a hex listing.

    Args:
        request: Hex listing, input text, and execution options

    Returns:
        Execution result with output, trace, and final state
    """
    if len(request.program) > MAX_LISTING_SIZE:
        raise HTTPException(
            status_code=400,
            detail=f"Program listing exceeds limit of {MAX_LISTING_SIZE} bytes",
        )

    try:
        image = parse_hex_image(request.program)
    except LoadError as e:
        raise HTTPException(status_code=400, detail=e.message)

    opts = request.options or RunOptionsModel()
    run_opts = RunOptions(
        clock_hz=opts.clock_hz,
        realtime=opts.realtime,
        max_cycles=opts.max_cycles,
        trace=opts.trace,
        trace_watch=opts.trace_watch,
        trace_registers=opts.trace_registers,
        initial_registers=_byte_map(opts.initial_registers, "register"),
        initial_memory=_byte_map(opts.initial_memory, "memory address"),
    )

    canvas = CanvasIO(input_data=request.input) if request.canvas else None
    # Realtime runs sleep between cycles; keep them off the event loop
    result = await run_in_threadpool(
        run_program, image, input_data=request.input, options=run_opts, io=canvas
    )

    response = result.to_dict()
    if canvas is not None:
        response["canvas_png"] = base64.b64encode(canvas.to_png()).decode("ascii")
    return response


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8080)
