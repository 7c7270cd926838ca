"""FastAPI web adapter for the CHIP-8 virtual machine."""

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel, Field
from typing import Optional
from pathlib import Path
import logging
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from chip8 import run_program, RunOptions, disassemble


# Constants
MAX_ROM_SIZE = 4096 - 0x200
STATIC_DIR = Path(__file__).parent.parent / "static"

logger = logging.getLogger(__name__)


# Request/Response models
class RunOptionsModel(BaseModel):
    max_steps: int = Field(default=10000, ge=1, le=1000000)
    load_font: bool = True
    max_stack_depth: Optional[int] = Field(default=None, ge=1, le=256)
    stop_on_self_jump: bool = True
    trace: bool = True
    trace_include_registers: bool = False
    trace_include_stack: bool = False
    initial_memory: dict[str, int] = Field(default_factory=dict)


class RunRequest(BaseModel):
    rom: str = Field(description="ROM image as a hex string")
    options: Optional[RunOptionsModel] = None


class RunResponse(BaseModel):
    status: str
    steps_executed: int
    halted: bool
    final_state: dict
    display: list[str]
    trace: list[dict]
    diagnostics: list[dict]
    error: Optional[dict] = None


class DisassembleRequest(BaseModel):
    rom: str = Field(description="ROM image as a hex string")
    origin: int = Field(default=0x200, ge=0, le=0xFFF)


class DisassembledLine(BaseModel):
    addr: int
    word: int
    tag: str
    text: str
    supported: bool


def _parse_rom(text: str) -> bytes:
    """Decode a hex ROM string, allowing whitespace between bytes."""
    try:
        rom = bytes.fromhex("".join(text.split()))
    except ValueError:
        raise HTTPException(status_code=400, detail="ROM must be a hex string")
    if len(rom) > MAX_ROM_SIZE:
        raise HTTPException(
            status_code=400,
            detail=f"ROM size exceeds limit of {MAX_ROM_SIZE} bytes",
        )
    return rom


# Create FastAPI app
app = FastAPI(
    title="CHIP-8 Virtual Machine",
    description="Web API for executing CHIP-8 ROMs with tracing",
    version="0.1.0",
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
async def run_rom(request: RunRequest):
    """Execute a CHIP-8 ROM.

    Args:
        request: ROM bytes and execution options

    Returns:
        Execution result with final registers, display rows and trace
    """
    rom = _parse_rom(request.rom)
    opts = request.options or RunOptionsModel()

    # Accept decimal or 0x-prefixed address keys
    initial_memory = {}
    for k, v in opts.initial_memory.items():
        try:
            initial_memory[int(k, 0)] = v
        except ValueError:
            raise HTTPException(
                status_code=400,
                detail=f"Invalid memory address key: {k}",
            )

    run_opts = RunOptions(
        max_steps=opts.max_steps,
        load_font=opts.load_font,
        max_stack_depth=opts.max_stack_depth,
        stop_on_self_jump=opts.stop_on_self_jump,
        trace=opts.trace,
        trace_include_registers=opts.trace_include_registers,
        trace_include_stack=opts.trace_include_stack,
        initial_memory=initial_memory,
    )

    result = run_program(rom, options=run_opts)
    logger.info("Ran %d-byte ROM: %s after %d steps", len(rom), result.status, result.steps_executed)

    return result.to_dict()


@app.post("/api/disassemble", response_model=list[DisassembledLine])
async def disassemble_rom(request: DisassembleRequest):
    """Decode a ROM image word by word."""
    rom = _parse_rom(request.rom)
    return [
        {
            "addr": addr,
            "word": instr.word,
            "tag": instr.tag,
            "text": instr.text,
            "supported": instr.supported,
        }
        for addr, instr in disassemble(rom, origin=request.origin)
    ]


# Mount static files AFTER API routes to prevent shadowing
if STATIC_DIR.exists():
    app.mount("/", StaticFiles(directory=str(STATIC_DIR), html=True), name="static")


if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")
    uvicorn.run(app, host="0.0.0.0", port=8080)
