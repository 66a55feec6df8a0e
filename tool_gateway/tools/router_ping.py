"""
router_reachable: sends a single ping to the local router.
"""

from __future__ import annotations

import asyncio
import re
import sys
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional

from ..registry import ToolArgs, ToolDefinition

DEFAULT_ROUTER_HOST = "192.168.1.1"

# Upper bound on the whole ping process, on top of ping's own 1 s wait
PROCESS_TIMEOUT_SECONDS = 3.0

_LATENCY_RE = re.compile(r"time[=<]([0-9.]+)\s*ms", re.IGNORECASE)


@dataclass(frozen=True)
class PingResult:
    code: Optional[int]
    stdout: str
    stderr: str


PingRunner = Callable[[str], Awaitable[PingResult]]


class RouterPingArgs(ToolArgs):
    """No arguments."""


def ping_command(host: str) -> List[str]:
    # macOS takes -W in milliseconds, Linux in seconds
    wait = "1000" if sys.platform == "darwin" else "1"
    return ["ping", "-c", "1", "-W", wait, host]


async def subprocess_ping(host: str) -> PingResult:
    try:
        proc = await asyncio.create_subprocess_exec(
            *ping_command(host),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        return PingResult(code=1, stdout="", stderr=str(e))

    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=PROCESS_TIMEOUT_SECONDS)
    except asyncio.TimeoutError:
        proc.kill()
        await proc.wait()
        return PingResult(code=1, stdout="", stderr="timeout")

    return PingResult(
        code=proc.returncode,
        stdout=stdout.decode("utf-8", errors="replace"),
        stderr=stderr.decode("utf-8", errors="replace"),
    )


def parse_latency_ms(output: str) -> Optional[float]:
    """Extract "time=2.34 ms" from ping output."""
    match = _LATENCY_RE.search(output)
    if not match:
        return None
    try:
        return float(match.group(1))
    except ValueError:
        return None


def create_router_ping_tool(
    host: str = DEFAULT_ROUTER_HOST,
    runner: PingRunner = subprocess_ping,
) -> ToolDefinition:
    async def handler(args: RouterPingArgs) -> Dict[str, Any]:
        result = await runner(host)
        reachable = result.code == 0
        return {
            "host": host,
            "reachable": reachable,
            "latency_ms": parse_latency_ms(result.stdout) if reachable else None,
        }

    return ToolDefinition(
        name="router_reachable",
        description="Checks if the local router responds to a single ping.",
        input_model=RouterPingArgs,
        handler=handler,
        requires=("process",),
    )
