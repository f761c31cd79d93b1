from __future__ import annotations

import asyncio
import os
import signal
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class CommandResult:
    command: str
    returncode: int
    stdout: str
    stderr: str
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.returncode == 0 and not self.timed_out


def _kill_process_tree(proc: asyncio.subprocess.Process) -> None:
    """Kill the shell and everything it spawned (npm -> node, `a; b` chains)."""
    try:
        if os.name == "posix":
            os.killpg(proc.pid, signal.SIGKILL)
        else:
            proc.kill()
    except ProcessLookupError:
        pass


async def run_shell(command: str, cwd: Path, timeout_s: float) -> CommandResult:
    """Run one configured generator command through the shell."""
    try:
        proc = await asyncio.create_subprocess_shell(
            command,
            cwd=str(cwd),
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            # Own process group, so a timeout can take down grandchildren holding the pipes.
            start_new_session=os.name == "posix",
        )
    except OSError as exc:
        return CommandResult(command=command, returncode=127, stdout="", stderr=str(exc))

    try:
        stdout_b, stderr_b = await asyncio.wait_for(proc.communicate(), timeout=timeout_s)
    except asyncio.TimeoutError:
        _kill_process_tree(proc)
        stdout_b, stderr_b = await proc.communicate()
        return CommandResult(
            command=command,
            returncode=-1,
            stdout=(stdout_b or b"").decode("utf-8", errors="ignore"),
            stderr=(stderr_b or b"").decode("utf-8", errors="ignore"),
            timed_out=True,
        )

    return CommandResult(
        command=command,
        returncode=int(proc.returncode or 0),
        stdout=(stdout_b or b"").decode("utf-8", errors="ignore"),
        stderr=(stderr_b or b"").decode("utf-8", errors="ignore"),
    )
