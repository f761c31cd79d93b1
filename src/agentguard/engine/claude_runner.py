from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
import shutil
import time
from typing import Callable, Optional

from ..constants import ENGINE_ID, Limits
from ..formatting import truncate
from ..models import EngineErrorKind

ProgressCallback = Callable[[str], None]

_AUTH_MARKERS = ("not authenticated", "login", "unauthorized")
_OFFLINE_MARKERS = ("enotfound", "network", "offline")


@dataclass(frozen=True)
class EngineResult:
    success: bool
    output: str
    error: Optional[str] = None
    error_kind: Optional[EngineErrorKind] = None
    duration_ms: int = 0


def sanitize_prompt(prompt: str) -> str:
    """Drop NUL bytes and normalise CRLF before piping to a child's stdin."""
    return (prompt or "").replace("\0", "").replace("\r\n", "\n")


def classify_error(stderr: Optional[str]) -> EngineErrorKind:
    if not stderr:
        return "unknown"
    lower = stderr.lower()
    if any(marker in lower for marker in _AUTH_MARKERS):
        return "auth"
    if any(marker in lower for marker in _OFFLINE_MARKERS):
        return "offline"
    return "unknown"


def remediation_message(kind: EngineErrorKind, detail: str) -> str:
    if kind == "auth":
        return "Log in to Claude Code for automatic doc updates: claude login"
    if kind == "offline":
        return "Claude Code unavailable (offline). Falling back to prompt mode."
    return (
        f"Claude Code failed: {truncate(detail, Limits.MAX_ERROR_CHARS)}. "
        "Falling back to prompt mode."
    )


def resolve_engine_bin(working_dir: Path, command: str = "claude") -> Optional[str]:
    path = shutil.which(command)
    if path:
        return path

    # Allow local installs in the repo (e.g. npm i -D @anthropic-ai/claude-code).
    bin_dir = Path(working_dir) / "node_modules" / ".bin"
    for cand in (bin_dir / command, bin_dir / f"{command}.cmd", bin_dir / f"{command}.ps1"):
        if cand.exists():
            return str(cand)
    return None


def detect_engine(working_dir: Path, command: str = "claude") -> Optional[str]:
    """Return the engine id when the CLI is resolvable, else None."""
    return ENGINE_ID if resolve_engine_bin(working_dir, command) else None


class ClaudeRunner:
    def __init__(
        self,
        command: str = "claude",
        timeout_s: float = Limits.ENGINE_TIMEOUT_S,
    ) -> None:
        self.command = command
        self.timeout_s = timeout_s

    async def invoke(
        self,
        prompt: str,
        cwd: Path,
        on_progress: Optional[ProgressCallback] = None,
    ) -> EngineResult:
        """
        Run `claude -p -` with the prompt written to stdin.

        The prompt never goes on the command line: argument length is capped at
        roughly 32KB on Windows and 1MB on macOS.
        """
        start = time.monotonic()
        wd = Path(cwd).resolve()

        def _elapsed() -> int:
            return int((time.monotonic() - start) * 1000)

        if on_progress:
            on_progress("Calling Claude Code for narrative doc updates...")

        engine_bin = resolve_engine_bin(wd, self.command) or self.command
        payload = sanitize_prompt(prompt).encode("utf-8")

        try:
            proc = await asyncio.create_subprocess_exec(
                engine_bin,
                "-p",
                "-",
                cwd=str(wd),
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            return self._failure(str(exc), str(exc), _elapsed())

        try:
            stdout_b, stderr_b = await asyncio.wait_for(
                proc.communicate(input=payload),
                timeout=float(self.timeout_s),
            )
        except asyncio.TimeoutError:
            try:
                proc.kill()
            except ProcessLookupError:
                pass
            await proc.communicate()
            return EngineResult(
                success=False,
                output="",
                error=f"Claude Code timed out after {self.timeout_s}s. Falling back to prompt mode.",
                error_kind="unknown",
                duration_ms=_elapsed(),
            )

        stdout = (stdout_b or b"").decode("utf-8", errors="ignore")
        stderr = (stderr_b or b"").decode("utf-8", errors="ignore")

        if int(proc.returncode or 0) != 0:
            detail = stderr.strip() or f"Claude Code exited with code {proc.returncode}"
            return self._failure(stderr, detail, _elapsed())

        if on_progress:
            on_progress("Claude Code finished updating docs")
        return EngineResult(success=True, output=stdout.strip(), duration_ms=_elapsed())

    @staticmethod
    def _failure(stderr: str, detail: str, duration_ms: int) -> EngineResult:
        kind = classify_error(stderr)
        return EngineResult(
            success=False,
            output="",
            error=remediation_message(kind, detail),
            error_kind=kind,
            duration_ms=duration_ms,
        )
