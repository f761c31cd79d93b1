from __future__ import annotations

import asyncio
import errno
import os
from pathlib import Path

import pytest

from agentguard.engine.claude_runner import (
    ClaudeRunner,
    classify_error,
    detect_engine,
    remediation_message,
    sanitize_prompt,
)


class FakeProc:
    def __init__(self, returncode: int = 0, stdout: bytes = b"", stderr: bytes = b"", hang: bool = False) -> None:
        self.returncode = None
        self._final_code = returncode
        self._stdout = stdout
        self._stderr = stderr
        self._hang = hang
        self.killed = False
        self.stdin_payload: bytes | None = None

    async def communicate(self, input: bytes | None = None):  # noqa: A002
        if input is not None:
            self.stdin_payload = input
        if self._hang and not self.killed:
            await asyncio.sleep(10)
        self.returncode = -9 if self.killed else self._final_code
        return self._stdout, self._stderr

    def kill(self) -> None:
        self.killed = True


def _patch_spawn(monkeypatch: pytest.MonkeyPatch, proc: FakeProc) -> list:
    calls: list = []

    async def fake_create(*args, **kwargs):  # noqa: ANN001
        calls.append((args, kwargs))
        return proc

    monkeypatch.setattr("shutil.which", lambda _: "/usr/local/bin/claude")
    monkeypatch.setattr(asyncio, "create_subprocess_exec", fake_create)
    return calls


def test_sanitize_removes_nul_and_crlf() -> None:
    text = "line one\r\nline\0 two\r\n\0"
    cleaned = sanitize_prompt(text)
    assert "\0" not in cleaned
    assert "\r\n" not in cleaned
    assert cleaned == "line one\nline two\n"


@pytest.mark.parametrize("text", ["", "plain", "a\r\n\r\nb", "\0\0", "x\r\n\0y\r"])
def test_sanitize_is_idempotent(text: str) -> None:
    once = sanitize_prompt(text)
    assert sanitize_prompt(once) == once


@pytest.mark.parametrize(
    ("stderr", "kind"),
    [
        ("Error: not authenticated", "auth"),
        ("Please run claude LOGIN first", "auth"),
        ("401 Unauthorized", "auth"),
        ("ENOTFOUND registry", "offline"),
        ("network unreachable", "offline"),
        ("You appear to be offline", "offline"),
        ("boom", "unknown"),
        ("", "unknown"),
        (None, "unknown"),
    ],
)
def test_classify_error(stderr, kind) -> None:
    assert classify_error(stderr) == kind


def test_remediation_messages() -> None:
    assert "claude login" in remediation_message("auth", "")
    assert "offline" in remediation_message("offline", "")
    unknown = remediation_message("unknown", "x" * 500)
    assert unknown.startswith("Claude Code failed: ")
    assert unknown.endswith("Falling back to prompt mode.")
    assert len(unknown) < 300


def test_detect_engine_on_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("shutil.which", lambda _: "/usr/bin/claude")
    assert detect_engine(tmp_path) == "claude-code"


def test_detect_engine_local_node_modules(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("shutil.which", lambda _: None)
    assert detect_engine(tmp_path) is None

    local = tmp_path / "node_modules" / ".bin" / "claude"
    local.parent.mkdir(parents=True)
    local.write_text("#!/bin/sh\n", encoding="utf-8")
    assert detect_engine(tmp_path) == "claude-code"


@pytest.mark.anyio
async def test_prompt_goes_to_stdin_not_argv(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    proc = FakeProc(returncode=0, stdout=b"  done  \n")
    calls = _patch_spawn(monkeypatch, proc)
    progress: list[str] = []

    prompt = "Update docs\r\nplease\0"
    res = await ClaudeRunner().invoke(prompt, tmp_path, progress.append)

    assert res.success is True
    assert res.output == "done"
    assert res.error is None
    args, kwargs = calls[0]
    assert args[1:] == ("-p", "-")
    assert all("Update docs" not in str(a) for a in args)
    assert proc.stdin_payload == b"Update docs\nplease"
    assert kwargs["cwd"] == str(tmp_path.resolve())
    assert progress == [
        "Calling Claude Code for narrative doc updates...",
        "Claude Code finished updating docs",
    ]


@pytest.mark.anyio
async def test_auth_failure_is_classified(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _patch_spawn(monkeypatch, FakeProc(returncode=1, stderr=b"Error: not authenticated"))
    res = await ClaudeRunner().invoke("x", tmp_path)

    assert res.success is False
    assert res.error_kind == "auth"
    assert res.error == "Log in to Claude Code for automatic doc updates: claude login"


@pytest.mark.anyio
async def test_unknown_failure_includes_detail(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _patch_spawn(monkeypatch, FakeProc(returncode=3, stderr=b"segfault in renderer"))
    res = await ClaudeRunner().invoke("x", tmp_path)

    assert res.success is False
    assert res.error_kind == "unknown"
    assert "segfault in renderer" in (res.error or "")


@pytest.mark.anyio
async def test_timeout_kills_process(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    proc = FakeProc(hang=True)
    _patch_spawn(monkeypatch, proc)

    res = await ClaudeRunner(timeout_s=0.01).invoke("x", tmp_path)

    assert proc.killed is True
    assert res.success is False
    assert res.error and "timed out" in res.error.lower()


@pytest.mark.anyio
async def test_missing_binary_is_graceful(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    async def boom(*args, **kwargs):  # noqa: ANN001
        raise FileNotFoundError("claude")

    monkeypatch.setattr("shutil.which", lambda _: None)
    monkeypatch.setattr(asyncio, "create_subprocess_exec", boom)

    res = await ClaudeRunner().invoke("x", tmp_path)
    assert res.success is False
    assert res.error and res.error.endswith("Falling back to prompt mode.")


@pytest.mark.anyio
async def test_any_spawn_oserror_is_graceful(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    async def exec_format_error(*args, **kwargs):  # noqa: ANN001
        raise OSError(errno.ENOEXEC, "Exec format error")

    monkeypatch.setattr("shutil.which", lambda _: "/usr/local/bin/claude")
    monkeypatch.setattr(asyncio, "create_subprocess_exec", exec_format_error)

    res = await ClaudeRunner().invoke("x", tmp_path)
    assert res.success is False
    assert res.error and "Exec format error" in res.error


@pytest.mark.anyio
@pytest.mark.skipif(os.name != "posix", reason="relies on execve ENOEXEC")
async def test_broken_local_binary_is_graceful(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    local = tmp_path / "node_modules" / ".bin" / "claude"
    local.parent.mkdir(parents=True)
    local.write_bytes(b"\x00\x01not an executable image")
    local.chmod(0o755)
    monkeypatch.setattr("shutil.which", lambda _: None)

    res = await ClaudeRunner().invoke("hi", tmp_path)
    assert res.success is False
    assert res.error and res.error.endswith("Falling back to prompt mode.")
