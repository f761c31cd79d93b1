from __future__ import annotations

import os
import shlex
import sys
import time
from pathlib import Path

import pytest

from agentguard.generators import run_shell


def _python(code: str) -> str:
    return f"{shlex.quote(sys.executable)} -c {shlex.quote(code)}"


@pytest.mark.anyio
async def test_successful_command_runs_in_project_root(tmp_path: Path) -> None:
    result = await run_shell(_python("import os; print(os.getcwd())"), tmp_path, timeout_s=30)

    assert result.ok is True
    assert Path(result.stdout.strip()).resolve() == tmp_path.resolve()


@pytest.mark.anyio
async def test_nonzero_exit_is_reported(tmp_path: Path) -> None:
    result = await run_shell(_python("import sys; sys.stderr.write('no script'); sys.exit(3)"), tmp_path, timeout_s=30)

    assert result.ok is False
    assert result.returncode == 3
    assert "no script" in result.stderr


@pytest.mark.anyio
async def test_timeout_kills_command(tmp_path: Path) -> None:
    result = await run_shell(_python("import time; time.sleep(30)"), tmp_path, timeout_s=0.2)

    assert result.timed_out is True
    assert result.ok is False


@pytest.mark.anyio
@pytest.mark.skipif(os.name != "posix", reason="process groups are POSIX-only")
async def test_timeout_kills_compound_command_children(tmp_path: Path) -> None:
    start = time.monotonic()
    result = await run_shell(f"{_python('import time; time.sleep(30)')}; echo done", tmp_path, timeout_s=0.5)

    assert result.timed_out is True
    assert "done" not in result.stdout
    assert time.monotonic() - start < 10
