from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional


@dataclass(frozen=True)
class GitResult:
    args: list[str]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def error(self) -> Optional[str]:
        if self.ok:
            return None
        return self.stderr.strip() or f"git exited with code {self.returncode}"


class GitClient:
    """Thin wrapper over the local git CLI. Calls never raise."""

    def __init__(self, cwd: Path, git_bin: str = "git") -> None:
        self.cwd = Path(cwd)
        self.git_bin = git_bin

    def run(self, *args: str) -> GitResult:
        cmd = [self.git_bin, *args]
        try:
            result = subprocess.run(
                cmd,
                cwd=str(self.cwd),
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                stdin=subprocess.DEVNULL,
                check=False,
            )
        except (FileNotFoundError, NotADirectoryError) as exc:
            return GitResult(args=cmd, returncode=127, stdout="", stderr=str(exc))
        return GitResult(
            args=cmd,
            returncode=int(result.returncode),
            stdout=result.stdout or "",
            stderr=result.stderr or "",
        )

    def staged_files(self) -> List[str]:
        """Paths in the index relative to the repo root; [] outside a repo."""
        result = self.run("diff", "--cached", "--name-only", "-z")
        if not result.ok:
            return []
        # NUL-separated output is never C-quoted, so non-ASCII paths come back verbatim.
        return [path for path in result.stdout.split("\0") if path]

    def add(self, path: str) -> GitResult:
        return self.run("add", "--", path)

    def checkout(self, path: str) -> GitResult:
        return self.run("checkout", "--", path)

    def diff(self, path: str) -> str:
        result = self.run("diff", "--", path)
        return result.stdout if result.ok else ""

    def short_head(self) -> str:
        result = self.run("rev-parse", "--short", "HEAD")
        sha = result.stdout.strip()
        return sha if result.ok and sha else "unknown"

    def toplevel(self) -> Optional[Path]:
        result = self.run("rev-parse", "--show-toplevel")
        top = result.stdout.strip()
        if result.ok and top:
            return Path(top)
        return None
