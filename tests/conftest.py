from __future__ import annotations

import json
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest

from agentguard.config import AgentDocsConfig
from agentguard.engine.claude_runner import EngineResult
from agentguard.git import GitResult


@pytest.fixture(params=["asyncio"])
def anyio_backend(request):
    """Restrict anyio tests to asyncio only (trio is not installed)."""
    return request.param


@pytest.fixture(autouse=True)
def _clean_agent_guard_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in list(os.environ):
        if key.startswith("AGENT_GUARD_"):
            monkeypatch.delenv(key, raising=False)


API_ROUTES_CATEGORY: Dict[str, Any] = {
    "id": "api-routes",
    "name": "API Routes",
    "emoji": "📡",
    "patternType": "regex",
    "filePattern": "route\\.ts$",
}


def make_config_dict(**overrides: Any) -> Dict[str, Any]:
    raw: Dict[str, Any] = {
        "categories": [dict(API_ROUTES_CATEGORY)],
        "docsDir": "docs/",
        "agentConfigFile": ".cursorrules",
        "architectureFile": "docs/ARCHITECTURE.md",
        "generatedDir": "docs/_generated/",
        "autoFix": {
            "generators": True,
            "narrative": {
                "enabled": True,
                "review": False,
                "narrativeTriggers": ["api-routes"],
                "additionalNarrativeTargets": ["README.md"],
            },
        },
    }
    raw.update(overrides)
    return raw


def make_config(**overrides: Any) -> AgentDocsConfig:
    return AgentDocsConfig.model_validate(make_config_dict(**overrides))


@pytest.fixture
def write_config(tmp_path: Path):
    def _write(**overrides: Any) -> Path:
        path = tmp_path / "agent-docs.config.json"
        path.write_text(json.dumps(make_config_dict(**overrides)), encoding="utf-8")
        return path

    return _write


class FakeGit:
    """In-memory stand-in for GitClient."""

    def __init__(
        self,
        staged: Optional[List[str]] = None,
        existing: Optional[List[str]] = None,
        diffs: Optional[Dict[str, str]] = None,
        head: str = "abc1234",
    ) -> None:
        self.staged = list(staged or [])
        self.existing = set(existing or [])
        self.diffs = dict(diffs or {})
        self.head = head
        self.added: List[str] = []
        self.checked_out: List[str] = []

    def staged_files(self) -> List[str]:
        return list(self.staged)

    def add(self, path: str) -> GitResult:
        if path in self.existing:
            self.added.append(path)
            return GitResult(args=["git", "add", path], returncode=0, stdout="", stderr="")
        return GitResult(
            args=["git", "add", path],
            returncode=128,
            stdout="",
            stderr=f"fatal: pathspec '{path}' did not match any files",
        )

    def checkout(self, path: str) -> GitResult:
        self.checked_out.append(path)
        return GitResult(args=["git", "checkout", path], returncode=0, stdout="", stderr="")

    def diff(self, path: str) -> str:
        return self.diffs.get(path, "")

    def short_head(self) -> str:
        return self.head


class FakeRunner:
    def __init__(self, result: Optional[EngineResult] = None) -> None:
        self.result = result or EngineResult(success=True, output="updated docs")
        self.prompts: List[str] = []

    async def invoke(self, prompt, cwd, on_progress=None) -> EngineResult:  # noqa: ANN001
        self.prompts.append(prompt)
        if on_progress:
            on_progress("Calling Claude Code for narrative doc updates...")
        return self.result


def read_audit_log(root: Path) -> List[Dict[str, Any]]:
    path = root / ".agent-guard" / "log.json"
    if not path.exists():
        return []
    return json.loads(path.read_text(encoding="utf-8"))
