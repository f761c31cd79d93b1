from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Literal, Optional

from .constants import ACTION_NARRATIVE, ACTION_REGENERATED

PatternType = Literal["exact", "startsWith", "regex"]
AuditMode = Literal["auto-fix", "prompt", "skip", "sync"]
EngineErrorKind = Literal["auth", "offline", "unknown"]
LogFormat = Literal["text", "json"]


class RunState(str, Enum):
    NO_STAGED_FILES = "no_staged_files"
    NO_DOC_RELEVANT_CHANGES = "no_doc_relevant_changes"
    DOCS_UPDATED = "docs_updated"
    AUTO_FIXED = "auto_fixed"
    PROMPT_FALLBACK = "prompt_fallback"


@dataclass(frozen=True)
class FixResult:
    file: str
    action: str
    detail: Optional[str] = None

    def to_dict(self) -> Dict[str, str]:
        payload = {"file": self.file, "action": self.action}
        if self.detail:
            payload["detail"] = self.detail
        return payload


@dataclass
class CategoryMatches:
    """Staged files bucketed by category id, in staging order."""

    matches: Dict[str, List[str]] = field(default_factory=dict)
    unmatched: List[str] = field(default_factory=list)

    def has_matches(self) -> bool:
        return bool(self.matches)

    def category_ids(self) -> List[str]:
        return list(self.matches.keys())


@dataclass
class RunOutcome:
    state: RunState
    mode: Optional[AuditMode] = None
    engine: Optional[str] = None
    results: List[FixResult] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def generator_results(self) -> List[FixResult]:
        return [r for r in self.results if r.action == ACTION_REGENERATED]

    @property
    def narrative_results(self) -> List[FixResult]:
        return [r for r in self.results if r.action == ACTION_NARRATIVE]
