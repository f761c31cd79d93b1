from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from .constants import LOG_FILENAME, SIGNAL_FILENAME, STATE_DIRNAME, Limits
from .models import AuditMode, FixResult


@dataclass(frozen=True)
class AuditLogEntry:
    mode: AuditMode
    commit_hash: str = "unknown"
    engine: Optional[str] = None
    generator_results: Sequence[FixResult] = field(default_factory=tuple)
    narrative_results: Sequence[FixResult] = field(default_factory=tuple)
    timestamp: str = field(default_factory=lambda: _utc_now_iso())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "commitHash": self.commit_hash,
            "mode": self.mode,
            "engine": self.engine,
            "generatorResults": [r.to_dict() for r in self.generator_results],
            "narrativeResults": [r.to_dict() for r in self.narrative_results],
        }


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def get_log_paths(project_root: Path) -> tuple[Path, Path]:
    log_dir = Path(project_root) / STATE_DIRNAME
    return log_dir, log_dir / LOG_FILENAME


def read_log(log_file: Path) -> List[Dict[str, Any]]:
    """Existing entries, or [] when the file is missing or corrupted."""
    try:
        if not log_file.exists():
            return []
        data = json.loads(log_file.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return []
    if not isinstance(data, list):
        return []
    return data


def append_entry(
    project_root: Path,
    entry: AuditLogEntry,
    max_entries: int = Limits.MAX_LOG_ENTRIES,
) -> Optional[str]:
    """
    Append one entry, keeping only the most recent `max_entries`.

    Returns an error description instead of raising; callers may ignore it.
    """
    try:
        log_dir, log_file = get_log_paths(project_root)
        log_dir.mkdir(parents=True, exist_ok=True)

        entries = read_log(log_file)
        entries.append(entry.to_dict())
        if len(entries) > max_entries:
            entries = entries[len(entries) - max_entries :]

        log_file.write_text(json.dumps(entries, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    except (OSError, TypeError, ValueError) as exc:
        return f"audit log write failed: {exc}"
    return None


def get_signal_path(project_root: Path) -> Path:
    return Path(project_root) / STATE_DIRNAME / SIGNAL_FILENAME


def write_signal_file(project_root: Path) -> Optional[str]:
    """Drop the zero-byte marker the prepare-commit-msg hook looks for."""
    signal_path = get_signal_path(project_root)
    try:
        signal_path.parent.mkdir(parents=True, exist_ok=True)
        signal_path.write_text("", encoding="utf-8")
    except OSError as exc:
        return f"signal file write failed: {exc}"
    return None
