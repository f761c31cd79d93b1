"""prepare-commit-msg hook: note in the message when pre-commit auto-updated docs."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional, Sequence

from .audit_log import get_signal_path
from .config import load_settings, resolve_project_root
from .constants import AUTO_FIX_SUFFIX, ExitCode
from .errors import ConfigError


def append_auto_fix_message(original: str) -> str:
    if AUTO_FIX_SUFFIX in original:
        return original
    return original.rstrip() + "\n\n" + AUTO_FIX_SUFFIX + "\n"


def apply_to_message_file(message_file: Path, project_root: Path) -> bool:
    """Rewrite the message file and consume the signal. Returns True if applied."""
    signal_path = get_signal_path(project_root)
    if not signal_path.exists():
        return False
    try:
        message = message_file.read_text(encoding="utf-8")
        message_file.write_text(append_auto_fix_message(message), encoding="utf-8")
        signal_path.unlink(missing_ok=True)
    except OSError:
        return False
    return True


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        return int(ExitCode.SUCCESS)

    try:
        project_root = resolve_project_root(load_settings())
    except ConfigError:
        return int(ExitCode.SUCCESS)

    # Never block a commit.
    apply_to_message_file(Path(args[0]), project_root)
    return int(ExitCode.SUCCESS)


if __name__ == "__main__":
    sys.exit(main())
