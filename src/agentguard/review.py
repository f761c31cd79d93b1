from __future__ import annotations

import asyncio
import sys
from typing import Optional


def tty_path() -> str:
    return "CON" if sys.platform == "win32" else "/dev/tty"


def has_interactive_terminal() -> bool:
    """
    True when a controlling terminal can be opened for reading.

    Git hooks get stdin from /dev/null, so stdin says nothing; CI and piped
    contexts fail the open and auto-accept.
    """
    try:
        with open(tty_path(), "r", encoding="utf-8"):
            return True
    except OSError:
        return False


def _ask_blocking(question: str) -> Optional[str]:
    try:
        with open(tty_path(), "r", encoding="utf-8") as tty:
            sys.stderr.write(question)
            sys.stderr.flush()
            return tty.readline()
    except OSError:
        return None


async def ask(question: str) -> Optional[str]:
    """Read one line from the controlling terminal. No timeout."""
    return await asyncio.to_thread(_ask_blocking, question)


def is_accepted(answer: Optional[str]) -> bool:
    return (answer or "").strip().lower() == "y"
