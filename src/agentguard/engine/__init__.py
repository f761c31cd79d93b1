from __future__ import annotations

from .claude_runner import (
    ClaudeRunner,
    EngineResult,
    classify_error,
    detect_engine,
    sanitize_prompt,
)
from .prompt_builder import build_manual_prompt, build_narrative_prompt

__all__ = [
    "ClaudeRunner",
    "EngineResult",
    "build_manual_prompt",
    "build_narrative_prompt",
    "classify_error",
    "detect_engine",
    "sanitize_prompt",
]
