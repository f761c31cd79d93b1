from __future__ import annotations

from enum import Enum


class ExitCode(int, Enum):
    """Process exit codes."""

    SUCCESS = 0
    FAILURE = 1


class Limits:
    """Shared hard limits."""

    MAX_LOG_ENTRIES = 500
    ENGINE_TIMEOUT_S = 120  # 2 minutes
    GENERATOR_TIMEOUT_S = 300
    MAX_ERROR_CHARS = 200
    PROMPT_FILES_PER_CATEGORY = 15
    LISTING_FILES_PER_CATEGORY = 10


CONFIG_FILENAME = "agent-docs.config.json"
STATE_DIRNAME = ".agent-guard"
LOG_FILENAME = "log.json"
SIGNAL_FILENAME = ".auto-fix-ran"

ENGINE_ID = "claude-code"
ENGINE_INSTALL_HINT = "npm i -g @anthropic-ai/claude-code"

ACTION_REGENERATED = "regenerated"
ACTION_NARRATIVE = "narrative updated by Claude Code"

AUTO_FIX_SUFFIX = "(docs auto-updated by agent-guard)"
