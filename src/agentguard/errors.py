from __future__ import annotations

from .constants import ExitCode


class AgentGuardError(Exception):
    """Base exception for all agent-guard errors."""

    exit_code: ExitCode = ExitCode.FAILURE


class ConfigError(AgentGuardError):
    """Policy file missing, unreadable or invalid."""

    exit_code = ExitCode.FAILURE
