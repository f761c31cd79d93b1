from __future__ import annotations

import json
import sys
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Optional

from .models import LogFormat


class GuardLogger:
    """Structured stderr logger for the hooks. Debug output only with --verbose."""

    def __init__(
        self,
        name: str = "agent-guard",
        *,
        verbose: bool = False,
        log_format: LogFormat = "text",
        run_id: Optional[str] = None,
    ):
        self.name = name
        self.verbose = verbose
        self.log_format = log_format
        self.run_id = run_id or uuid.uuid4().hex[:12]

    def debug(self, message: str, **kwargs: Any) -> None:
        if self.verbose:
            self._emit("debug", message, **kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        self._emit("info", message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._emit("warning", message, **kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self._emit("error", message, **kwargs)

    @contextmanager
    def stage(self, name: str) -> Iterator[None]:
        """Context manager that tracks stage timing (verbose only)."""
        start = datetime.now(timezone.utc)
        self.debug("stage_start", stage=name)
        status = "ok"
        try:
            yield
        except Exception as exc:  # pragma: no cover - pass-through
            status = "error"
            self.debug("stage_error", stage=name, error=str(exc))
            raise
        finally:
            end = datetime.now(timezone.utc)
            duration_ms = int((end - start).total_seconds() * 1000)
            self.debug("stage_end", stage=name, duration_ms=duration_ms, status=status)

    def _emit(self, level: str, message: str, **kwargs: Any) -> None:
        payload: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": level,
            "run_id": self.run_id,
            "message": message,
        }
        payload.update(self._sanitize(kwargs))

        if self.log_format == "json":
            line = json.dumps(payload, ensure_ascii=False, default=str)
        else:
            line = self._render_text(payload)
        sys.stderr.write(line + "\n")
        sys.stderr.flush()

    def _render_text(self, payload: Dict[str, Any]) -> str:
        extras = {
            k: v
            for k, v in payload.items()
            if k not in {"timestamp", "level", "run_id", "message"}
        }
        prefix = f"[{self.name}]"
        if payload["level"] in {"warning", "error"}:
            prefix += f" {payload['level']}:"
        line = f"{prefix} {payload['message']}"
        if extras:
            line += " " + " ".join(f"{k}={v}" for k, v in extras.items())
        return line

    @staticmethod
    def _sanitize(fields: Dict[str, Any]) -> Dict[str, Any]:
        redacted: Dict[str, Any] = {}
        for key, value in fields.items():
            if GuardLogger._is_sensitive_key(key):
                redacted[key] = "***"
            else:
                redacted[key] = value
        return redacted

    @staticmethod
    def _is_sensitive_key(key: str) -> bool:
        lowered = key.lower()
        return any(token in lowered for token in ("token", "secret", "password", "api_key", "apikey"))
