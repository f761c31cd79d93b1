from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Optional, Sequence

from .config import ConfigLoader, load_settings, resolve_project_root
from .constants import ExitCode
from .engine.claude_runner import ClaudeRunner
from .errors import ConfigError
from .logging import GuardLogger
from .orchestrator import RemediationOrchestrator

HOOK_NAME = "pre-commit-doc-check"


def _parse_args(argv: Optional[Sequence[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="agent-guard-pre-commit",
        description=(
            "Detect doc-relevant staged changes and update docs or print a prompt. "
            "Always exits 0: this is a reminder, never a gate."
        ),
    )
    parser.add_argument("--verbose", action="store_true", help="Print diagnostics to stderr")
    return parser.parse_args(argv)


def _report_config_error(exc: ConfigError) -> None:
    sys.stderr.write(f"✗ {exc}\n")
    sys.stderr.write("  Create agent-docs.config.json at the project root.\n")
    sys.stderr.flush()


async def async_main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)

    try:
        settings = load_settings()
        project_root = resolve_project_root(settings)
        config = ConfigLoader(project_root, settings.config_file).load()
    except ConfigError as exc:
        _report_config_error(exc)
        return int(exc.exit_code)

    logger = GuardLogger(
        HOOK_NAME,
        verbose=args.verbose or settings.verbose,
        log_format=settings.log_format,
    )
    logger.debug("--verbose mode", project_root=str(project_root))

    try:
        orchestrator = RemediationOrchestrator(
            config,
            project_root,
            logger=logger,
            runner=ClaudeRunner(
                command=settings.engine_command,
                timeout_s=settings.engine_timeout_s,
            ),
            engine_command=settings.engine_command,
            generator_timeout_s=settings.generator_timeout_s,
        )
        outcome = await orchestrator.run()
        logger.debug("Run complete", state=outcome.state.value, mode=outcome.mode or "-")
    except Exception as exc:
        logger.debug("Unexpected error", error=str(exc))

    return int(ExitCode.SUCCESS)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point."""
    return asyncio.run(async_main(argv))


if __name__ == "__main__":
    sys.exit(main())
