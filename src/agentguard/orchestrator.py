from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from .audit_log import AuditLogEntry, append_entry, write_signal_file
from .classifier import Category, build_categories, categorize, generator_commands, is_doc_file
from .config import AgentDocsConfig
from .constants import ACTION_NARRATIVE, ACTION_REGENERATED, ENGINE_INSTALL_HINT, Limits
from .engine.claude_runner import ClaudeRunner, detect_engine
from .engine.prompt_builder import build_manual_prompt, build_narrative_prompt
from .generators import run_shell
from .git import GitClient
from .logging import GuardLogger
from .models import CategoryMatches, FixResult, RunOutcome, RunState
from .review import ask, has_interactive_terminal, is_accepted
from .terminal import (
    print_auto_fix_summary,
    print_change_listing,
    print_discarded,
    print_positive_note,
    print_progress,
    print_prompt_fallback,
    print_review_diffs,
)

REVIEW_QUESTION = "  Stage these changes? (y/n): "
REJECTED_BY_REVIEW = "Changes rejected by review."


class RemediationOrchestrator:
    """
    Drives one pre-commit pass over the staged files.

    States:
    - nothing staged, or nothing doc-relevant: silent
    - doc-relevant code staged together with docs: positive note
    - doc-relevant code without docs: run generators, then the narrative
      engine, and fall back to a copy-paste prompt when either falls short

    Every exit except "nothing staged" appends one audit-log entry.
    """

    def __init__(
        self,
        config: AgentDocsConfig,
        project_root: Path,
        *,
        git: Optional[GitClient] = None,
        logger: Optional[GuardLogger] = None,
        runner: Optional[ClaudeRunner] = None,
        engine_command: str = "claude",
        generator_timeout_s: float = Limits.GENERATOR_TIMEOUT_S,
    ) -> None:
        self.config = config
        self.project_root = Path(project_root)
        self.git = git or GitClient(self.project_root)
        self.logger = logger or GuardLogger("pre-commit-doc-check")
        self.engine_command = engine_command
        self.runner = runner or ClaudeRunner(command=engine_command)
        self.generator_timeout_s = generator_timeout_s
        self.categories: List[Category] = build_categories(config)

    async def run(self) -> RunOutcome:
        staged = self.git.staged_files()
        self.logger.debug("Staged files", total=len(staged))
        for path in staged:
            self.logger.debug("staged", path=path)

        if not staged:
            self.logger.debug("No staged files. Nothing to check.")
            return RunOutcome(state=RunState.NO_STAGED_FILES)

        outcome = RunOutcome(state=RunState.PROMPT_FALLBACK, mode="prompt")
        try:
            await self._remediate(staged, outcome)
        finally:
            # Written even when a step raised part-way through.
            self._finish(outcome)
        return outcome

    async def _remediate(self, staged: List[str], outcome: RunOutcome) -> None:
        matches = categorize(staged, self.categories)
        docs_staged = any(is_doc_file(path, self.config) for path in staged)
        self._log_classification(matches, docs_staged)

        if not matches.has_matches():
            self.logger.debug("No doc-relevant changes detected.")
            outcome.state, outcome.mode = RunState.NO_DOC_RELEVANT_CHANGES, "skip"
            return

        if docs_staged:
            print_positive_note()
            outcome.state, outcome.mode = RunState.DOCS_UPDATED, "sync"
            return

        if self.config.auto_fix.generators:
            with self.logger.stage("generators"):
                if await self._run_generators(matches, outcome):
                    outcome.mode = "auto-fix"

        if self._narrative_triggered(matches):
            with self.logger.stage("narrative"):
                if await self._run_narrative(matches, outcome):
                    outcome.mode = "auto-fix"

        if outcome.results and not outcome.error:
            outcome.state = RunState.AUTO_FIXED
            print_auto_fix_summary(outcome.results)
        else:
            print_change_listing(matches, self.categories, generator_commands(matches, self.categories))
            print_prompt_fallback(
                outcome.error,
                build_manual_prompt(matches, self.categories, self.config.architecture_file),
            )

    def _log_classification(self, matches: CategoryMatches, docs_staged: bool) -> None:
        for category in self.categories:
            files = matches.matches.get(category.id)
            if files:
                self.logger.debug("Category match", category=category.name, files=len(files))
        self.logger.debug("Unmatched (ignored)", files=len(matches.unmatched))
        self.logger.debug(
            "Classification",
            doc_files_staged=docs_staged,
            has_doc_relevant=matches.has_matches(),
        )

    def _narrative_triggered(self, matches: CategoryMatches) -> bool:
        narrative = self.config.auto_fix.narrative
        if not narrative.enabled:
            return False
        return any(cid in narrative.narrative_triggers for cid in matches.category_ids())

    async def _run_generators(self, matches: CategoryMatches, outcome: RunOutcome) -> bool:
        ran = False
        for command in generator_commands(matches, self.categories):
            result = await run_shell(command, self.project_root, self.generator_timeout_s)
            if result.ok:
                outcome.results.append(FixResult(file=command, action=ACTION_REGENERATED))
                ran = True
            else:
                reason = "timed out" if result.timed_out else (result.stderr.strip() or f"exit {result.returncode}")
                self.logger.debug("Generator failed", command=command, error=reason)

        if ran:
            # Generated files may be unchanged; a failed add is expected then.
            self.git.add(self.config.generated_dir)
        return ran

    async def _run_narrative(self, matches: CategoryMatches, outcome: RunOutcome) -> bool:
        engine = detect_engine(self.project_root, self.engine_command)
        if not engine:
            outcome.error = f"Claude Code not found on PATH. Install: {ENGINE_INSTALL_HINT}"
            return False

        outcome.engine = engine
        targets = self.config.narrative_targets()
        prompt = build_narrative_prompt(
            matches,
            self.categories,
            self.config.architecture_file,
            targets,
            self.config.agent_config_file,
        )
        result = await self.runner.invoke(prompt, self.project_root, print_progress)
        if not result.success:
            outcome.error = result.error
            return False

        if self.config.auto_fix.narrative.review and has_interactive_terminal():
            if not await self._review(targets):
                for target in targets:
                    # Target may not exist or be unchanged.
                    self.git.checkout(target)
                print_discarded()
                outcome.error = REJECTED_BY_REVIEW
                return False

        for target in targets:
            if self.git.add(target).ok:
                outcome.results.append(FixResult(file=target, action=ACTION_NARRATIVE))

        signal_error = write_signal_file(self.project_root)
        if signal_error:
            self.logger.debug(signal_error)
        return True

    async def _review(self, targets: List[str]) -> bool:
        print_review_diffs([(target, self.git.diff(target)) for target in targets])
        answer = await ask(REVIEW_QUESTION)
        return is_accepted(answer)

    def _finish(self, outcome: RunOutcome) -> None:
        entry = AuditLogEntry(
            mode=outcome.mode or "prompt",
            commit_hash=self.git.short_head(),
            engine=outcome.engine,
            generator_results=tuple(outcome.generator_results),
            narrative_results=tuple(outcome.narrative_results),
        )
        # Audit logging never blocks a commit; the error is only surfaced in verbose mode.
        log_error = append_entry(self.project_root, entry)
        if log_error:
            self.logger.debug(log_error)
