from __future__ import annotations

import sys
from typing import Optional, Sequence

from .classifier import Category, matched_categories
from .constants import Limits
from .formatting import file_count
from .models import CategoryMatches, FixResult

BOX_WIDTH = 45


def _write(text: str) -> None:
    sys.stderr.write(text)
    sys.stderr.flush()


def get_emoji(file_path: str) -> str:
    if "api-routes" in file_path or "route." in file_path:
        return "📡"
    if "prisma" in file_path or "model" in file_path:
        return "🗄️"
    if "env" in file_path:
        return "🔑"
    if "ARCHITECTURE" in file_path:
        return "📄"
    if "README" in file_path:
        return "📖"
    return "📝"


def print_auto_fix_summary(results: Sequence[FixResult]) -> None:
    lines = ["", "✅ agent-guard auto-updated docs:"]
    for result in results:
        detail = f" ({result.detail})" if result.detail else ""
        lines.append(f"  {get_emoji(result.file)} {result.file} — {result.action}{detail}")
    _write("\n".join(lines) + "\n\n")


def print_progress(message: str) -> None:
    _write(f"  {message}\n")


def print_positive_note() -> None:
    _write("\n✓ Doc-relevant changes detected — docs also updated. Nice!\n\n")


def print_change_listing(
    matches: CategoryMatches,
    categories: Sequence[Category],
    commands: Sequence[str],
) -> None:
    limit = Limits.LISTING_FILES_PER_CATEGORY
    lines = [
        "",
        "⚠️  Documentation may need updating",
        "━" * 34,
        "",
        "Changed:",
    ]
    for category in matched_categories(matches, categories):
        files = matches.matches[category.id]
        lines.append(f"  {category.emoji}  {category.name} {file_count(len(files))}:")
        for path in files[:limit]:
            lines.append(f"     - {path}")
        if len(files) > limit:
            lines.append(f"     ... and {len(files) - limit} more")

    if commands:
        lines.append("")
        lines.append("Run these inventory commands:")
        lines.extend(f"  {cmd}" for cmd in commands)
    _write("\n".join(lines) + "\n")


def print_prompt_fallback(reason: Optional[str], prompt: str) -> None:
    parts = []
    if reason:
        parts.append(f"\n⚠️  {reason}\n")
    title = "  Claude Code Prompt (copy-paste this):"
    parts.extend(
        [
            "\n",
            "┌" + "─" * BOX_WIDTH + "┐\n",
            "│" + title.ljust(BOX_WIDTH) + "│\n",
            "└" + "─" * BOX_WIDTH + "┘\n",
            "\n",
            prompt,
            "\n\n",
        ]
    )
    _write("".join(parts))


def print_review_diffs(diffs: Sequence[tuple[str, str]]) -> None:
    lines = ["", "📋 Review AI doc changes:"]
    for target, diff in diffs:
        if diff.strip():
            lines.append("")
            lines.append(f"--- {target} ---")
            lines.append(diff.rstrip("\n"))
    _write("\n".join(lines) + "\n")


def print_discarded() -> None:
    _write("  AI changes discarded.\n")
