from __future__ import annotations

from typing import List, Sequence

from ..classifier import Category, generator_commands, matched_categories
from ..constants import Limits
from ..models import CategoryMatches


def build_manual_prompt(
    matches: CategoryMatches,
    categories: Sequence[Category],
    architecture_file: str,
) -> str:
    """Copy-paste prompt shown when docs could not be updated automatically."""
    limit = Limits.PROMPT_FILES_PER_CATEGORY
    lines: List[str] = [
        "The following files were changed and documentation may need updating.",
        f"Read each changed file listed below, then update {architecture_file} accordingly.",
        "",
    ]

    for category in matched_categories(matches, categories):
        files = matches.matches[category.id]
        lines.append(f"Changed {category.name}:")
        for path in files[:limit]:
            lines.append(f"- Read {path} — update {category.doc_target}")
        if len(files) > limit:
            lines.append(f"  (and {len(files) - limit} more files)")
        lines.append("")

    commands = generator_commands(matches, categories)
    if commands:
        lines.append(f"After updating {architecture_file}, run:")
        lines.extend(commands)
        lines.append("")

    lines.extend(
        [
            "Rules:",
            "- Read each file BEFORE updating docs",
            f"- Match the existing format in {architecture_file}",
            "- Do NOT modify any source code files",
        ]
    )
    return "\n".join(lines)


def build_narrative_prompt(
    matches: CategoryMatches,
    categories: Sequence[Category],
    architecture_file: str,
    targets: Sequence[str],
    agent_config_file: str = ".cursorrules",
) -> str:
    """Prompt piped to the engine; scoped to the narrative targets only."""
    limit = Limits.PROMPT_FILES_PER_CATEGORY
    target_list = ", ".join(targets)
    lines: List[str] = [
        "The following code files were changed. Update the documentation to reflect these changes.",
        "",
        f"Files you MUST update: {target_list}",
        "",
    ]

    for category in matched_categories(matches, categories):
        files = matches.matches[category.id]
        noun = "file" if len(files) == 1 else "files"
        lines.append(f"Changed {category.name} ({len(files)} {noun}):")
        for path in files[:limit]:
            lines.append(f"  - {path}")
        if len(files) > limit:
            lines.append(f"  ... and {len(files) - limit} more")
        lines.append("")

    lines.extend(
        [
            "RULES:",
            "- Read each changed source file BEFORE updating docs",
            f"- Match the existing format and section structure in {architecture_file}",
            "- Do NOT modify any source code files",
            f"- Do NOT modify {agent_config_file}, CLAUDE.md, or any agent config files",
            "- Do NOT create new files — only update existing ones",
            f"- Only update these files: {target_list}",
        ]
    )
    return "\n".join(lines)
