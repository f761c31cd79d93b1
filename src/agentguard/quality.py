"""
Quality gate for generated and AI-written documentation.

Checks:
1. Markdown validity (no unclosed code fences)
2. Architecture file section structure
3. No placeholder text left behind (TODO, FIXME, HACK, "_Add your ... here_")

Exit codes:
  0 = all checks pass
  1 = issues found (printed for the CI log)
"""

from __future__ import annotations

import re
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from .config import DEFAULT_REQUIRED_SECTIONS, AgentDocsConfig, ConfigLoader, load_settings, resolve_path, resolve_project_root
from .constants import ExitCode
from .errors import ConfigError

FENCE = "```"

PLACEHOLDER_PATTERNS = (
    re.compile(r"\bTODO\b", re.IGNORECASE),
    re.compile(r"\bFIXME\b", re.IGNORECASE),
    re.compile(r"\bHACK\b", re.IGNORECASE),
    re.compile(r"_Add your .* here_"),
)


def check_markdown_validity(content: str) -> List[str]:
    issues: List[str] = []
    if content.count(FENCE) % 2 != 0:
        issues.append("Unclosed code block (odd number of ``` fences)")
    return issues


def check_section_structure(
    content: str,
    required_sections: Sequence[str] = DEFAULT_REQUIRED_SECTIONS,
) -> List[str]:
    return [
        f'Missing required section "{section}"'
        for section in required_sections
        if section not in content
    ]


def check_placeholders(content: str) -> List[str]:
    issues: List[str] = []
    for pattern in PLACEHOLDER_PATTERNS:
        count = len(pattern.findall(content))
        if count > 0:
            issues.append(f'Found {count} instances of "{pattern.pattern}" placeholder text')
    return issues


def _read(path: Path) -> Optional[str]:
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return None


def run_quality_checks(config: AgentDocsConfig, project_root: Path) -> List[str]:
    """Issues across the architecture file and every generated markdown file."""
    issues: List[str] = []

    arch_path = resolve_path(project_root, config.architecture_file)
    if arch_path and arch_path.is_file():
        content = _read(arch_path)
        if content is not None:
            label = arch_path.name
            found = (
                check_markdown_validity(content)
                + check_section_structure(content, config.quality.required_sections)
                + check_placeholders(content)
            )
            issues.extend(f"{label}: {issue}" for issue in found)

    gen_dir = resolve_path(project_root, config.generated_dir)
    if gen_dir and gen_dir.is_dir():
        for path in sorted(gen_dir.glob("*.md")):
            content = _read(path)
            if content is None:
                continue
            found = check_markdown_validity(content) + check_placeholders(content)
            issues.extend(f"{path.name}: {issue}" for issue in found)

    return issues


def main(argv: Optional[Sequence[str]] = None) -> int:
    try:
        settings = load_settings()
        project_root = resolve_project_root(settings)
        config = ConfigLoader(project_root, settings.config_file).load()
    except ConfigError as exc:
        print(f"✗ {exc}", file=sys.stderr)
        return int(exc.exit_code)

    issues = run_quality_checks(config, project_root)
    if issues:
        print("Documentation quality issues found:\n")
        for issue in issues:
            print(f"  ⚠️  {issue}")
        print(f"\nTotal: {len(issues)} issue(s)")
        return int(ExitCode.FAILURE)

    print("✅ All documentation quality checks passed")
    return int(ExitCode.SUCCESS)


if __name__ == "__main__":
    sys.exit(main())
