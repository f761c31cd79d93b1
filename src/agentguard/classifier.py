from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Pattern, Sequence, Union

from .config import AgentDocsConfig, CategoryConfig
from .models import CategoryMatches, PatternType


@dataclass(frozen=True)
class ExactMatcher:
    pattern: str

    def matches(self, path: str) -> bool:
        return path == self.pattern


@dataclass(frozen=True)
class PrefixMatcher:
    prefix: str

    def matches(self, path: str) -> bool:
        return path.startswith(self.prefix)


@dataclass(frozen=True)
class RegexMatcher:
    regex: Pattern[str]

    def matches(self, path: str) -> bool:
        return self.regex.search(path) is not None


Matcher = Union[ExactMatcher, PrefixMatcher, RegexMatcher]


def build_matcher(pattern_type: PatternType, pattern: str) -> Matcher:
    if pattern_type == "exact":
        return ExactMatcher(pattern)
    if pattern_type == "startsWith":
        return PrefixMatcher(pattern)
    if pattern_type == "regex":
        return RegexMatcher(re.compile(pattern))
    raise ValueError(f"Unknown pattern type: {pattern_type!r}")


@dataclass(frozen=True)
class Category:
    id: str
    name: str
    emoji: str
    matcher: Matcher
    doc_target: str
    gen_command: Optional[str] = None

    def matches(self, path: str) -> bool:
        return self.matcher.matches(path)


def build_categories(config: AgentDocsConfig) -> List[Category]:
    """Compile configured categories, preserving declaration order."""
    return [_build_category(cat, config) for cat in config.categories]


def _build_category(cat: CategoryConfig, config: AgentDocsConfig) -> Category:
    return Category(
        id=cat.id,
        name=cat.name,
        emoji=cat.emoji,
        matcher=build_matcher(cat.pattern_type, cat.file_pattern),
        doc_target=config.doc_target_label(cat),
        gen_command=cat.gen_command or None,
    )


def categorize(files: Iterable[str], categories: Sequence[Category]) -> CategoryMatches:
    """
    Bucket each file into the first category whose matcher accepts it.

    Files matching nothing land in `unmatched`. Pure: no I/O.
    """
    result = CategoryMatches()
    for path in files:
        for category in categories:
            if category.matches(path):
                result.matches.setdefault(category.id, []).append(path)
                break
        else:
            result.unmatched.append(path)
    return result


def is_doc_file(path: str, config: AgentDocsConfig) -> bool:
    return path.startswith(config.docs_dir) or path == config.agent_config_file


def matched_categories(matches: CategoryMatches, categories: Sequence[Category]) -> List[Category]:
    """Matched categories in declaration order."""
    return [c for c in categories if c.id in matches.matches]


def generator_commands(matches: CategoryMatches, categories: Sequence[Category]) -> List[str]:
    """Distinct generator commands for matched categories, first occurrence wins."""
    commands: List[str] = []
    for category in matched_categories(matches, categories):
        if category.gen_command and category.gen_command not in commands:
            commands.append(category.gen_command)
    return commands
