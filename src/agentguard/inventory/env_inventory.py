"""
Environment variable inventory.

Reads the env template (`scanPaths.envFile`), scans `scanPaths.sourceDir` for
references, and writes `<generatedDir>/env-vars.md`. Wired into categories as a
`genCommand` target.
"""

from __future__ import annotations

import re
import sys
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Set

from ..config import AgentDocsConfig, ConfigLoader, EnvCategoryConfig, load_settings, resolve_path, resolve_project_root
from ..constants import ExitCode
from ..errors import ConfigError

OUTPUT_FILENAME = "env-vars.md"
SOURCE_SUFFIXES = {".ts", ".tsx", ".js", ".mjs", ".cjs", ".py"}
SKIP_DIRS = {"node_modules", ".git", "__pycache__", ".venv", "dist", "build"}

_VAR_NAME = re.compile(r"^[A-Z][A-Z0-9_]*$")
_REF_PATTERNS = (
    re.compile(r"process\.env\.([A-Z][A-Z0-9_]*)"),
    re.compile(r"os\.environ\[\s*['\"]([A-Z][A-Z0-9_]*)['\"]\s*\]"),
    re.compile(r"os\.environ\.get\(\s*['\"]([A-Z][A-Z0-9_]*)['\"]"),
    re.compile(r"os\.getenv\(\s*['\"]([A-Z][A-Z0-9_]*)['\"]"),
)


@dataclass
class EnvVar:
    name: str
    value: str
    category: str
    is_placeholder: bool = False
    in_code: bool = False

    @property
    def has_value(self) -> bool:
        return bool(self.value)


@dataclass
class EnvInventory:
    variables: List[EnvVar] = field(default_factory=list)
    code_refs: Dict[str, Set[str]] = field(default_factory=dict)

    def undocumented(self) -> List[tuple[str, List[str]]]:
        documented = {v.name for v in self.variables}
        return sorted(
            (name, sorted(files)) for name, files in self.code_refs.items() if name not in documented
        )


def categorize_env_var(name: str, rules: Sequence[EnvCategoryConfig]) -> str:
    """Most specific (longest) matching prefix wins."""
    for rule in sorted(rules, key=lambda r: len(r.prefix), reverse=True):
        if name.startswith(rule.prefix):
            return rule.category
    return "Other"


def is_placeholder_value(value: str) -> bool:
    if not value:
        return False
    return (
        value.startswith(("your-", "sk-ant-", "https://your-", "SG.xxxx"))
        or "YOUR_" in value
        or "your_" in value
        or "xxxx" in value
        or value == "http://localhost:3000"
        or value.endswith("-here")
        or "@yourcompany.com" in value
    )


def parse_env_text(text: str, rules: Sequence[EnvCategoryConfig]) -> List[EnvVar]:
    variables: List[EnvVar] = []
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or "=" not in stripped:
            continue
        name, _, value = stripped.partition("=")
        name = name.strip()
        value = value.strip()
        if not _VAR_NAME.match(name):
            continue
        variables.append(
            EnvVar(
                name=name,
                value=value,
                category=categorize_env_var(name, rules),
                is_placeholder=is_placeholder_value(value),
            )
        )
    return variables


def scan_env_refs(source_dir: Path, project_root: Path) -> Dict[str, Set[str]]:
    refs: Dict[str, Set[str]] = {}
    if not source_dir.is_dir():
        return refs
    for path in sorted(source_dir.rglob("*")):
        if not path.is_file() or path.suffix not in SOURCE_SUFFIXES:
            continue
        if any(part in SKIP_DIRS for part in path.relative_to(source_dir).parts):
            continue
        try:
            content = path.read_text(encoding="utf-8", errors="ignore")
        except OSError:
            continue
        rel = path.relative_to(project_root).as_posix()
        for pattern in _REF_PATTERNS:
            for name in pattern.findall(content):
                refs.setdefault(name, set()).add(rel)
    return refs


def build_inventory(config: AgentDocsConfig, project_root: Path) -> EnvInventory:
    env_path = resolve_path(project_root, config.scan_paths.env_file)
    source_dir = resolve_path(project_root, config.scan_paths.source_dir)

    variables: List[EnvVar] = []
    if env_path and env_path.is_file():
        variables = parse_env_text(env_path.read_text(encoding="utf-8"), config.env_categories)

    refs = scan_env_refs(source_dir, Path(project_root).resolve()) if source_dir else {}
    for var in variables:
        var.in_code = var.name in refs
    return EnvInventory(variables=variables, code_refs=refs)


def render_markdown(
    inventory: EnvInventory,
    env_file: str,
    source_dir: str,
    generated_at: Optional[datetime] = None,
) -> str:
    now = (generated_at or datetime.now(timezone.utc)).strftime("%Y-%m-%d %H:%M:%S")
    md: List[str] = [
        "# Environment Variables Inventory (Auto-Generated)",
        "",
        "> This file is auto-generated by `agent-guard-gen-env`. Do not edit manually.",
        f"> Generated: {now}",
        f"> Total: {len(inventory.variables)} variables in {env_file}, "
        f"{len(inventory.code_refs)} unique env references in `{source_dir}/`",
        "",
        "## Variables by Category",
        "",
        "| Variable | Category | Has Value | In Code |",
        "|----------|----------|-----------|---------|",
    ]

    grouped: Dict[str, List[EnvVar]] = {}
    for var in inventory.variables:
        grouped.setdefault(var.category, []).append(var)
    for category, variables in grouped.items():
        for var in variables:
            if var.has_value:
                has_value = "placeholder" if var.is_placeholder else "default"
            else:
                has_value = "empty"
            in_code = "✓" if var.in_code else "—"
            md.append(f"| `{var.name}` | {category} | {has_value} | {in_code} |")
    md.append("")

    undocumented = inventory.undocumented()
    if undocumented:
        md.extend(
            [
                f"## ⚠️ Undocumented — In Code but Missing from {env_file}",
                "",
                f"These variables are referenced in `{source_dir}/` but are not defined in `{env_file}`.",
                "They may be injected by the platform or may indicate missing documentation.",
                "",
                "| Variable | Referenced In |",
                "|----------|---------------|",
            ]
        )
        for name, files in undocumented:
            shown = ", ".join(files[:3])
            if len(files) > 3:
                shown += f" (+{len(files) - 3} more)"
            md.append(f"| `{name}` | {shown} |")
        md.append("")
    else:
        md.extend(
            [
                "## ✓ All Env References Documented",
                "",
                f"No undocumented env references found in `{source_dir}/`.",
                "",
            ]
        )
    return "\n".join(md)


def write_inventory(config: AgentDocsConfig, project_root: Path) -> tuple[Path, EnvInventory]:
    inventory = build_inventory(config, project_root)
    output_dir = resolve_path(project_root, config.generated_dir) or Path(project_root)
    output_path = output_dir / OUTPUT_FILENAME
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(
        render_markdown(inventory, config.scan_paths.env_file, config.scan_paths.source_dir.rstrip("/")),
        encoding="utf-8",
    )
    return output_path, inventory


def main(argv: Optional[Sequence[str]] = None) -> int:
    try:
        settings = load_settings()
        project_root = resolve_project_root(settings)
        config = ConfigLoader(project_root, settings.config_file).load()
    except ConfigError as exc:
        print(f"✗ {exc}", file=sys.stderr)
        return int(exc.exit_code)

    output_path, inventory = write_inventory(config, project_root)
    print(
        f"✓ Generated {output_path.name}: {len(inventory.variables)} variables, "
        f"{len(inventory.undocumented())} undocumented references"
    )
    return int(ExitCode.SUCCESS)


if __name__ == "__main__":
    sys.exit(main())
