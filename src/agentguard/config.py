from __future__ import annotations

import json
import re
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, conint, field_validator, model_validator
from pydantic.alias_generators import to_camel
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import CONFIG_FILENAME, Limits
from .errors import ConfigError
from .git import GitClient
from .models import LogFormat, PatternType

DEFAULT_ARCHITECTURE_FILE = "docs/ARCHITECTURE.md"
DEFAULT_REQUIRED_SECTIONS = ("## Section 1: Overview", "API Routes")


class _PolicyModel(BaseModel):
    """Base for policy-file models: camelCase on disk, snake_case in code."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


class CategoryConfig(_PolicyModel):
    id: str
    name: str
    emoji: str = "📦"
    pattern_type: PatternType = "exact"
    file_pattern: str
    doc_target: Optional[str] = None
    gen_command: Optional[str] = None

    @model_validator(mode="after")
    def _validate_regex(self) -> "CategoryConfig":
        if self.pattern_type == "regex":
            try:
                re.compile(self.file_pattern)
            except re.error as exc:
                raise ValueError(
                    f"category {self.id!r}: invalid regex {self.file_pattern!r} ({exc})"
                ) from exc
        return self


class ScanPathsConfig(_PolicyModel):
    env_file: str = ".env.example"
    source_dir: str = "src"


class EnvCategoryConfig(_PolicyModel):
    prefix: str
    category: str


class NarrativeConfig(_PolicyModel):
    enabled: bool = True
    review: bool = False
    narrative_triggers: List[str] = Field(default_factory=lambda: ["api-routes", "prisma", "env"])
    additional_narrative_targets: List[str] = Field(default_factory=lambda: ["README.md"])


class AutoFixConfig(_PolicyModel):
    generators: bool = True
    narrative: NarrativeConfig = Field(default_factory=NarrativeConfig)


class QualityConfig(_PolicyModel):
    required_sections: List[str] = Field(default_factory=lambda: list(DEFAULT_REQUIRED_SECTIONS))


class AgentDocsConfig(_PolicyModel):
    """Policy loaded from agent-docs.config.json."""

    categories: List[CategoryConfig] = Field(default_factory=list)
    scan_paths: ScanPathsConfig = Field(default_factory=ScanPathsConfig)
    generated_dir: str = "docs/_generated/"
    env_categories: List[EnvCategoryConfig] = Field(default_factory=list)
    docs_dir: str = "docs/"
    agent_config_file: str = ".cursorrules"
    architecture_file: str = DEFAULT_ARCHITECTURE_FILE
    auto_fix: AutoFixConfig = Field(default_factory=AutoFixConfig)
    quality: QualityConfig = Field(default_factory=QualityConfig)

    @model_validator(mode="after")
    def _validate_unique_ids(self) -> "AgentDocsConfig":
        seen: set[str] = set()
        for category in self.categories:
            if category.id in seen:
                raise ValueError(f"duplicate category id: {category.id!r}")
            seen.add(category.id)
        return self

    def narrative_targets(self) -> List[str]:
        return [self.architecture_file, *self.auto_fix.narrative.additional_narrative_targets]

    def doc_target_label(self, category: CategoryConfig) -> str:
        if category.doc_target:
            return f"{category.doc_target} in {self.architecture_file}"
        return f"Relevant section in {self.architecture_file}"


class RuntimeSettings(BaseSettings):
    """Process options read from AGENT_GUARD_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="AGENT_GUARD_",
        frozen=True,
        extra="ignore",
    )

    project_root: Optional[Path] = Field(
        default=None,
        description="Repository root. Defaults to the git toplevel, then the working directory.",
    )
    config_file: str = Field(default=CONFIG_FILENAME)
    verbose: bool = Field(default=False)
    log_format: LogFormat = Field(default="text")
    engine_command: str = Field(default="claude", description="External AI CLI executable")
    engine_timeout_s: conint(ge=1) = Field(default=Limits.ENGINE_TIMEOUT_S)
    generator_timeout_s: conint(ge=1) = Field(default=Limits.GENERATOR_TIMEOUT_S)

    @field_validator("log_format", mode="before")
    @classmethod
    def _normalize_lowercase(cls, value: str) -> str:
        if isinstance(value, str):
            return value.strip().lower()
        return value


class ConfigLoader:
    """
    Reads the policy file once and hands out the same frozen object afterwards.

    One loader is built at startup and passed to whatever needs the policy.
    """

    def __init__(self, project_root: Path, filename: str = CONFIG_FILENAME) -> None:
        self.project_root = Path(project_root)
        self.filename = filename
        self._cached: Optional[AgentDocsConfig] = None

    @property
    def path(self) -> Path:
        return self.project_root / self.filename

    def load(self) -> AgentDocsConfig:
        if self._cached is not None:
            return self._cached

        if not self.path.is_file():
            raise ConfigError(
                f"{self.filename} not found at project root ({self.project_root})."
            )

        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Invalid JSON in {self.filename}: {exc}") from exc
        except UnicodeDecodeError as exc:
            raise ConfigError(f"{self.filename} is not valid UTF-8: {exc}") from exc
        except OSError as exc:
            raise ConfigError(f"Unable to read {self.filename}: {exc}") from exc

        try:
            config = AgentDocsConfig.model_validate(raw)
        except ValidationError as exc:
            raise ConfigError(f"Invalid {self.filename}: {exc}") from exc

        self._cached = config
        return config


def resolve_path(project_root: Path, config_path: Optional[str]) -> Optional[Path]:
    """Resolve a config path relative to the project root."""
    if not config_path:
        return None
    return (Path(project_root) / config_path).resolve()


def load_settings() -> RuntimeSettings:
    try:
        return RuntimeSettings()
    except ValidationError as exc:
        raise ConfigError(f"Invalid AGENT_GUARD_* environment: {exc}") from exc


def resolve_project_root(settings: RuntimeSettings) -> Path:
    """Explicit setting, else the git toplevel, else the working directory."""
    if settings.project_root:
        return Path(settings.project_root).resolve()

    top = GitClient(Path.cwd()).toplevel()
    return top if top else Path.cwd()
