# src/memowiki/config.py
"""Configuration system for memowiki.

This module handles loading settings from environment variables and INI files,
providing sensible defaults, and computing derived paths for
the .codewiki directory structure.

The resulting Config is a plain immutable value. Callers build it once with
load_settings() and pass it to each component explicitly.
"""

from configparser import ConfigParser
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional
import os

from memowiki.constants.files import (
    CACHE_FILENAME,
    CATEGORY_DIRS,
    MANIFEST_FILENAME,
    SUMMARY_INDEX_FILENAME,
)
from memowiki.constants.generation import (
    DEFAULT_BACKOFF_FACTOR,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_RETRY_DELAY,
    SYNTHESIS_TEMPERATURE,
)
from memowiki.constants.llm import (
    DEFAULT_OLLAMA_ENDPOINT,
    DEFAULT_PROVIDER,
    DEFAULT_TEMPERATURE,
    MAX_TOKENS,
    PROVIDER_DEFAULT_MODELS,
    PROVIDERS_REQUIRING_KEY,
)
from memowiki.constants.search import DEFAULT_SEARCH_LIMIT


class ConfigError(Exception):
    """Raised when configuration validation fails."""

    pass


# Schema: section -> key -> (type, default, min, max, description)
CONFIG_SCHEMA: dict[str, dict[str, tuple[type, Any, Any, Any, str]]] = {
    "generation": {
        "max_attempts": (
            int, DEFAULT_MAX_ATTEMPTS, 1, 10, "Backend attempts per artifact before failing"
        ),
        "retry_delay": (
            float, DEFAULT_RETRY_DELAY, 0.0, 60.0, "Seconds to wait before the first retry"
        ),
        "backoff_factor": (
            float, DEFAULT_BACKOFF_FACTOR, 1.0, 10.0, "Delay multiplier per retry (1.0 = fixed)"
        ),
        "temperature": (
            float, SYNTHESIS_TEMPERATURE, 0.0, 1.0, "LLM temperature for documentation"
        ),
    },
    "llm": {
        "max_tokens": (int, MAX_TOKENS, 256, 32768, "Max response tokens"),
        "default_temperature": (float, DEFAULT_TEMPERATURE, 0.0, 2.0, "Default LLM temperature"),
    },
    "paths": {
        "wiki_dir": (str, ".codewiki", None, None, "Wiki directory name"),
        "ignore_file": (str, ".memowikiignore", None, None, "Ignore file name"),
        "logs_dir": (str, ".memowiki-logs", None, None, "Logs directory name"),
    },
    "search": {
        "enable_semantic_search": (bool, False, None, None, "Index artifacts into ChromaDB"),
        "result_limit": (int, DEFAULT_SEARCH_LIMIT, 1, 100, "Default search results to return"),
    },
}


@dataclass(frozen=True)
class GenerationConfig:
    """Generation and retry configuration."""

    max_attempts: int
    retry_delay: float
    backoff_factor: float
    temperature: float


@dataclass(frozen=True)
class LLMConfig:
    """LLM client configuration."""

    max_tokens: int
    default_temperature: float


@dataclass(frozen=True)
class PathsConfig:
    """Path names configuration."""

    wiki_dir: str
    ignore_file: str
    logs_dir: str


@dataclass(frozen=True)
class SearchConfig:
    """Semantic search configuration."""

    enable_semantic_search: bool
    result_limit: int


def _defaults(section: str) -> dict[str, Any]:
    return {key: default for key, (_, default, _, _, _) in CONFIG_SCHEMA[section].items()}


def _coerce(section: str, key: str, typ: type, raw_value: str) -> Any:
    """Convert a raw string value to the schema type.

    Raises:
        ConfigError: If the value cannot be converted.
    """
    try:
        if typ is bool:
            return raw_value.strip().lower() in ("true", "1", "yes", "on")
        if typ is int:
            return int(raw_value)
        if typ is float:
            return float(raw_value)
        return raw_value
    except ValueError as e:
        raise ConfigError(
            f"Invalid value for [{section}].{key}: {raw_value!r} (expected {typ.__name__})"
        ) from e


def _load_section(
    parser: ConfigParser,
    section: str,
    schema: dict[str, tuple[type, Any, Any, Any, str]],
    overrides: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """Load and validate a configuration section.

    Args:
        parser: ConfigParser instance with loaded config
        section: Section name to load
        schema: Schema definition for the section
        overrides: Raw string values that take precedence over the INI file

    Returns:
        Dictionary of validated configuration values

    Raises:
        ConfigError: If validation fails
    """
    result = {}
    overrides = overrides or {}

    for key, (typ, default, min_val, max_val, _) in schema.items():
        if key in overrides:
            value = _coerce(section, key, typ, overrides[key])
        elif parser.has_option(section, key):
            value = _coerce(section, key, typ, parser.get(section, key))
        else:
            value = default

        # Validate range for numeric types
        if typ in (int, float) and value is not None:
            if min_val is not None and value < min_val:
                raise ConfigError(
                    f"Value for [{section}].{key} is {value}, but minimum is {min_val}"
                )
            if max_val is not None and value > max_val:
                raise ConfigError(
                    f"Value for [{section}].{key} is {value}, but maximum is {max_val}"
                )

        result[key] = value

    return result


@dataclass(frozen=True)
class BackendIdentity:
    """The (provider, model) pair that produced an artifact."""

    provider: str
    model: str

    def to_dict(self) -> dict[str, str]:
        return {"provider": self.provider, "model": self.model}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "BackendIdentity":
        return cls(provider=str(data["provider"]), model=str(data["model"]))

    def __str__(self) -> str:
        return f"{self.provider}/{self.model}"


@dataclass(frozen=True)
class Config:
    """Complete application configuration."""

    workspace_path: Path
    provider: str = DEFAULT_PROVIDER
    model: str = PROVIDER_DEFAULT_MODELS[DEFAULT_PROVIDER]
    api_keys: Mapping[str, str] = field(default_factory=dict)
    ollama_endpoint: str = DEFAULT_OLLAMA_ENDPOINT

    generation: GenerationConfig = field(
        default_factory=lambda: GenerationConfig(**_defaults("generation"))
    )
    llm: LLMConfig = field(default_factory=lambda: LLMConfig(**_defaults("llm")))
    paths: PathsConfig = field(default_factory=lambda: PathsConfig(**_defaults("paths")))
    search: SearchConfig = field(default_factory=lambda: SearchConfig(**_defaults("search")))

    def __post_init__(self):
        """Validate provider selection and credentials."""
        if self.provider not in PROVIDER_DEFAULT_MODELS:
            known = ", ".join(sorted(PROVIDER_DEFAULT_MODELS))
            raise ConfigError(f"Unknown LLM provider {self.provider!r} (expected one of: {known})")
        if self.provider in PROVIDERS_REQUIRING_KEY and not self.api_keys.get(self.provider):
            raise ConfigError(
                f"{self.provider.upper()}_API_KEY is required when using the "
                f"{self.provider} provider"
            )

    @property
    def backend_identity(self) -> BackendIdentity:
        """Identity of the configured generation backend."""
        return BackendIdentity(provider=self.provider, model=self.model)

    @property
    def api_key(self) -> Optional[str]:
        """API key for the active provider."""
        return self.api_keys.get(self.provider)

    @property
    def llm_endpoint(self) -> Optional[str]:
        """Endpoint for the active provider (only Ollama needs one)."""
        if self.provider == "ollama":
            return self.ollama_endpoint
        return None

    @property
    def wiki_path(self) -> Path:
        """Path to the .codewiki directory (the pipeline root)."""
        return self.workspace_path / self.paths.wiki_dir

    @property
    def cache_file(self) -> Path:
        """Path to the serialized content cache."""
        return self.wiki_path / CACHE_FILENAME

    @property
    def memory_path(self) -> Path:
        """Path to documentation artifacts."""
        return self.wiki_path / CATEGORY_DIRS["documentation"]

    @property
    def diagrams_path(self) -> Path:
        """Path to structural diagram artifacts."""
        return self.wiki_path / CATEGORY_DIRS["diagram"]

    @property
    def flows_path(self) -> Path:
        """Path to control-flow diagram artifacts."""
        return self.wiki_path / CATEGORY_DIRS["flow"]

    @property
    def summaries_path(self) -> Path:
        """Path to project and implementation summaries."""
        return self.wiki_path / CATEGORY_DIRS["summary"]

    @property
    def summary_index_file(self) -> Path:
        """Path to the summary index log."""
        return self.summaries_path / SUMMARY_INDEX_FILENAME

    @property
    def manifest_file(self) -> Path:
        """Path to the wiki manifest page."""
        return self.wiki_path / MANIFEST_FILENAME

    @property
    def ignore_path(self) -> Path:
        """Path to the .memowikiignore file."""
        return self.workspace_path / self.paths.ignore_file

    @property
    def llm_log_path(self) -> Path:
        """Path to LLM query log file.

        Stored outside .codewiki so logs never show up as artifacts.
        """
        return self.workspace_path / self.paths.logs_dir / "llm-queries.jsonl"

    @property
    def chroma_path(self) -> Path:
        """Path to ChromaDB vector store directory."""
        return self.wiki_path / "chroma"


# Environment variables that override [section].key values.
_ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "MAX_ATTEMPTS": ("generation", "max_attempts"),
    "RETRY_DELAY": ("generation", "retry_delay"),
    "BACKOFF_FACTOR": ("generation", "backoff_factor"),
    "ENABLE_SEMANTIC_SEARCH": ("search", "enable_semantic_search"),
}


def load_settings(
    workspace_path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> Config:
    """Load settings from environment variables and config file.

    Every call builds a fresh Config; nothing is cached at module level.

    Args:
        workspace_path: Workspace root. Defaults to WORKSPACE_PATH or the
            current directory.
        environ: Environment mapping. Defaults to os.environ.

    Returns:
        Config populated from defaults, <workspace>/config.ini and environment.

    Raises:
        ConfigError: If validation fails or credentials are missing.
    """
    env = os.environ if environ is None else environ

    if workspace_path is None:
        workspace_path = Path(env.get("WORKSPACE_PATH") or Path.cwd())
    workspace_path = Path(workspace_path)

    parser = ConfigParser()
    config_file = workspace_path / "config.ini"
    try:
        if config_file.exists():
            parser.read(config_file)
    except PermissionError:
        pass

    overrides: dict[str, dict[str, str]] = {section: {} for section in CONFIG_SCHEMA}
    for env_name, (section, key) in _ENV_OVERRIDES.items():
        if env.get(env_name):
            overrides[section][key] = env[env_name]

    sections = {
        section: _load_section(parser, section, schema, overrides[section])
        for section, schema in CONFIG_SCHEMA.items()
    }

    provider = (env.get("LLM_PROVIDER") or DEFAULT_PROVIDER).strip().lower()
    model = env.get(f"{provider.upper()}_MODEL") or PROVIDER_DEFAULT_MODELS.get(provider, "")

    api_keys = {
        name: env[f"{name.upper()}_API_KEY"]
        for name in PROVIDERS_REQUIRING_KEY
        if env.get(f"{name.upper()}_API_KEY")
    }

    return Config(
        workspace_path=workspace_path,
        provider=provider,
        model=model,
        api_keys=api_keys,
        ollama_endpoint=env.get("OLLAMA_BASE_URL", DEFAULT_OLLAMA_ENDPOINT),
        generation=GenerationConfig(**sections["generation"]),
        llm=LLMConfig(**sections["llm"]),
        paths=PathsConfig(**sections["paths"]),
        search=SearchConfig(**sections["search"]),
    )
