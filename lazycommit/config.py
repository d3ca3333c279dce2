"""Configuration defaults and loading for lazycommit.

Configuration is resolved once at startup, in increasing precedence:

1. built-in defaults (:class:`AppConfig`),
2. the first TOML file found in :meth:`ConfigLoader.search_paths`,
3. ``LAZYCOMMIT_*`` environment variables.
"""

import logging
import os
import tomllib
from pathlib import Path
from typing import Callable, List, Optional

import click
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from lazycommit.errors import ConfigError
from lazycommit.settings import lazycommit_logger

DEFAULT_MAX_DIFF_TOKENS = 12500
TOKENIZER_ENCODING = "cl100k_base"
LLM_COMMAND = "llm"

# Always left out of the diff regardless of repository metadata.
COMMON_EXCLUDES = (
    "pnpm-lock.yaml",
    "yarn.lock",
    "package-lock.json",
)

MAX_TOKENS_ENV_VAR = "LAZYCOMMIT_MAX_TOKENS"
TEMPLATE_ENV_VAR = "LAZYCOMMIT_TEMPLATE"
MODEL_ENV_VAR = "LAZYCOMMIT_MODEL"

DEFAULT_PROMPT_TEMPLATE = """You are an expert programmer helping to write concise, informative git commit messages.
The user will provide you with a git diff, and you will respond with ONLY a commit message.

Here are the characteristics of a good commit message:
- Start with a short summary line (50-72 characters)
- Use the imperative mood ("Add feature" not "Added feature")
- Optionally include a more detailed explanatory paragraph after the summary, separated by a blank line
- Explain WHAT changed and WHY, but not HOW (that's in the diff)
- Reference relevant issue numbers if applicable (e.g. "Fixes #123")

Current branch: {{.Branch}}
User context: {{.UserContext}}

Respond with ONLY the commit message, no additional explanations, introductions, or notes."""


class AppConfig(BaseModel):
    """Settings that shape a single lazycommit run."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    max_diff_tokens: int = DEFAULT_MAX_DIFF_TOKENS
    prompt_path: str = ""
    model_name: str = ""
    llm_timeout: Optional[float] = None

    @field_validator("max_diff_tokens")
    @classmethod
    def require_positive_budget(cls, value: int) -> int:
        if value <= 0:
            raise ValueError(f"max_diff_tokens must be positive, got {value}")
        return value

    @field_validator("llm_timeout")
    @classmethod
    def require_positive_timeout(cls, value: Optional[float]) -> Optional[float]:
        if value is not None and value <= 0:
            raise ValueError(f"llm_timeout must be positive, got {value}")
        return value


class ConfigLoader:
    """Resolve :class:`AppConfig` from config files and the environment."""

    def __init__(
        self,
        get_env: Callable[[str], Optional[str]] = os.getenv,
        home: Optional[Path] = None,
        echo_err: Optional[Callable[[str], None]] = None,
        warn: Optional[Callable[[str], None]] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._logger = logger or lazycommit_logger(__name__)
        self._get_env = get_env
        self._home = home
        self._echo_err = echo_err or (lambda message: click.echo(message, err=True))
        self._warn = warn or (
            lambda message: click.secho(f"Warning: {message}", fg="yellow", err=True)
        )

    # --- Public API ---
    def search_paths(self) -> List[Path]:
        """Return candidate config files, most preferred first."""

        home = self._resolve_home()
        xdg_config_home = self._get_env("XDG_CONFIG_HOME")
        config_root = Path(xdg_config_home) if xdg_config_home else home / ".config"

        return [
            config_root / "lazycommit" / "config.toml",
            home / ".lazycommit.toml",
        ]

    def load(self) -> AppConfig:
        """Load the first existing config file and apply environment overrides.

        Raises:
            ConfigError: If the home directory is unknown or a config file
                cannot be read, parsed or validated.
        """
        config = self._load_file()
        return self.apply_env_overrides(config)

    def load_or_default(self) -> AppConfig:
        """Like :meth:`load`, but fall back to defaults when loading fails."""

        try:
            return self.load()
        except ConfigError as error:
            self._logger.warning("Config load failed: %s", error)
            self._warn(f"Error loading configuration: {error}. Using defaults.")
            return self.apply_env_overrides(AppConfig())

    def apply_env_overrides(self, config: AppConfig) -> AppConfig:
        """Return *config* updated with any ``LAZYCOMMIT_*`` variables."""

        updates: dict[str, object] = {}

        raw_max_tokens = self._get_env(MAX_TOKENS_ENV_VAR)
        if raw_max_tokens:
            max_tokens = self._parse_max_tokens(raw_max_tokens)
            if max_tokens is not None:
                updates["max_diff_tokens"] = max_tokens
                self._echo_err(f"Using max tokens from environment: {max_tokens}")

        prompt_path = self._get_env(TEMPLATE_ENV_VAR)
        if prompt_path:
            updates["prompt_path"] = prompt_path
            self._echo_err(f"Using template path from environment: {prompt_path}")

        model_name = self._get_env(MODEL_ENV_VAR)
        if model_name:
            updates["model_name"] = model_name
            self._echo_err(f"Using model from environment: {model_name}")

        if not updates:
            return config

        self._logger.debug("Environment overrides: %s", sorted(updates))
        return config.model_copy(update=updates)

    # --- Private helpers ---
    def _resolve_home(self) -> Path:
        if self._home is not None:
            return self._home
        try:
            return Path.home()
        except RuntimeError as error:
            raise ConfigError(f"could not determine home directory: {error}") from error

    def _load_file(self) -> AppConfig:
        for path in self.search_paths():
            self._logger.debug("Looking for config file at %s", path)
            if not path.is_file():
                continue

            try:
                with path.open("rb") as handle:
                    data = tomllib.load(handle)
            except (OSError, tomllib.TOMLDecodeError) as error:
                raise ConfigError(
                    f"error loading config from {path}: {error}", path=str(path)
                ) from error

            try:
                config = AppConfig.model_validate(data)
            except ValidationError as error:
                raise ConfigError(
                    f"invalid config in {path}: {error}", path=str(path)
                ) from error

            self._echo_err(f"Loaded configuration from {path}")
            return config

        self._echo_err("No configuration file found, using defaults")
        return AppConfig()

    def _parse_max_tokens(self, raw_value: str) -> Optional[int]:
        try:
            value = int(raw_value.strip())
        except ValueError:
            self._warn(f"Ignoring {MAX_TOKENS_ENV_VAR}={raw_value!r}: not an integer")
            return None

        if value <= 0:
            self._warn(f"Ignoring {MAX_TOKENS_ENV_VAR}={raw_value!r}: must be positive")
            return None

        return value
