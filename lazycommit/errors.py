class LazyCommitError(Exception):
    """Base exception for lazycommit errors."""


class ConfigError(LazyCommitError):
    """Raised when a configuration file cannot be loaded."""

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path


class TemplateError(LazyCommitError):
    """Raised when the prompt template cannot be read or rendered."""


class CollectionError(LazyCommitError):
    """Raised when the diff cannot be collected from the VCS."""


class TokenizationError(LazyCommitError):
    """Raised when the tokenizer cannot load, encode or decode."""


class SubprocessError(LazyCommitError):
    """Raised when the llm command cannot be run or exits non-zero."""

    def __init__(self, message: str, returncode: int | None = None) -> None:
        super().__init__(message)
        self.returncode = returncode
