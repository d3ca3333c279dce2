"""Generate commit messages from staged changes with the ``llm`` command."""

__version__ = "0.1.0"
