import logging
import subprocess
from typing import Callable, List, Optional

import click

from lazycommit.config import LLM_COMMAND, AppConfig
from lazycommit.errors import CollectionError, SubprocessError, TokenizationError
from lazycommit.process import ProcessRunner, SubprocessRunner
from lazycommit.prompt import build_prompt
from lazycommit.schemas import PromptData, VcsKind
from lazycommit.settings import lazycommit_logger
from lazycommit.tokens import TokenTruncator
from lazycommit.vcs import DiffCollector, detect_vcs, get_branch_name


class LazyCommitService:
    """The individual steps of generating a commit message."""

    def __init__(
        self,
        runner: Optional[ProcessRunner] = None,
        collector: Optional[DiffCollector] = None,
        truncator: Optional[TokenTruncator] = None,
        echo_err: Optional[Callable[[str], None]] = None,
        warn: Optional[Callable[[str], None]] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._logger = logger or lazycommit_logger(__name__)
        self._runner = runner or SubprocessRunner()
        self._collector = collector or DiffCollector(runner=self._runner)
        self._truncator = truncator or TokenTruncator()
        self._echo_err = echo_err or (lambda message: click.echo(message, err=True))
        self._warn = warn or (
            lambda message: click.secho(f"Warning: {message}", fg="yellow", err=True)
        )

    # --- Public API ---
    def ensure_llm_installed(self) -> None:
        if self._runner.which(LLM_COMMAND) is None:
            raise SubprocessError(
                f"'{LLM_COMMAND}' command is not installed. Please install it and try again."
            )

    def detect_vcs(self) -> VcsKind:
        vcs = detect_vcs(self._runner)
        if vcs is None:
            raise CollectionError("Neither Git nor Jujutsu repository detected.")

        self._echo_err(f"Using {vcs.display_name} for version control")
        return vcs

    def build_prompt(self, config: AppConfig, vcs: VcsKind, user_context: str) -> str:
        branch = get_branch_name(vcs, self._runner)
        self._logger.debug("Current branch: %r", branch)
        data = PromptData(branch=branch, user_context=user_context)
        return build_prompt(config.prompt_path, data, self._echo_err)

    def collect_diff(self, vcs: VcsKind) -> str:
        diff = self._collector.collect_for(vcs)
        if not diff.strip():
            raise CollectionError("No changes detected. Stage some changes first.")
        return diff

    def truncate_diff(self, diff: str, config: AppConfig) -> str:
        """Fit *diff* to the token budget, or return it as-is if tokenizing fails."""

        try:
            result = self._truncator.truncate(diff, config.max_diff_tokens)
        except TokenizationError as error:
            self._logger.warning("Tokenization failed: %s", error)
            self._warn(f"Failed to tokenize diff: {error}. Using raw diff.")
            return diff

        if result.was_truncated:
            self._echo_err(
                f"Diff truncated from {result.token_count} to at most "
                f"{config.max_diff_tokens} tokens"
            )
        return result.text

    def generate_commit_message(self, prompt: str, diff: str, config: AppConfig) -> None:
        """Run the llm command, letting it write straight to the terminal.

        Raises:
            SubprocessError: If llm cannot start, times out or exits non-zero.
        """
        args = self.build_llm_command(prompt, config.model_name)
        if config.model_name:
            self._echo_err(f"Using model: {config.model_name}")
        else:
            self._echo_err("Using default llm model")

        self._logger.debug("Running %s with %d characters of diff", args[0], len(diff))
        try:
            result = self._runner.run(
                args, input=diff, capture=False, timeout=config.llm_timeout
            )
        except subprocess.TimeoutExpired as error:
            raise SubprocessError(
                f"{LLM_COMMAND} did not finish within {error.timeout} seconds"
            ) from error
        except OSError as error:
            raise SubprocessError(f"failed to run {LLM_COMMAND}: {error}") from error

        if result.returncode != 0:
            raise SubprocessError(
                f"{LLM_COMMAND} exited with status {result.returncode}",
                returncode=result.returncode,
            )

    # --- Static helpers ---
    @staticmethod
    def build_llm_command(prompt: str, model_name: str = "") -> List[str]:
        args = [LLM_COMMAND]
        if model_name:
            args.extend(["-m", model_name])
        args.extend(["-s", prompt])
        return args
