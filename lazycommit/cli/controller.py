import logging
from typing import Callable, Optional

import click

from lazycommit.config import ConfigLoader
from lazycommit.errors import LazyCommitError
from lazycommit.settings import lazycommit_logger

from .service import LazyCommitService


class LazyCommitController:
    """Main controller orchestrating the CLI workflow."""

    def __init__(
        self,
        service: LazyCommitService,
        config_loader: Optional[ConfigLoader] = None,
        logger: Optional[logging.Logger] = None,
        echo_err: Optional[Callable[[str], None]] = None,
    ) -> None:
        self._logger = logger or lazycommit_logger(__name__)
        self._echo_err = echo_err or (
            lambda message: click.secho(message, fg="red", err=True)
        )
        self.service = service
        self.config_loader = config_loader or ConfigLoader()

    # --- Public API ---
    def run(self, user_context: str = "") -> int:
        self._logger.debug("Starting CLI controller run")

        try:
            self.service.ensure_llm_installed()
            vcs = self.service.detect_vcs()

            config = self.config_loader.load_or_default()
            self._logger.debug("Resolved config: %r", config)

            prompt = self.service.build_prompt(config, vcs, user_context)
            diff = self.service.collect_diff(vcs)
            diff = self.service.truncate_diff(diff, config)

            self.service.generate_commit_message(prompt, diff, config)
        except LazyCommitError as error:
            self._logger.debug("Run failed with %s", type(error).__name__)
            self._echo_err(f"Error: {error}")
            return 1

        self._logger.debug("Commit message generation completed successfully")
        return 0
