"""Subprocess access behind a small, injectable interface."""

import shutil
import subprocess
from typing import Optional, Protocol, Sequence


class ProcessRunner(Protocol):
    """Anything able to run a command and report how it went."""

    def run(
        self,
        args: Sequence[str],
        *,
        input: Optional[str] = None,
        capture: bool = True,
        timeout: Optional[float] = None,
    ) -> subprocess.CompletedProcess[str]:
        ...

    def which(self, name: str) -> Optional[str]:
        ...


class SubprocessRunner:
    """Default :class:`ProcessRunner` backed by :func:`subprocess.run`.

    With ``capture=False`` the child inherits stdout and stderr, so its output
    reaches the terminal as it is produced.

    Raises ``OSError`` (usually ``FileNotFoundError``) when the binary cannot
    be started and ``subprocess.TimeoutExpired`` when *timeout* elapses.
    """

    def run(
        self,
        args: Sequence[str],
        *,
        input: Optional[str] = None,
        capture: bool = True,
        timeout: Optional[float] = None,
    ) -> subprocess.CompletedProcess[str]:
        return subprocess.run(
            list(args),
            input=input,
            capture_output=capture,
            text=True,
            encoding="utf-8",
            errors="replace",
            check=False,
            timeout=timeout,
        )

    def which(self, name: str) -> Optional[str]:
        return shutil.which(name)
