"""Repository detection and diff collection for Git and Jujutsu."""

import logging
import re
import subprocess
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from lazycommit.config import COMMON_EXCLUDES
from lazycommit.errors import CollectionError
from lazycommit.process import ProcessRunner, SubprocessRunner
from lazycommit.schemas import DiffRequest, VcsKind
from lazycommit.settings import lazycommit_logger

GITATTRIBUTES = ".gitattributes"

_GENERATED_ATTRIBUTE = re.compile(
    r"^(?P<pattern>[^#\s]\S*)\s+.*\blinguist-generated\s*=\s*true(?=\s|$)"
)


def parse_generated_patterns(lines: Iterable[str]) -> List[str]:
    """Return the path patterns marked ``linguist-generated=true``.

    Comment lines and lines without the attribute are skipped; nothing in a
    single line can abort the scan.
    """
    patterns: List[str] = []
    for line in lines:
        match = _GENERATED_ATTRIBUTE.match(line.strip())
        if match:
            patterns.append(match.group("pattern"))
    return patterns


def read_generated_patterns(path: Path) -> List[str]:
    """Parse a ``.gitattributes`` file.

    Raises:
        CollectionError: If the file cannot be opened or read.
    """
    try:
        with path.open("r", encoding="utf-8", errors="replace") as handle:
            return parse_generated_patterns(handle)
    except OSError as error:
        raise CollectionError(f"failed to parse {path}: {error}") from error


def build_diff_command(request: DiffRequest) -> List[str]:
    """Return the argv producing the diff described by *request*."""

    if request.vcs is VcsKind.GIT:
        args = ["git", "diff", "--cached", "--", "."]
        args.extend(f":(exclude){pattern}" for pattern in request.exclude_patterns)
    else:
        args = ["jj", "diff", "--git"]
        args.extend(f"~{pattern}" for pattern in request.exclude_patterns)
    return args


class DiffCollector:
    """Build diff requests and run them against the working copy."""

    def __init__(
        self,
        runner: Optional[ProcessRunner] = None,
        root: Path = Path("."),
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._logger = logger or lazycommit_logger(__name__)
        self._runner = runner or SubprocessRunner()
        self._root = root

    # --- Public API ---
    def build_request(self, vcs: VcsKind) -> DiffRequest:
        """Assemble the exclude patterns for *vcs* into a request."""

        patterns: List[str] = []

        attributes = self._root / GITATTRIBUTES
        if vcs is VcsKind.GIT and attributes.is_file():
            generated = read_generated_patterns(attributes)
            self._logger.debug(
                "Found %d generated patterns in %s", len(generated), attributes
            )
            patterns.extend(generated)

        patterns.extend(COMMON_EXCLUDES)
        return DiffRequest(vcs=vcs, exclude_patterns=tuple(patterns))

    def collect(self, request: DiffRequest) -> str:
        """Run the diff command and return its stdout unchanged.

        Raises:
            CollectionError: If the command cannot start or exits non-zero.
        """
        args = build_diff_command(request)
        self._logger.debug("Running command: %s", " ".join(args))

        try:
            result = self._runner.run(args)
        except OSError as error:
            raise CollectionError(f"failed to run {args[0]}: {error}") from error

        if result.returncode != 0:
            stderr = result.stderr.strip() if result.stderr else ""
            raise CollectionError(
                f"{args[0]} diff exited with status {result.returncode}"
                + (f": {stderr}" if stderr else "")
            )

        self._logger.debug("Diff length: %d characters", len(result.stdout))
        return result.stdout

    def collect_for(self, vcs: VcsKind) -> str:
        return self.collect(self.build_request(vcs))


def _succeeds(runner: ProcessRunner, args: Sequence[str]) -> bool:
    try:
        result = runner.run(args)
    except OSError:
        return False
    return result.returncode == 0


def is_git_repo(runner: ProcessRunner, root: Path = Path(".")) -> bool:
    if (root / ".git").exists():
        return True
    return _succeeds(runner, ["git", "rev-parse", "--is-inside-work-tree"])


def is_jj_repo(runner: ProcessRunner) -> bool:
    return _succeeds(runner, ["jj", "status", "--quiet"])


def detect_vcs(runner: ProcessRunner, root: Path = Path(".")) -> Optional[VcsKind]:
    """Return the VCS managing *root*, preferring Jujutsu over Git."""

    if is_jj_repo(runner):
        return VcsKind.JUJUTSU
    if is_git_repo(runner, root):
        return VcsKind.GIT
    return None


def get_branch_name(vcs: VcsKind, runner: ProcessRunner) -> str:
    """Best-effort current branch or bookmark; empty string on any failure."""

    if vcs is VcsKind.GIT:
        args = ["git", "rev-parse", "--abbrev-ref", "HEAD"]
    else:
        args = ["jj", "log", "--no-graph", "-T", "local_bookmarks", "--limit", "1"]

    try:
        result: subprocess.CompletedProcess[str] = runner.run(args)
    except OSError:
        return ""

    if result.returncode != 0:
        return ""
    return (result.stdout or "").strip()
