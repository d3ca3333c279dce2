import sys

import click
from dotenv import load_dotenv

from lazycommit import __version__
from lazycommit.settings import set_lazycommit_log_level

from .controller import LazyCommitController
from .service import LazyCommitService


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.version_option(__version__, prog_name="lazycommit")
@click.argument("context", required=False, default="")
def run_lazycommit(debug: bool, context: str) -> None:
    """Generate a commit message for the staged changes with `llm`.

    \b
    Workflow:
      1. Detect the repository (Jujutsu is preferred over Git).
      2. Collect the staged diff, leaving out lock files and files marked
         linguist-generated=true in .gitattributes.
      3. Trim the diff to the token budget.
      4. Pipe it to `llm -s PROMPT`; the commit message is printed to stdout.

    CONTEXT is optional free-form text added to the prompt.

    \b
    Environment:
      LAZYCOMMIT_MAX_TOKENS   token budget for the diff (default 12500)
      LAZYCOMMIT_TEMPLATE     path to a prompt template file
      LAZYCOMMIT_MODEL        model passed to `llm -m`
      LAZYCOMMIT_LOG_LEVEL    log level, e.g. DEBUG
    """
    load_dotenv()

    if debug:
        set_lazycommit_log_level("DEBUG")

    controller = LazyCommitController(LazyCommitService())
    sys.exit(controller.run(context))


if __name__ == "__main__":
    run_lazycommit()
