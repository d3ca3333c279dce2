"""Prompt template loading and rendering.

Templates use the ``{{.Branch}}`` / ``{{.UserContext}}`` placeholder syntax,
so prompt files written for other lazycommit releases keep working. Apart from
``{{/* comments */}}`` and the ``{{-`` / ``-}}`` trim markers, anything else
inside ``{{ }}`` is an error.
"""

import re
from pathlib import Path
from typing import Callable, Optional, Tuple

from lazycommit.config import DEFAULT_PROMPT_TEMPLATE
from lazycommit.errors import TemplateError
from lazycommit.schemas import PromptData
from lazycommit.settings import lazycommit_logger

logger = lazycommit_logger(__name__)

_ACTION = re.compile(r"\{\{(?P<inner>.*?)\}\}", re.DOTALL)
_TEMPLATE_SPACE = " \t\r\n"
_FIELD = re.compile(r"\.(?P<name>[A-Za-z_][A-Za-z0-9_]*)")


def load_template(prompt_path: str = "") -> Tuple[str, Optional[Path]]:
    """Return the template text and the file it came from.

    The embedded default is used when *prompt_path* is empty or does not
    point to an existing file; the returned path is then ``None``.

    Raises:
        TemplateError: If the file exists but cannot be read.
    """
    if prompt_path:
        path = Path(prompt_path).expanduser()
        if path.is_file():
            try:
                return path.read_text(encoding="utf-8"), path
            except (OSError, UnicodeDecodeError) as error:
                raise TemplateError(f"failed to read template file: {error}") from error
        logger.debug("Template %s not found, using the default", path)

    return DEFAULT_PROMPT_TEMPLATE, None


def _parse_action(inner: str) -> Tuple[bool, str, bool]:
    """Split ``{{ ... }}`` contents into (trim left, body, trim right)."""

    # a trim marker is a dash followed (or preceded) by whitespace, as in
    # "{{- .Branch -}}"; "{{-3}}" is not one
    trim_left = len(inner) > 1 and inner[0] == "-" and inner[1] in _TEMPLATE_SPACE
    if trim_left:
        inner = inner[1:]
    trim_right = len(inner) > 1 and inner[-1] == "-" and inner[-2] in _TEMPLATE_SPACE
    if trim_right:
        inner = inner[:-1]
    return trim_left, inner.strip(_TEMPLATE_SPACE), trim_right


def render_prompt(template: str, data: PromptData) -> str:
    """Substitute *data* into *template*.

    Besides the two fields, ``{{/* comments */}}`` render as nothing and the
    ``{{-`` / ``-}}`` markers trim whitespace from the adjacent template text.

    Raises:
        TemplateError: On an unknown field or an unterminated ``{{``.
    """
    values = data.placeholders()

    def substitute(body: str) -> str:
        if body.startswith("/*") and body.endswith("*/") and len(body) >= 4:
            return ""
        field = _FIELD.fullmatch(body)
        if field is None or field.group("name") not in values:
            raise TemplateError(
                f"failed to execute template: unknown field {{{{{body}}}}}"
            )
        return values[field.group("name")]

    rendered = []
    position = 0
    trim_next = False
    for match in _ACTION.finditer(template):
        trim_left, body, trim_right = _parse_action(match.group("inner"))
        text = template[position:match.start()]
        if trim_next:
            text = text.lstrip(_TEMPLATE_SPACE)
        if trim_left:
            text = text.rstrip(_TEMPLATE_SPACE)
        rendered.append(text)
        rendered.append(substitute(body))
        position = match.end()
        trim_next = trim_right

    tail = template[position:]
    if "{{" in tail:
        raise TemplateError("failed to parse template: unclosed action")
    if trim_next:
        tail = tail.lstrip(_TEMPLATE_SPACE)
    rendered.append(tail)

    return "".join(rendered)


def build_prompt(
    prompt_path: str,
    data: PromptData,
    echo_err: Callable[[str], None],
) -> str:
    """Load and render the prompt, reporting which template was used."""

    template, source = load_template(prompt_path)
    if source is not None:
        echo_err(f"Using template from: {source}")
    else:
        echo_err("Using default embedded template")
    return render_prompt(template, data)
