"""Bound diff text to a token budget using the model's tokenizer."""

import logging
from typing import Collection, List, Literal, Optional, Protocol, Sequence, Union

import tiktoken

from lazycommit.config import TOKENIZER_ENCODING
from lazycommit.errors import TokenizationError
from lazycommit.schemas import TruncationResult
from lazycommit.settings import lazycommit_logger

TRUNCATION_NOTICE = "\n\n[Diff truncated due to size - showing first {kept} tokens]"


class Encoding(Protocol):
    """The subset of :class:`tiktoken.Encoding` the truncator relies on."""

    def encode(
        self,
        text: str,
        *,
        disallowed_special: Union[Literal["all"], Collection[str]] = "all",
    ) -> List[int]:
        ...

    def decode_bytes(self, tokens: Sequence[int]) -> bytes:
        ...


class TokenTruncator:
    """Cut text at a token boundary so it fits a model's context budget.

    Attributes:
        encoding_name (str): tiktoken encoding used when none is injected.
    """

    def __init__(
        self,
        encoding_name: str = TOKENIZER_ENCODING,
        encoding: Optional[Encoding] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._logger = logger or lazycommit_logger(__name__)
        self.encoding_name = encoding_name
        self._encoding = encoding

    # --- Public API ---
    @property
    def encoding(self) -> Encoding:
        """Load the tokenizer on first use.

        Raises:
            TokenizationError: If the encoding cannot be loaded.
        """
        if self._encoding is None:
            self._logger.debug("Loading tokenizer encoding: %s", self.encoding_name)
            try:
                self._encoding = tiktoken.get_encoding(self.encoding_name)
            except Exception as error:
                raise TokenizationError(
                    f"failed to get tokenizer {self.encoding_name!r}: {error}"
                ) from error
        return self._encoding

    def count(self, text: str) -> int:
        return len(self._encode(text))

    def truncate(self, text: str, max_tokens: int) -> TruncationResult:
        """Return *text* unchanged if it fits, otherwise a truncated copy.

        A truncated result ends with a notice saying how many tokens were
        kept, and the whole result (notice included) re-encodes to at most
        *max_tokens* tokens. When the budget is too small for the notice the
        bare prefix is returned.

        Raises:
            ValueError: If *max_tokens* is not positive.
            TokenizationError: If the tokenizer fails to load, encode or decode.
        """
        if max_tokens <= 0:
            raise ValueError(f"max_tokens must be positive, got {max_tokens}")

        tokens = self._encode(text)
        self._logger.debug(
            "Diff token count: %d (max allowed: %d)", len(tokens), max_tokens
        )

        if len(tokens) <= max_tokens:
            return TruncationResult(text=text, was_truncated=False, token_count=len(tokens))

        notice_cost = self.count(TRUNCATION_NOTICE.format(kept=max_tokens))
        truncated = None
        if notice_cost < max_tokens:
            truncated = self._fit(tokens, max_tokens - notice_cost, max_tokens, True)
        if truncated is None:
            self._logger.debug("Budget of %d tokens cannot hold the notice", max_tokens)
            truncated = self._fit(tokens, max_tokens, max_tokens, False)

        self._logger.debug("Truncated diff to %d characters", len(truncated))
        return TruncationResult(text=truncated, was_truncated=True, token_count=len(tokens))

    # --- Private helpers ---
    def _fit(
        self, tokens: List[int], keep: int, max_tokens: int, with_notice: bool
    ) -> Optional[str]:
        # Decoding then re-encoding is not always length preserving, so shrink
        # the prefix until the rendered result fits.
        while keep > 0:
            candidate = self._decode_prefix(tokens[:keep])
            if with_notice:
                candidate += TRUNCATION_NOTICE.format(kept=keep)
            if self.count(candidate) <= max_tokens:
                return candidate
            keep -= 1
        return None if with_notice else ""

    def _encode(self, text: str) -> List[int]:
        encoding = self.encoding
        try:
            # diffs may legitimately contain strings like "<|endoftext|>"
            return encoding.encode(text, disallowed_special=())
        except Exception as error:
            raise TokenizationError(f"failed to encode diff: {error}") from error

    def _decode_prefix(self, tokens: Sequence[int]) -> str:
        try:
            data = self.encoding.decode_bytes(tokens)
        except Exception as error:
            raise TokenizationError(f"failed to decode truncated tokens: {error}") from error
        # drops the partial character left when the cut lands inside a
        # multi-byte UTF-8 sequence
        return data.decode("utf-8", errors="ignore")
