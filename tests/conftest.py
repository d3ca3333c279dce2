import subprocess
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple, Union

import pytest


@dataclass
class RecordedCall:
    args: Tuple[str, ...]
    input: Optional[str]
    capture: bool
    timeout: Optional[float]


Response = Union[subprocess.CompletedProcess, BaseException]


class FakeRunner:
    """Process runner stub answering by longest matching argv prefix."""

    def __init__(
        self,
        responses: Optional[Dict[Tuple[str, ...], Response]] = None,
        installed: Sequence[str] = ("llm", "git", "jj"),
    ) -> None:
        self.responses: Dict[Tuple[str, ...], Response] = dict(responses or {})
        self.installed = set(installed)
        self.calls: List[RecordedCall] = []

    def run(
        self,
        args: Sequence[str],
        *,
        input: Optional[str] = None,
        capture: bool = True,
        timeout: Optional[float] = None,
    ) -> subprocess.CompletedProcess:
        argv = tuple(args)
        self.calls.append(RecordedCall(argv, input, capture, timeout))

        matches = [prefix for prefix in self.responses if argv[: len(prefix)] == prefix]
        if not matches:
            return completed(argv)

        response = self.responses[max(matches, key=len)]
        if isinstance(response, BaseException):
            raise response
        return response

    def which(self, name: str) -> Optional[str]:
        return f"/usr/bin/{name}" if name in self.installed else None

    def calls_to(self, *prefix: str) -> List[RecordedCall]:
        return [call for call in self.calls if call.args[: len(prefix)] == prefix]


class ByteEncoding:
    """Tokenizer stub where every UTF-8 byte is one token."""

    def __init__(self) -> None:
        self.encode_calls = 0

    def encode(self, text: str, *, disallowed_special="all") -> List[int]:
        self.encode_calls += 1
        return list(text.encode("utf-8"))

    def decode_bytes(self, tokens: Sequence[int]) -> bytes:
        return bytes(tokens)


def completed(
    args: Sequence[str] = ("git",), stdout: str = "", returncode: int = 0, stderr: str = ""
) -> subprocess.CompletedProcess:
    return subprocess.CompletedProcess(
        args=list(args), returncode=returncode, stdout=stdout, stderr=stderr
    )


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def byte_encoding() -> ByteEncoding:
    return ByteEncoding()
