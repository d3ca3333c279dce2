from enum import Enum
from typing import Tuple

from pydantic import BaseModel, ConfigDict, field_validator


class VcsKind(str, Enum):
    GIT = "git"
    JUJUTSU = "jj"

    @property
    def display_name(self) -> str:
        return "Git" if self is VcsKind.GIT else "Jujutsu"


class DiffRequest(BaseModel):
    """What to diff and which paths to leave out of it."""

    model_config = ConfigDict(frozen=True)

    vcs: VcsKind
    exclude_patterns: Tuple[str, ...] = ()

    @field_validator("exclude_patterns")
    @classmethod
    def dedupe_patterns(cls, value: Tuple[str, ...]) -> Tuple[str, ...]:
        # dict keeps first-seen order
        return tuple(dict.fromkeys(pattern for pattern in value if pattern))


class TruncationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    was_truncated: bool
    token_count: int


class PromptData(BaseModel):
    """Values substituted into the prompt template."""

    model_config = ConfigDict(frozen=True)

    branch: str = ""
    user_context: str = ""

    def placeholders(self) -> dict[str, str]:
        return {"Branch": self.branch, "UserContext": self.user_context}
