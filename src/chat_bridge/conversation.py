"""Normalized conversation types shared by every provider adapter."""

import base64
import time
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Tuple, Union

USER = "user"
MODEL = "model"

_ROLES = (USER, MODEL)

_SENSORY_PREFIXES = ("audio/", "video/")


@dataclass(frozen=True)
class TextPart:
    """A plain text content unit."""

    text: str


@dataclass(frozen=True)
class BinaryPart:
    """Inline media carried as base64 text.

    Attributes:
        mime_type: Media type, e.g. "image/png" or "audio/webm"
        data: Base64 transport encoding of the payload
    """

    mime_type: str
    data: str

    @classmethod
    def from_bytes(cls, mime_type: str, payload: bytes) -> "BinaryPart":
        return cls(mime_type=mime_type, data=base64.b64encode(payload).decode("ascii"))

    @property
    def raw(self) -> bytes:
        """Decoded payload bytes."""
        return base64.b64decode(self.data)

    @property
    def is_sensory(self) -> bool:
        """True for audio and video media, which need a transcription pass."""
        return self.mime_type.startswith(_SENSORY_PREFIXES)

    @property
    def data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.data}"


Part = Union[TextPart, BinaryPart]


def is_sensory_part(part: Part) -> bool:
    return isinstance(part, BinaryPart) and part.is_sensory


@dataclass(frozen=True)
class ConversationTurn:
    """One immutable message in a conversation.

    A turn always carries at least one part. Turns are appended to a
    conversation's history once an exchange completes and are never
    reordered or edited afterwards.
    """

    role: str
    parts: Tuple[Part, ...]
    timestamp: float = field(default_factory=time.time)

    def __post_init__(self) -> None:
        if self.role not in _ROLES:
            raise ValueError(f"Unknown role '{self.role}'. Expected one of: {', '.join(_ROLES)}")
        # Accept any sequence but store a tuple so the turn stays hashable.
        object.__setattr__(self, "parts", tuple(self.parts))
        if not self.parts:
            raise ValueError("A conversation turn needs at least one part")

    @classmethod
    def user(cls, parts: Sequence[Part], timestamp: Optional[float] = None) -> "ConversationTurn":
        return cls(USER, tuple(parts), time.time() if timestamp is None else timestamp)

    @classmethod
    def model(cls, text: str, timestamp: Optional[float] = None) -> "ConversationTurn":
        return cls(MODEL, (TextPart(text),), time.time() if timestamp is None else timestamp)

    @property
    def first_text(self) -> Optional[str]:
        for part in self.parts:
            if isinstance(part, TextPart) and part.text:
                return part.text
        return None


def build_user_parts(text: str, attachments: Iterable[BinaryPart] = ()) -> List[Part]:
    """Collect the parts of one user action.

    Blank text is dropped; attachments follow the text in the order given.
    The result may be empty, in which case no exchange should be started.
    """
    parts: List[Part] = []
    stripped = (text or "").strip()
    if stripped:
        parts.append(TextPart(stripped))
    parts.extend(attachments)
    return parts


@dataclass(frozen=True)
class UsageReport:
    """Token usage as reported by the upstream service.

    All counts are zero when the upstream omitted usage data.
    """

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    @classmethod
    def empty(cls) -> "UsageReport":
        return cls()

    @property
    def is_empty(self) -> bool:
        return not (self.prompt_tokens or self.completion_tokens or self.total_tokens)


@dataclass(frozen=True)
class CallResult:
    """Generated text plus the estimated cost of producing it, in USD."""

    text: str
    cost: float = 0.0

    def __post_init__(self) -> None:
        if self.cost < 0:
            raise ValueError("Cost cannot be negative")
