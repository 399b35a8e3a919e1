"""Typed data structures used by the study assistant."""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union


def new_id() -> str:
    return uuid.uuid4().hex[:12]


class Category(str, Enum):
    """Closed set of categories a material can be filed under."""

    LECTURE = "Lecture"
    READING = "Reading"
    STATUTE = "Statute"
    CASE = "Case"
    EXAM = "Exam"

    @classmethod
    def parse(cls, value: "Category | str") -> "Category":
        if isinstance(value, Category):
            return value
        for member in cls:
            if member.value.lower() == str(value).strip().lower():
                return member
        raise ValueError(f"Unknown category '{value}'")


class MaterialKind(str, Enum):
    TEXT = "text"
    FILE = "file"


class Role(str, Enum):
    USER = "user"
    MODEL = "model"
    SYSTEM = "system"


class Mode(str, Enum):
    """The single active view of the assistant."""

    DIALOGUE = "dialogue"
    EDITING = "editing"
    EXAM_PRACTICE = "exam_practice"


class AnalysisKind(str, Enum):
    OUTLINE = "outline"
    PATTERNS = "patterns"
    RULES = "rules"


@dataclass(frozen=True)
class Material:
    """One evidence item in the knowledge bank.

    ``content`` holds the note text for ``text`` materials and the base64
    encoded payload for ``file`` materials, in which case ``media_type`` is set.
    """

    id: str
    name: str
    kind: MaterialKind
    content: str
    category: Category
    media_type: Optional[str] = None

    def to_payload(self) -> Mapping[str, Any]:
        payload: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "kind": self.kind.value,
            "category": self.category.value,
        }
        if self.media_type:
            payload["media_type"] = self.media_type
        if self.kind is MaterialKind.TEXT:
            payload["content"] = self.content
        else:
            payload["encoded_size"] = len(self.content)
        return payload


@dataclass(frozen=True)
class KnowledgeContext:
    """Immutable, ordered snapshot of the materials in the store."""

    materials: Tuple[Material, ...] = ()

    def __iter__(self) -> Iterator[Material]:
        return iter(self.materials)

    def __len__(self) -> int:
        return len(self.materials)

    def __bool__(self) -> bool:
        return bool(self.materials)

    def ids(self) -> List[str]:
        return [material.id for material in self.materials]


def _monotonic_timestamp() -> float:
    return time.monotonic()


@dataclass(frozen=True)
class Turn:
    """A single message in the conversation."""

    role: Role
    content: str
    id: str = field(default_factory=new_id)
    timestamp: float = field(default_factory=_monotonic_timestamp)

    def to_payload(self) -> Mapping[str, Any]:
        return {
            "id": self.id,
            "role": self.role.value,
            "content": self.content,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class TextSegment:
    text: str


@dataclass(frozen=True)
class BlobSegment:
    """A binary payload (base64 encoded) tagged with its media type."""

    media_type: str
    data: str


Segment = Union[TextSegment, BlobSegment]


@dataclass(frozen=True)
class EvidencePayload:
    """Ordered, framed segments describing the knowledge bank to the model."""

    segments: Tuple[Segment, ...] = ()

    def __iter__(self) -> Iterator[Segment]:
        return iter(self.segments)

    def __len__(self) -> int:
        return len(self.segments)

    def __bool__(self) -> bool:
        return bool(self.segments)


@dataclass(frozen=True)
class HistoryEntry:
    """A prior turn in the role+text form sent to the model service."""

    role: Role
    text: str


@dataclass(frozen=True)
class AnalysisResult:
    kind: AnalysisKind
    text: str


@dataclass(frozen=True)
class AnalysisError:
    kind: AnalysisKind
    message: str


AnalysisOutcome = Union[AnalysisResult, AnalysisError]


@dataclass
class BatchUpload:
    """Outcome of adding several files at once."""

    added: List[Material] = field(default_factory=list)
    rejected: List[Tuple[str, str]] = field(default_factory=list)

    def to_payload(self) -> Mapping[str, Any]:
        return {
            "added": [material.to_payload() for material in self.added],
            "rejected": [{"name": name, "error": message} for name, message in self.rejected],
        }


def history_payload(turns: Iterable[Turn]) -> List[Mapping[str, Any]]:
    return [turn.to_payload() for turn in turns]


__all__ = [
    "AnalysisError",
    "AnalysisKind",
    "AnalysisOutcome",
    "AnalysisResult",
    "BatchUpload",
    "BlobSegment",
    "Category",
    "EvidencePayload",
    "HistoryEntry",
    "KnowledgeContext",
    "Material",
    "MaterialKind",
    "Mode",
    "Role",
    "Segment",
    "TextSegment",
    "Turn",
    "history_payload",
    "new_id",
]
