"""Serialise a knowledge bank snapshot into framed evidence segments."""

from __future__ import annotations

from typing import List

from .prompts import BEGIN_SENTINEL, END_SENTINEL, EXCLUSIVE_USE_INSTRUCTION, MATERIAL_LABEL
from .schemas import (
    BlobSegment,
    EvidencePayload,
    KnowledgeContext,
    MaterialKind,
    Segment,
    TextSegment,
)


def material_label(index: int, material) -> str:
    return MATERIAL_LABEL.format(index=index, category=material.category.value, name=material.name)


def build(context: KnowledgeContext) -> EvidencePayload:
    """Frame every material of ``context`` for a model request.

    The payload opens with the begin sentinel, then holds a label segment and
    a content segment per material in store order (labels are numbered from 1
    in emission order), and closes with the end sentinel followed by the
    instruction to use the evidence exclusively. An empty context yields an
    empty payload.
    """

    if not context:
        return EvidencePayload()

    segments: List[Segment] = [TextSegment(BEGIN_SENTINEL)]
    for index, material in enumerate(context, start=1):
        segments.append(TextSegment(material_label(index, material)))
        if material.kind is MaterialKind.FILE and material.media_type:
            segments.append(BlobSegment(media_type=material.media_type, data=material.content))
        else:
            segments.append(TextSegment(material.content))
    segments.append(TextSegment(END_SENTINEL))
    segments.append(TextSegment(EXCLUSIVE_USE_INSTRUCTION))
    return EvidencePayload(segments=tuple(segments))


__all__ = ["build", "material_label"]
