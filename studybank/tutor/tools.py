from __future__ import annotations

import logging
from dataclasses import dataclass

from .clients import ModelService
from .context import build
from .prompts import (
    ANALYSIS_ERROR_TIP,
    ANALYSIS_PROMPTS,
    HYPOTHETICAL_EMPTY_RESPONSE,
    HYPOTHETICAL_ERROR_MESSAGE,
    HYPOTHETICAL_PROMPT,
    SYSTEM_INSTRUCTION,
)
from .schemas import (
    AnalysisError,
    AnalysisKind,
    AnalysisOutcome,
    AnalysisResult,
    KnowledgeContext,
    TextSegment,
)

logger = logging.getLogger(__name__)

SUGGESTED_TOPICS = (
    "CFAA Damage vs Loss",
    "FTC Unfairness",
    "Article III Standing",
    "HIPAA Business Associates",
    "CCPA Private Right of Action",
)


@dataclass
class AnalysisEngine:
    """Run one of the fixed analytical transforms over a knowledge bank snapshot."""

    client: ModelService
    system_instruction: str = SYSTEM_INSTRUCTION

    async def __call__(self, context: KnowledgeContext, kind: AnalysisKind | str) -> AnalysisOutcome:
        kind = AnalysisKind(kind)
        segments = [*build(context), TextSegment(ANALYSIS_PROMPTS[kind])]
        logger.debug("Running %s analysis over %s material(s)", kind.value, len(context))
        try:
            text = await self.client.generate(self.system_instruction, [], segments)
        except Exception as exc:
            logger.exception("%s analysis failed", kind.value)
            reason = getattr(exc, "detail", None) or str(exc) or "Unknown API Error"
            return AnalysisError(kind=kind, message=f"{reason}\n\n{ANALYSIS_ERROR_TIP}")
        return AnalysisResult(kind=kind, text=text or "")


@dataclass
class ExamGenerator:
    """Produce a practice fact pattern for a topic; never returns an error."""

    client: ModelService
    system_instruction: str = SYSTEM_INSTRUCTION

    async def __call__(self, topic: str) -> str:
        prompt = HYPOTHETICAL_PROMPT.format(topic=topic)
        try:
            text = await self.client.generate(self.system_instruction, [], [TextSegment(prompt)])
        except Exception:
            logger.exception("Hypothetical generation failed for topic %r", topic)
            return HYPOTHETICAL_ERROR_MESSAGE
        if not text or not text.strip():
            logger.warning("Model service returned an empty hypothetical for %r", topic)
            return HYPOTHETICAL_EMPTY_RESPONSE
        return text


__all__ = ["AnalysisEngine", "ExamGenerator", "SUGGESTED_TOPICS"]
