from __future__ import annotations

import pytest

from studybank.tutor.errors import ServiceError
from studybank.tutor.prompts import (
    ANALYSIS_ERROR_TIP,
    BEGIN_SENTINEL,
    HYPOTHETICAL_EMPTY_RESPONSE,
    HYPOTHETICAL_ERROR_MESSAGE,
)
from studybank.tutor.schemas import (
    AnalysisError,
    AnalysisKind,
    AnalysisResult,
    Category,
    TextSegment,
)
from studybank.tutor.storage import MaterialStore
from studybank.tutor.tools import AnalysisEngine, ExamGenerator

PATTERN_SECTIONS = (
    "Most Tested Subjects",
    "Recurring Fact Patterns",
    "Issue Spotting Checklist",
    "Professor's Focus",
)
RULE_FIELDS = ("**Rule**", "**Elements**", "**Key Case**", "**Defenses/Exceptions**")


def _context():
    store = MaterialStore()
    store.add_text("CFAA: exceeds authorized access", Category.STATUTE)
    store.add_text("Van Buren v. United States", Category.CASE)
    return store.snapshot()


@pytest.mark.asyncio
async def test_each_kind_produces_distinct_structure(make_service) -> None:
    engine = AnalysisEngine(client=make_service(echo=True))
    context = _context()

    outputs = {}
    for kind in AnalysisKind:
        result = await engine(context, kind)
        assert isinstance(result, AnalysisResult)
        outputs[kind] = result.text

    assert "Common Pitfalls" in outputs[AnalysisKind.OUTLINE]
    assert "Common Pitfalls" not in outputs[AnalysisKind.PATTERNS]
    assert "Common Pitfalls" not in outputs[AnalysisKind.RULES]

    assert all(section in outputs[AnalysisKind.PATTERNS] for section in PATTERN_SECTIONS)
    assert not any(section in outputs[AnalysisKind.OUTLINE] for section in PATTERN_SECTIONS)
    assert not any(section in outputs[AnalysisKind.RULES] for section in PATTERN_SECTIONS)

    assert all(field in outputs[AnalysisKind.RULES] for field in RULE_FIELDS)
    assert not any(field in outputs[AnalysisKind.OUTLINE] for field in RULE_FIELDS)
    assert not any(field in outputs[AnalysisKind.PATTERNS] for field in RULE_FIELDS)


@pytest.mark.asyncio
async def test_analysis_request_carries_evidence_then_template(make_service) -> None:
    service = make_service(["outline"])
    engine = AnalysisEngine(client=service)

    await engine(_context(), "rules")

    call = service.calls[0]
    assert call["history"] == []
    assert call["segments"][0] == TextSegment(BEGIN_SENTINEL)
    assert "MASTER RULE BANK" in call["segments"][-1].text


@pytest.mark.asyncio
async def test_analysis_failure_is_tagged(make_service) -> None:
    engine = AnalysisEngine(client=make_service(error=ServiceError("failed", detail="quota exceeded")))

    result = await engine(_context(), AnalysisKind.PATTERNS)

    assert isinstance(result, AnalysisError)
    assert result.kind is AnalysisKind.PATTERNS
    assert result.message.startswith("quota exceeded")
    assert ANALYSIS_ERROR_TIP in result.message


@pytest.mark.asyncio
async def test_empty_analysis_is_still_a_success(make_service) -> None:
    engine = AnalysisEngine(client=make_service([""]))

    result = await engine(_context(), AnalysisKind.OUTLINE)

    assert result == AnalysisResult(kind=AnalysisKind.OUTLINE, text="")


@pytest.mark.asyncio
async def test_hypothetical_prompt_is_not_grounded(make_service) -> None:
    service = make_service(["Acme's former admin logs in after termination..."])
    generator = ExamGenerator(client=service)

    text = await generator("CFAA Damage vs Loss")

    assert text.startswith("Acme's former admin")
    segments = service.calls[0]["segments"]
    assert len(segments) == 1
    assert "CFAA Damage vs Loss" in segments[0].text
    assert "Do NOT provide the answer" in segments[0].text


@pytest.mark.asyncio
async def test_hypothetical_failure_returns_apology(make_service) -> None:
    generator = ExamGenerator(client=make_service(error=ServiceError("no key")))

    assert await generator("FTC Unfairness") == HYPOTHETICAL_ERROR_MESSAGE


@pytest.mark.asyncio
async def test_hypothetical_empty_returns_fallback(make_service) -> None:
    generator = ExamGenerator(client=make_service([""]))

    assert await generator("FTC Unfairness") == HYPOTHETICAL_EMPTY_RESPONSE
