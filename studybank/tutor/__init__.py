"""Grounded study assistant built around a user-curated knowledge bank.

This subpackage exposes a session facade that wires together

* an in-memory material store holding notes and uploaded files,
* a context assembler framing those materials as evidence for the model,
* a dialogue manager that keeps the chat history and issues grounded requests,
* one-shot analysis and exam-practice tools, and
* a mode controller deciding which view is active.
"""

from .clients import LLMClient, ModelService
from .context import build as build_evidence
from .controller import StudyAssistant
from .errors import ServiceError, SizeLimitError, StudyBankError, ValidationError
from .manager import DialogueManager
from .modes import ModeController
from .rendering import Block, Span, render
from .runtime import StudyAssistantRuntime, main as runtime_main
from .schemas import (
    AnalysisError,
    AnalysisKind,
    AnalysisResult,
    BatchUpload,
    BlobSegment,
    Category,
    EvidencePayload,
    HistoryEntry,
    KnowledgeContext,
    Material,
    MaterialKind,
    Mode,
    Role,
    TextSegment,
    Turn,
)
from .storage import MAX_FILE_BYTES, MaterialStore
from .tools import SUGGESTED_TOPICS, AnalysisEngine, ExamGenerator

__all__ = [
    "AnalysisEngine",
    "AnalysisError",
    "AnalysisKind",
    "AnalysisResult",
    "BatchUpload",
    "BlobSegment",
    "Block",
    "Category",
    "DialogueManager",
    "EvidencePayload",
    "ExamGenerator",
    "HistoryEntry",
    "KnowledgeContext",
    "LLMClient",
    "MAX_FILE_BYTES",
    "Material",
    "MaterialKind",
    "MaterialStore",
    "Mode",
    "ModeController",
    "ModelService",
    "Role",
    "SUGGESTED_TOPICS",
    "ServiceError",
    "SizeLimitError",
    "Span",
    "StudyAssistant",
    "StudyAssistantRuntime",
    "StudyBankError",
    "TextSegment",
    "Turn",
    "ValidationError",
    "build_evidence",
    "render",
    "runtime_main",
]
