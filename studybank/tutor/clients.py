"""OpenAI-compatible async client for the tutor's model service."""

from __future__ import annotations

import logging
import os
from copy import deepcopy
from typing import Any, Dict, List, Mapping, MutableMapping, Protocol, Sequence

import openai
from openai import AsyncOpenAI

from .errors import ServiceError
from .schemas import BlobSegment, HistoryEntry, Role, Segment, TextSegment

logger = logging.getLogger(__name__)


GEMINI_OPENAI_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"

DEFAULT_BASE_URLS: Mapping[str, str | None] = {
    "gemini": GEMINI_OPENAI_URL,
    "openai": None,
    "vllm": "http://localhost:8000/v1",
}

DEFAULT_EXTRA_BODY: Mapping[str, Any] = {
    "extra_body": {"chat_template_kwargs": {"enable_thinking": False}}
}

_AUDIO_FORMATS = {"audio/wav": "wav", "audio/x-wav": "wav", "audio/mpeg": "mp3", "audio/mp3": "mp3"}


class ModelService(Protocol):
    """The single operation the assistant needs from a model backend."""

    async def generate(
        self,
        system_instruction: str,
        history: Sequence[HistoryEntry],
        segments: Sequence[Segment],
        *,
        temperature: float | None = None,
    ) -> str: ...


class LLMClient:
    """Thin wrapper over :class:`openai.AsyncOpenAI` with provider defaults."""

    def __init__(
        self,
        *,
        model: str,
        provider: str = "gemini",
        base_url: str | None = None,
        api_key: str | None = None,
        api_key_env: str | None = None,
        default_extra_body: Mapping[str, Any] | None = None,
    ) -> None:
        provider_key = provider.lower()
        if provider_key not in DEFAULT_BASE_URLS:
            raise ValueError(f"Unsupported provider '{provider}'")

        if api_key is None:
            env_name = api_key_env or (
                "GEMINI_API_KEY" if provider_key == "gemini" else "OPENAI_API_KEY"
            )
            api_key = os.environ.get(env_name) or ""
        if not api_key:
            logger.warning("No API key configured for provider '%s'", provider_key)

        extra = default_extra_body
        if extra is None and provider_key == "vllm":
            extra = DEFAULT_EXTRA_BODY

        self._client = AsyncOpenAI(
            base_url=base_url or DEFAULT_BASE_URLS[provider_key],
            api_key=api_key or "missing",
        )
        self.model = model
        self.provider = provider_key
        self.default_extra_body = dict(extra or {})

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------
    async def generate(
        self,
        system_instruction: str,
        history: Sequence[HistoryEntry],
        segments: Sequence[Segment],
        *,
        temperature: float | None = None,
        extra_body: Mapping[str, Any] | None = None,
    ) -> str:
        messages = build_messages(system_instruction, history, segments)
        payload: MutableMapping[str, Any] = {"model": self.model, "messages": messages}
        if temperature is not None:
            payload["temperature"] = temperature
        merged = self._merge_extra(extra_body)
        if merged:
            payload.update(merged)

        logger.debug(
            "Dispatching chat request: model=%s history=%s segments=%s",
            self.model,
            len(history),
            len(segments),
        )
        try:
            response = await self._client.chat.completions.create(**payload)
        except openai.OpenAIError as exc:
            raise ServiceError(
                "The model service request failed.", detail=str(exc)
            ) from exc
        logger.debug("Chat raw response: %s", response)
        if not response.choices:
            return ""
        choice = response.choices[0].message
        return getattr(choice, "content", "") or ""

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _merge_extra(
        self, extra_body: Mapping[str, Any] | None
    ) -> MutableMapping[str, Any] | None:
        if not self.default_extra_body and not extra_body:
            return None
        merged: MutableMapping[str, Any] = deepcopy(self.default_extra_body)
        if extra_body:
            for key, value in extra_body.items():
                if (
                    key in merged
                    and isinstance(merged[key], MutableMapping)
                    and isinstance(value, Mapping)
                ):
                    merged[key].update(value)  # type: ignore[arg-type]
                else:
                    merged[key] = deepcopy(value) if isinstance(value, Mapping) else value
        return merged


def build_messages(
    system_instruction: str,
    history: Sequence[HistoryEntry],
    segments: Sequence[Segment],
) -> List[Dict[str, Any]]:
    """Translate a tutor request into chat-completions messages."""

    messages: List[Dict[str, Any]] = [{"role": "system", "content": system_instruction}]
    for entry in history:
        role = "assistant" if entry.role is Role.MODEL else "user"
        messages.append({"role": role, "content": entry.text})
    messages.append({"role": "user", "content": [segment_part(segment) for segment in segments]})
    return messages


def segment_part(segment: Segment) -> Dict[str, Any]:
    if isinstance(segment, TextSegment):
        return {"type": "text", "text": segment.text}
    if not isinstance(segment, BlobSegment):
        raise TypeError(f"Unsupported segment type: {type(segment).__name__}")

    media_type = segment.media_type
    if media_type.startswith("image/"):
        return {
            "type": "image_url",
            "image_url": {"url": f"data:{media_type};base64,{segment.data}"},
        }
    if media_type in _AUDIO_FORMATS:
        return {
            "type": "input_audio",
            "input_audio": {"data": segment.data, "format": _AUDIO_FORMATS[media_type]},
        }
    return {
        "type": "file",
        "file": {"file_data": f"data:{media_type};base64,{segment.data}"},
    }


__all__ = ["LLMClient", "ModelService", "build_messages", "segment_part"]
