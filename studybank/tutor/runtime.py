"""Runtime helpers for driving the study assistant from a command stream."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Iterable, Mapping, Optional

from .clients import LLMClient, ModelService
from .controller import StudyAssistant
from .errors import StudyBankError
from .rendering import render
from .schemas import AnalysisError, Category, history_payload
from .seeds import default_materials
from .storage import MAX_FILE_BYTES

logger = logging.getLogger(__name__)


@dataclass
class StudyAssistantRuntime:
    """High level runtime wiring a model client to a study session."""

    llm_model: str = "gemini-2.5-flash"
    llm_provider: str = "gemini"
    llm_url: Optional[str] = None
    api_key_env: Optional[str] = None
    seed_default: bool = True
    max_file_bytes: int = MAX_FILE_BYTES
    render_output: bool = False
    client: Optional[ModelService] = None

    def __post_init__(self) -> None:
        if self.client is None:
            self.client = LLMClient(
                model=self.llm_model,
                provider=self.llm_provider,
                base_url=self.llm_url,
                api_key_env=self.api_key_env,
            )
        self.assistant = StudyAssistant(
            client=self.client,
            seed=default_materials() if self.seed_default else (),
            max_file_bytes=self.max_file_bytes,
        )
        self._handlers: Dict[str, Callable[[Mapping[str, Any]], Awaitable[Mapping[str, Any]]]] = {
            "navigate": self._navigate,
            "add_text": self._add_text,
            "upload": self._upload,
            "remove": self._remove,
            "submit": self._submit,
            "answer": self._answer,
            "analyze": self._analyze,
            "hypothetical": self._hypothetical,
            "clear": self._clear,
            "reset": self._reset,
            "materials": self._materials,
            "history": self._history,
        }

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    async def dispatch(self, command: Mapping[str, Any]) -> Mapping[str, Any]:
        action = str(command.get("action") or "")
        handler = self._handlers.get(action)
        if handler is None:
            return {"action": action, "ok": False, "error": f"Unknown action '{action}'"}
        try:
            result = dict(await handler(command))
        except StudyBankError as exc:
            logger.warning("%s rejected: %s", action, exc.message)
            return {"action": action, "ok": False, "error": exc.message, "detail": exc.detail}
        except ValueError as exc:
            return {"action": action, "ok": False, "error": str(exc)}
        result.setdefault("ok", True)
        result["action"] = action
        result["mode"] = self.assistant.mode.value
        return result

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------
    async def _navigate(self, command: Mapping[str, Any]) -> Mapping[str, Any]:
        self.assistant.navigate(str(command.get("mode") or ""))
        return {}

    async def _add_text(self, command: Mapping[str, Any]) -> Mapping[str, Any]:
        material = self.assistant.add_note(
            str(command.get("content") or ""),
            Category.parse(command.get("category") or Category.EXAM),
        )
        return {"material": material.to_payload()}

    async def _upload(self, command: Mapping[str, Any]) -> Mapping[str, Any]:
        paths = [str(path) for path in command.get("paths") or []]
        batch = await self.assistant.upload_files(
            paths, Category.parse(command.get("category") or Category.EXAM)
        )
        return dict(batch.to_payload())

    async def _remove(self, command: Mapping[str, Any]) -> Mapping[str, Any]:
        self.assistant.remove_material(str(command.get("id") or ""))
        return {"count": len(self.assistant.store)}

    async def _submit(self, command: Mapping[str, Any]) -> Mapping[str, Any]:
        turn = await self.assistant.submit(str(command.get("text") or ""))
        if turn is None:
            return {"turn": None}
        return {"turn": self._turn_payload(turn)}

    async def _answer(self, command: Mapping[str, Any]) -> Mapping[str, Any]:
        turn = await self.assistant.request_model_answer(command.get("hypothetical"))
        return {"turn": self._turn_payload(turn) if turn else None}

    async def _analyze(self, command: Mapping[str, Any]) -> Mapping[str, Any]:
        outcome = await self.assistant.analyze(str(command.get("kind") or ""))
        if isinstance(outcome, AnalysisError):
            return {"ok": False, "kind": outcome.kind.value, "error": outcome.message}
        return {"kind": outcome.kind.value, **self._text_payload(outcome.text)}

    async def _hypothetical(self, command: Mapping[str, Any]) -> Mapping[str, Any]:
        text = await self.assistant.generate_hypothetical(str(command.get("topic") or ""))
        return self._text_payload(text)

    async def _clear(self, command: Mapping[str, Any]) -> Mapping[str, Any]:
        self.assistant.clear_chat()
        return {}

    async def _reset(self, command: Mapping[str, Any]) -> Mapping[str, Any]:
        self.assistant.reset()
        return {"count": len(self.assistant.store)}

    async def _materials(self, command: Mapping[str, Any]) -> Mapping[str, Any]:
        return {"materials": [material.to_payload() for material in self.assistant.materials()]}

    async def _history(self, command: Mapping[str, Any]) -> Mapping[str, Any]:
        return {"turns": history_payload(self.assistant.turns)}

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _turn_payload(self, turn) -> Mapping[str, Any]:
        payload = dict(turn.to_payload())
        if self.render_output:
            payload["blocks"] = _blocks_payload(turn.content)
        return payload

    def _text_payload(self, text: str) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"text": text}
        if self.render_output:
            payload["blocks"] = _blocks_payload(text)
        return payload


def _blocks_payload(text: str) -> list[Mapping[str, Any]]:
    return [
        {
            "kind": block.kind,
            "level": block.level,
            "spans": [{"text": span.text, "bold": span.bold} for span in block.spans],
        }
        for block in render(text)
    ]


def _iter_commands(stream: Iterable[str]) -> Iterable[Mapping[str, Any]]:
    for raw_line in stream:
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        try:
            command = json.loads(line)
        except json.JSONDecodeError as exc:  # pragma: no cover - CLI guard
            logger.error("Skipping malformed JSON line: %s", line)
            raise SystemExit(1) from exc
        if not isinstance(command, Mapping) or "action" not in command:
            logger.error("Each line must include an 'action' field: %s", line)
            raise SystemExit(1)
        yield command


async def run_stream(runtime: StudyAssistantRuntime, stream: Iterable[str]) -> list[Mapping[str, Any]]:
    results: list[Mapping[str, Any]] = []
    for command in _iter_commands(stream):
        result = await runtime.dispatch(command)
        print(json.dumps(result, ensure_ascii=False))
        results.append(result)
    return results


def main(argv: Optional[Iterable[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Run the study assistant over a JSONL command stream")
    parser.add_argument("--llm-model", default="gemini-2.5-flash", help="Model name exposed by the provider")
    parser.add_argument(
        "--llm-provider",
        choices=["gemini", "openai", "vllm"],
        default="gemini",
        help="LLM provider type",
    )
    parser.add_argument("--llm-url", default=None, help="Override the provider's base URL")
    parser.add_argument(
        "--api-key-env",
        default=None,
        help="Environment variable holding the API key (default depends on provider)",
    )
    parser.add_argument(
        "--empty",
        action="store_true",
        help="Start with an empty knowledge bank instead of the bundled Chapter 1 material.",
    )
    parser.add_argument(
        "--max-file-mb",
        type=int,
        default=MAX_FILE_BYTES // (1024 * 1024),
        help="Reject uploaded files larger than this many MiB.",
    )
    parser.add_argument(
        "--render",
        action="store_true",
        help="Include rendered display blocks alongside model text.",
    )
    parser.add_argument(
        "--input",
        type=Path,
        help="Optional path to a JSONL file. Defaults to reading from standard input.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging to trace request/response payloads.",
    )

    args = parser.parse_args(list(argv) if argv is not None else None)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    runtime = StudyAssistantRuntime(
        llm_model=args.llm_model,
        llm_provider=args.llm_provider,
        llm_url=args.llm_url,
        api_key_env=args.api_key_env,
        seed_default=not args.empty,
        max_file_bytes=args.max_file_mb * 1024 * 1024,
        render_output=args.render,
    )

    if args.input:
        with args.input.open("r", encoding="utf-8") as fh:
            asyncio.run(run_stream(runtime, fh))
    else:
        asyncio.run(run_stream(runtime, sys.stdin))

    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
