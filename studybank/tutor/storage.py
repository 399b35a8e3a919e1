"""In-memory knowledge bank holding the user's study materials."""

from __future__ import annotations

import asyncio
import base64
import logging
import mimetypes
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from .errors import SizeLimitError, ValidationError
from .schemas import BatchUpload, Category, KnowledgeContext, Material, MaterialKind, new_id

logger = logging.getLogger(__name__)

MAX_FILE_BYTES = 10 * 1024 * 1024
DEFAULT_MEDIA_TYPE = "application/octet-stream"

Listener = Callable[[KnowledgeContext], None]


class MaterialStore:
    """Ordered collection of materials with change notification.

    Every mutation is synchronous, so callers never observe a half-applied
    change. Readers take a :class:`KnowledgeContext` snapshot which is not
    affected by later mutations.
    """

    def __init__(
        self,
        materials: Iterable[Material] = (),
        *,
        max_file_bytes: int = MAX_FILE_BYTES,
    ) -> None:
        self._materials: List[Material] = []
        self._listeners: List[Listener] = []
        self.max_file_bytes = max_file_bytes
        for material in materials:
            self._insert(material)

    def __len__(self) -> int:
        return len(self._materials)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def add_text(self, content: str, category: Category | str) -> Material:
        if not content or not content.strip():
            raise ValidationError("Cannot add an empty note to the Knowledge Bank.")
        material = Material(
            id=new_id(),
            name=f"Text Note - {datetime.now().strftime('%H:%M:%S')}",
            kind=MaterialKind.TEXT,
            content=content,
            category=Category.parse(category),
        )
        self._insert(material)
        self._notify()
        return material

    def add_file(
        self,
        raw: bytes,
        media_type: str | None,
        name: str,
        category: Category | str,
    ) -> Material:
        if len(raw) > self.max_file_bytes:
            raise SizeLimitError(name, len(raw), self.max_file_bytes)
        material = Material(
            id=new_id(),
            name=name,
            kind=MaterialKind.FILE,
            content=base64.b64encode(raw).decode("ascii"),
            category=Category.parse(category),
            media_type=media_type or DEFAULT_MEDIA_TYPE,
        )
        self._insert(material)
        self._notify()
        return material

    def remove(self, material_id: str) -> None:
        remaining = [material for material in self._materials if material.id != material_id]
        if len(remaining) == len(self._materials):
            logger.debug("Ignoring removal of unknown material %s", material_id)
            return
        self._materials = remaining
        logger.info("Removed material %s", material_id)
        self._notify()

    def replace(self, materials: Iterable[Material]) -> None:
        self._materials = []
        for material in materials:
            self._insert(material)
        logger.info("Knowledge bank replaced with %s material(s)", len(self._materials))
        self._notify()

    # ------------------------------------------------------------------
    # Batch ingestion
    # ------------------------------------------------------------------
    def add_uploads(
        self,
        uploads: Iterable[Tuple[str, bytes, Optional[str]]],
        category: Category | str,
    ) -> BatchUpload:
        """Add ``(name, raw_bytes, media_type)`` uploads one by one.

        An oversized item is rejected on its own; the remaining items are
        still added.
        """

        result = BatchUpload()
        for name, raw, media_type in uploads:
            try:
                result.added.append(self.add_file(raw, media_type, name, category))
            except SizeLimitError as exc:
                logger.warning("Rejected upload %s: %s", name, exc.detail)
                result.rejected.append((name, exc.message))
        return result

    async def ingest_files(
        self,
        paths: Sequence[str | Path],
        category: Category | str,
    ) -> BatchUpload:
        """Read several files concurrently and add them in the given order."""

        category = Category.parse(category)
        outcomes = await asyncio.gather(*(self._read_path(Path(path)) for path in paths))
        result = BatchUpload()
        for name, outcome in outcomes:
            if isinstance(outcome, str):
                result.rejected.append((name, outcome))
                continue
            try:
                media_type, _ = mimetypes.guess_type(name)
                result.added.append(self.add_file(outcome, media_type, name, category))
            except SizeLimitError as exc:
                logger.warning("Rejected upload %s: %s", name, exc.detail)
                result.rejected.append((name, exc.message))
        return result

    async def _read_path(self, path: Path) -> Tuple[str, bytes | str]:
        """Return the file's bytes, or a user-visible rejection message."""

        try:
            size = path.stat().st_size
            if size > self.max_file_bytes:
                raise SizeLimitError(path.name, size, self.max_file_bytes)
            return path.name, await asyncio.to_thread(path.read_bytes)
        except SizeLimitError as exc:
            logger.warning("Rejected upload %s: %s", path.name, exc.detail)
            return path.name, exc.message
        except OSError as exc:
            logger.warning("Could not read %s: %s", path, exc)
            return path.name, f'File "{path.name}" could not be read: {exc.strerror or exc}'

    # ------------------------------------------------------------------
    # Reads and notifications
    # ------------------------------------------------------------------
    def snapshot(self) -> KnowledgeContext:
        return KnowledgeContext(materials=tuple(self._materials))

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _insert(self, material: Material) -> None:
        if any(existing.id == material.id for existing in self._materials):
            raise ValueError(f"Duplicate material id '{material.id}'")
        self._materials.append(material)
        logger.info(
            "Added %s material %s (%s, %s)",
            material.kind.value,
            material.id,
            material.category.value,
            material.name,
        )

    def _notify(self) -> None:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)


__all__ = ["DEFAULT_MEDIA_TYPE", "MAX_FILE_BYTES", "MaterialStore"]
