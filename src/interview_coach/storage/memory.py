"""Tagged memory store (JSON + fcntl.flock + atomic write).

Entries are append-only: "latest" is found by searching, never by
overwriting. Each tag gets its own JSON file.
"""

import fcntl
import json
import os
import tempfile
import uuid
from collections.abc import Iterable
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Protocol
from urllib.parse import quote

import structlog

logger = structlog.get_logger()

WEAKNESS_PROFILE = "weakness_profile"
SESSION_REPORT = "session_report"
CATEGORY_RECORD = "category_record"
USER_RECORD_TYPES = (WEAKNESS_PROFILE, SESSION_REPORT, CATEGORY_RECORD)


def user_tag(user_name: str) -> str:
    return f"user_{user_name}"


def encode_filename(name: str) -> str:
    """Percent-encode a name into a single path component.

    The encoding is one-to-one, so distinct names never share a file, and
    path separators cannot escape the store directory.
    """
    encoded = quote(name, safe="-_")
    # "." and ".." survive quote() but are not usable file stems
    return encoded.replace(".", "%2E")


class MemoryStore(Protocol):
    """Contract for the durable tagged-content store."""

    def fetch_latest_by_tag(self, tag: str, record_type: str) -> str | None: ...

    def append(
        self, tag: str, record_type: str, content: str, metadata: dict[str, str]
    ) -> str: ...

    def delete_all_by_tag_and_type(self, tag: str, record_types: Iterable[str]) -> int: ...


class FileMemoryStore:
    """MemoryStore backed by one JSON file per tag.

    Args:
        root_dir: Directory holding the tag files.
    """

    def __init__(self, root_dir: Path):
        self.root_dir = Path(root_dir)
        self.root_dir.mkdir(parents=True, exist_ok=True)

    def _tag_path(self, tag: str) -> Path:
        return self.root_dir / f"{encode_filename(tag)}.json"

    @contextmanager
    def _locked(self, tag: str, exclusive: bool):
        lock_path = self._tag_path(tag).with_suffix(".json.lock")
        with open(lock_path, "w") as lock_file:
            fcntl.flock(lock_file, fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH)
            try:
                yield
            finally:
                fcntl.flock(lock_file, fcntl.LOCK_UN)

    def _read(self, tag: str) -> dict:
        path = self._tag_path(tag)
        if not path.exists():
            return {"memories": []}
        return json.loads(path.read_text(encoding="utf-8"))

    def _write(self, tag: str, data: dict) -> None:
        path = self._tag_path(tag)
        with tempfile.NamedTemporaryFile(
            "w", dir=self.root_dir, delete=False, suffix=".json", encoding="utf-8"
        ) as tmp:
            json.dump(data, tmp, indent=2)
        os.replace(tmp.name, path)

    def fetch_latest_by_tag(self, tag: str, record_type: str) -> str | None:
        """Return the content of the newest entry of ``record_type``, if any."""
        with self._locked(tag, exclusive=False):
            data = self._read(tag)
        for entry in reversed(data.get("memories", [])):
            if entry.get("type") == record_type:
                return entry.get("content")
        return None

    def append(
        self, tag: str, record_type: str, content: str, metadata: dict[str, str]
    ) -> str:
        """Append an immutable, timestamped entry and return its id."""
        entry_id = str(uuid.uuid4())
        with self._locked(tag, exclusive=True):
            data = self._read(tag)
            data.setdefault("memories", []).append({
                "id": entry_id,
                "type": record_type,
                "content": content,
                "metadata": dict(metadata),
                "created_at": datetime.now().isoformat(),
            })
            self._write(tag, data)
        logger.debug("memory_appended", tag=tag, type=record_type, id=entry_id)
        return entry_id

    def delete_all_by_tag_and_type(self, tag: str, record_types: Iterable[str]) -> int:
        """Delete every entry under ``tag`` whose type is in ``record_types``."""
        types = set(record_types)
        with self._locked(tag, exclusive=True):
            if not self._tag_path(tag).exists():
                return 0
            data = self._read(tag)
            memories = data.get("memories", [])
            kept = [m for m in memories if m.get("type") not in types]
            data["memories"] = kept
            self._write(tag, data)
        removed = len(memories) - len(kept)
        logger.info("memory_deleted", tag=tag, types=sorted(types), count=removed)
        return removed
