"""File-based JSON storage for moderation records and archived content.

Records live in ``<base_dir>/records.json`` as a list of record dicts.
Archived content lives in ``<base_dir>/<sha256(content_id)>.txt``.

Unlike a cache, an unreadable or corrupted file is an error: treating it as
empty would let duplicate decisions through.
"""

from __future__ import annotations

import hashlib
import json
import threading
from pathlib import Path
from typing import Any, Optional

from momentguard.moderation.errors import DuplicateContentError, RepositoryError, StorageError
from momentguard.moderation.models import ModerationRecord, ReviewStatus
from momentguard.storage.memory import apply_record_update


class JsonModerationRepository:
    """File-based moderation repository.

    Storage path: ``~/.momentguard/records/`` by default, with:
    - ``records.json`` -- list of record dicts
    """

    def __init__(self, base_dir: Optional[str | Path] = None) -> None:
        if base_dir is None:
            self._base = Path.home() / ".momentguard" / "records"
        else:
            self._base = Path(base_dir)
        self._base.mkdir(parents=True, exist_ok=True)
        self._records_path = self._base / "records.json"
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _read_json(self) -> list[dict]:
        if not self._records_path.exists():
            return []
        try:
            data = json.loads(self._records_path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as exc:
            raise RepositoryError(f"Cannot read {self._records_path}: {exc}") from exc
        if not isinstance(data, list):
            raise RepositoryError(f"{self._records_path} does not contain a record list")
        return data

    def _write_json(self, data: list[dict]) -> None:
        tmp_path = self._records_path.with_suffix(".tmp")
        try:
            tmp_path.write_text(json.dumps(data, indent=2), encoding="utf-8")
            tmp_path.replace(self._records_path)
        except OSError as exc:
            raise RepositoryError(f"Cannot write {self._records_path}: {exc}") from exc

    def _load_records(self) -> list[ModerationRecord]:
        try:
            return [ModerationRecord.from_dict(d) for d in self._read_json()]
        except (KeyError, TypeError, ValueError) as exc:
            raise RepositoryError(f"Malformed record in {self._records_path}: {exc}") from exc

    # ------------------------------------------------------------------
    # Repository API
    # ------------------------------------------------------------------

    def save(self, record: ModerationRecord) -> ModerationRecord:
        with self._lock:
            data = self._read_json()
            if any(d.get("content_id") == record.content_id for d in data):
                raise DuplicateContentError(record.content_id)
            data.append(record.to_dict())
            self._write_json(data)
        return record

    def find_by_content_id(self, content_id: str) -> Optional[ModerationRecord]:
        for record in self._load_records():
            if record.content_id == content_id:
                return record
        return None

    def find_by_id(self, record_id: str) -> Optional[ModerationRecord]:
        for record in self._load_records():
            if record.id == record_id:
                return record
        return None

    def update(
        self,
        record_id: str,
        expected_review_status: Optional[ReviewStatus] = None,
        **changes: Any,
    ) -> ModerationRecord:
        with self._lock:
            records = self._load_records()
            for i, record in enumerate(records):
                if record.id == record_id:
                    records[i] = apply_record_update(record, changes, expected_review_status)
                    self._write_json([r.to_dict() for r in records])
                    return records[i]
        raise RepositoryError(f"Moderation record {record_id} not found")

    def delete(self, record_id: str) -> None:
        with self._lock:
            data = self._read_json()
            remaining = [d for d in data if d.get("id") != record_id]
            if len(remaining) < len(data):
                self._write_json(remaining)

    def list_records(self) -> list[ModerationRecord]:
        return sorted(self._load_records(), key=lambda r: r.created_at)


class FileContentStorage:
    """Write-once archive of raw content, one file per content id."""

    def __init__(self, base_dir: Optional[str | Path] = None) -> None:
        if base_dir is None:
            self._base = Path.home() / ".momentguard" / "content"
        else:
            self._base = Path(base_dir)
        self._base.mkdir(parents=True, exist_ok=True)

    def _path_for(self, content_id: str) -> Path:
        digest = hashlib.sha256(content_id.encode("utf-8")).hexdigest()
        return self._base / f"{digest}.txt"

    def store(self, content_id: str, content: str) -> str:
        path = self._path_for(content_id)
        try:
            with path.open("x", encoding="utf-8") as fh:
                fh.write(content)
        except FileExistsError as exc:
            raise StorageError(f"Content {content_id!r} is already archived") from exc
        except OSError as exc:
            raise StorageError(f"Cannot archive content {content_id!r}: {exc}") from exc
        return str(path)

    def retrieve(self, content_id: str) -> Optional[str]:
        path = self._path_for(content_id)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except OSError as exc:
            raise StorageError(f"Cannot read archived content {content_id!r}: {exc}") from exc

    def delete(self, content_id: str) -> None:
        try:
            self._path_for(content_id).unlink(missing_ok=True)
        except OSError as exc:
            raise StorageError(f"Cannot delete archived content {content_id!r}: {exc}") from exc
