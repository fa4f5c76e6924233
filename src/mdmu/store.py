"""Persist comments under a content-addressed store directory.

Each annotated document gets one JSON record, named by the SHA-256 of the
document's absolute path.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import tempfile
from pathlib import Path

from mdmu.errors import SourceReadError, StoreCorruptedError, StoreError
from mdmu.models import AnnotationFile

logger = logging.getLogger(__name__)

STORE_SUFFIX = ".json"


def content_hash(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def compute_content_hash(path: str | Path) -> str:
    """SHA-256 hex digest of the file's current bytes."""
    try:
        data = Path(path).read_bytes()
    except OSError as e:
        raise SourceReadError(f"reading file for hash: {e}") from e
    return content_hash(data)


class AnnotationStore:
    """Reads and writes ``AnnotationFile`` records under ``root``."""

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def resolve_store_path(self, absolute_path: str | Path) -> Path:
        """Deterministic record path for a document's absolute path."""
        digest = hashlib.sha256(str(absolute_path).encode("utf-8")).hexdigest()
        return self.root / f"{digest}{STORE_SUFFIX}"

    def load(self, path: str | Path) -> AnnotationFile:
        """Load the record for ``path``, or a fresh one stamped with its hash.

        Raises ``StoreCorruptedError`` when a record exists but cannot be read
        back as comments.
        """
        abs_path = str(Path(path).absolute())
        record = self.resolve_store_path(abs_path)

        if not record.exists():
            logger.debug("No comment record for %s, starting empty", abs_path)
            return AnnotationFile(
                target_path=abs_path,
                content_hash=compute_content_hash(abs_path),
            )

        try:
            text = record.read_text(encoding="utf-8")
        except OSError as e:
            raise StoreError(f"reading store file {record}: {e}") from e

        try:
            data = json.loads(text)
            annotation_file = AnnotationFile.from_dict(data)
        except (json.JSONDecodeError, KeyError, TypeError, ValueError, AttributeError) as e:
            logger.error("Corrupted comment record: %s", record)
            raise StoreCorruptedError(f"parsing store file {record}: {e}") from e

        logger.debug("Loaded %d comments for %s", len(annotation_file.comments), abs_path)
        return annotation_file

    def save(self, annotation_file: AnnotationFile) -> Path:
        """Write the record atomically: temp file in the store dir, then rename."""
        record = self.resolve_store_path(annotation_file.target_path)
        payload = json.dumps(annotation_file.to_dict(), indent=2, ensure_ascii=False)

        try:
            self.root.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.root, suffix=".tmp")
        except OSError as e:
            raise StoreError(f"creating store dir {self.root}: {e}") from e

        tmp = Path(tmp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload + "\n")
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, record)
        except OSError as e:
            tmp.unlink(missing_ok=True)
            raise StoreError(f"writing store file {record}: {e}") from e

        logger.debug("Saved %d comments to %s", len(annotation_file.comments), record)
        return record

    def is_stale(self, annotation_file: AnnotationFile) -> bool:
        """True when the document changed since the record was stamped."""
        return compute_content_hash(annotation_file.target_path) != annotation_file.content_hash
