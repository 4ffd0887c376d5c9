"""Reading-progress persistence as a position observer."""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from .exceptions import ProgressStoreError
from .models import PositionChange, ReadingProgress
from .utils import sanitize_filename

logger = logging.getLogger(__name__)


class ProgressStore:
    """Stores the last reading position of each document as a JSON file.

    Instances are callable so they can be subscribed directly to a
    PositionNotifier; every accepted change overwrites the document's file.
    """

    VERSION = 1

    def __init__(self, progress_dir: Path):
        """
        Initialize the progress store.

        Args:
            progress_dir: Directory holding one JSON file per document
        """
        self.progress_dir = Path(progress_dir)

    def __call__(self, change: PositionChange) -> None:
        self.save(change.progress)

    def path_for(self, document_id: str) -> Path:
        """Get the progress file path for a document."""
        return self.progress_dir / f"{sanitize_filename(document_id)}.json"

    def exists(self, document_id: str) -> bool:
        return self.path_for(document_id).exists()

    def load(self, document_id: str) -> Optional[ReadingProgress]:
        """
        Load saved progress for a document.

        Returns:
            ReadingProgress, or None if nothing was saved

        Raises:
            ProgressStoreError: If the file is corrupted or of another version
        """
        path = self.path_for(document_id)
        if not path.exists():
            return None

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ProgressStoreError(f"Corrupted progress file {path}: {e}") from e

        if data.get("version") != self.VERSION:
            raise ProgressStoreError(
                f"Unsupported progress version: {data.get('version')} "
                f"(expected {self.VERSION})"
            )

        try:
            return ReadingProgress.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise ProgressStoreError(f"Invalid progress file {path}: {e}") from e

    def save(self, progress: ReadingProgress) -> None:
        """
        Save progress to disk atomically.

        Uses a temp file + rename so a crash never leaves a partial file.
        """
        self.progress_dir.mkdir(parents=True, exist_ok=True)
        data = {"version": self.VERSION, **progress.to_dict()}

        fd, temp_path = tempfile.mkstemp(dir=self.progress_dir, suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(temp_path, self.path_for(progress.document_id))
        except Exception:
            if os.path.exists(temp_path):
                os.unlink(temp_path)
            raise

    def clear(self, document_id: str) -> None:
        """Remove saved progress for a document."""
        path = self.path_for(document_id)
        if path.exists():
            path.unlink()
            logger.info(f"Cleared progress for {document_id}")
