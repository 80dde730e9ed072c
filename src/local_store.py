"""
JSON file store for answer history and settings, used when the hosted backend
is unavailable or no user is signed in.
"""
import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from src.models import AnswerRecord

logger = logging.getLogger(__name__)

DEFAULT_PATH = Path(__file__).resolve().parent.parent / "local_progress.json"

DEFAULT_SETTINGS = {
    "preferred_study_mode": "practice",
    "show_working_steps": True,
    "auto_advance_on_correct": False,
}


def default_store_path() -> Path:
    return Path(os.environ.get("ATPL_LOCAL_STORE") or DEFAULT_PATH)


class LocalStore:
    """Whole-file JSON store; every save rewrites the file."""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else default_store_path()

    def _read(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
            return data if isinstance(data, dict) else {}
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Failed to read local store %s: %s", self.path, e)
            return {}

    def _write(self, data: dict) -> bool:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            return True
        except OSError as e:
            logger.error("Failed to write local store %s: %s", self.path, e)
            return False

    # ============= Answers =============

    def save_user_answers(self, records: List[AnswerRecord]) -> bool:
        data = self._read()
        data["user_answers"] = [r.to_row() for r in records]
        return self._write(data)

    def append_user_answer(self, record: AnswerRecord) -> bool:
        data = self._read()
        data.setdefault("user_answers", []).append(record.to_row())
        return self._write(data)

    def load_user_answers(self) -> List[AnswerRecord]:
        records = []
        for row in self._read().get("user_answers", []):
            try:
                records.append(AnswerRecord.from_row(row))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping malformed stored answer %r: %s", row, e)
        return records

    # ============= Settings =============

    def save_settings(self, settings: dict) -> bool:
        data = self._read()
        data["settings"] = {**DEFAULT_SETTINGS, **settings}
        return self._write(data)

    def load_settings(self) -> dict:
        settings = self._read().get("settings")
        if not isinstance(settings, dict):
            return dict(DEFAULT_SETTINGS)
        return {**DEFAULT_SETTINGS, **settings}

    # ============= Maintenance =============

    def clear_all_data(self):
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            logger.error("Failed to clear local store %s: %s", self.path, e)

    def export_data(self) -> str:
        data = {
            "user_answers": [r.to_row() for r in self.load_user_answers()],
            "settings": self.load_settings(),
            "export_date": datetime.now(timezone.utc).isoformat(),
        }
        return json.dumps(data, indent=2)
