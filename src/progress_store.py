"""
Answer history: Supabase when a user is signed in, local JSON file otherwise
or whenever the hosted call fails.
"""
import logging
from typing import List, Optional

import db
from src.grading import grade
from src.local_store import LocalStore
from src.models import AnswerRecord, Question, SubmittedAnswer

logger = logging.getLogger(__name__)


class ProgressStore:
    """Hands aggregation a list of AnswerRecords from whichever backend answers."""

    def __init__(self, user_id: Optional[str] = None, client=None, local: Optional[LocalStore] = None):
        """
        Args:
            user_id: Signed-in user (None = local only)
            client: Supabase client; created from env on first hosted call when omitted
            local: Fallback store (default: file from ATPL_LOCAL_STORE)
        """
        self.user_id = user_id
        self._client = client
        self.local = local or LocalStore()

    @property
    def client(self):
        if self._client is None:
            self._client = db.get_supabase()
        return self._client

    def save_answer(self, record: AnswerRecord) -> str:
        """Persist one record. Returns 'hosted' or 'local'."""
        if self.user_id:
            try:
                db.upsert_user_progress(self.client, self.user_id, record.to_row())
                return "hosted"
            except Exception as e:
                logger.warning("Hosted save failed for %s, falling back to local store: %s", record.question_id, e)
        self.local.append_user_answer(record)
        return "local"

    def load_answers(self) -> List[AnswerRecord]:
        if self.user_id:
            try:
                rows = db.get_user_progress(self.client, self.user_id)
                return [AnswerRecord.from_row(row) for row in rows]
            except Exception as e:
                logger.warning("Hosted load failed, falling back to local store: %s", e)
        return self.local.load_user_answers()

    def submit(self, question: Question, submitted: SubmittedAnswer) -> AnswerRecord:
        """Grade and persist an answer; grading errors propagate before anything is saved."""
        verdict = grade(question.key, submitted)
        record = AnswerRecord(submitted=submitted, is_correct=verdict.is_correct)
        self.save_answer(record)
        return record
