"""
Value objects shared by grading, aggregation and the persistence adapters.
All are frozen; rows from Supabase / the local store are converted with from_row().
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Mapping, Optional, Tuple

from engine import MARK_VALUES

MULTIPLE_CHOICE = "multiple_choice"
SHORT_ANSWER = "short_answer"


@dataclass(frozen=True)
class ExpectedAnswer:
    """One gradable numeric sub-answer of a short-answer question."""
    field: str
    value: float
    tolerance_abs: float = 0.0
    unit: str = ""
    description: str = ""

    def __post_init__(self):
        if self.tolerance_abs < 0:
            raise ValueError(f"tolerance_abs must be >= 0 for field {self.field!r}")

    @classmethod
    def from_row(cls, row: Mapping) -> "ExpectedAnswer":
        return cls(
            field=row["field"],
            value=float(row["value"]),
            tolerance_abs=float(row.get("tolerance", row.get("tolerance_abs", 0)) or 0),
            unit=row.get("unit") or "",
            description=row.get("description") or "",
        )

    def to_row(self) -> dict:
        return {
            "field": self.field,
            "value": self.value,
            "tolerance": self.tolerance_abs,
            "unit": self.unit,
            "description": self.description,
        }


@dataclass(frozen=True)
class QuestionAnswerKey:
    """Either a correct option index (multiple choice) or expected answers keyed by field."""
    question_id: str
    correct_option_index: Optional[int] = None
    expected_answers: Tuple[ExpectedAnswer, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "expected_answers", tuple(self.expected_answers))

    @property
    def is_multiple_choice(self) -> bool:
        return self.correct_option_index is not None


@dataclass(frozen=True)
class SubmittedAnswer:
    """A learner's attempt: a selected option or numeric values keyed by field name."""
    question_id: str
    selected_option_index: Optional[int] = None
    field_answers: Mapping[str, float] = field(default_factory=dict)
    time_spent_sec: float = 0.0

    def __post_init__(self):
        object.__setattr__(self, "field_answers", dict(self.field_answers))


@dataclass(frozen=True)
class FieldResult:
    is_correct: bool
    expected: float
    actual: Optional[float]
    tolerance_abs: float
    unit: str = ""


@dataclass(frozen=True)
class GradeVerdict:
    is_correct: bool
    per_field: Mapping[str, FieldResult] = field(default_factory=dict)

    @property
    def fields_total(self) -> int:
        return len(self.per_field)

    @property
    def fields_correct(self) -> int:
        return sum(1 for r in self.per_field.values() if r.is_correct)


@dataclass(frozen=True)
class Question:
    """A bank question: metadata the aggregator needs plus its answer key."""
    id: str
    category: str
    marks: int
    key: QuestionAnswerKey
    title: str = ""
    options: Tuple[str, ...] = ()

    def __post_init__(self):
        if self.marks not in MARK_VALUES:
            raise ValueError(f"Question {self.id}: marks must be one of {MARK_VALUES}, got {self.marks!r}")
        object.__setattr__(self, "options", tuple(self.options))

    @property
    def type(self) -> str:
        return MULTIPLE_CHOICE if self.key.is_multiple_choice else SHORT_ANSWER

    @classmethod
    def from_row(cls, row: Mapping) -> "Question":
        """Build from a `questions` table row (snake_case columns)."""
        qid = str(row["id"])
        expected = [ExpectedAnswer.from_row(e) for e in (row.get("expected_answers") or [])]
        return cls(
            id=qid,
            category=row.get("category") or "unknown",
            marks=int(row["marks"]) if row.get("marks") is not None else 1,
            key=QuestionAnswerKey(
                question_id=qid,
                correct_option_index=row.get("correct_answer"),
                expected_answers=tuple(expected),
            ),
            title=row.get("title") or "",
            options=tuple(row.get("options") or ()),
        )

    def to_row(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "type": self.type,
            "category": self.category,
            "marks": self.marks,
            "options": list(self.options) or None,
            "correct_answer": self.key.correct_option_index,
            "expected_answers": [e.to_row() for e in self.key.expected_answers] or None,
        }


@dataclass(frozen=True)
class AnswerRecord:
    """A graded attempt as stored in answer history."""
    submitted: SubmittedAnswer
    is_correct: bool
    answered_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self):
        if self.answered_at.tzinfo is None:
            object.__setattr__(self, "answered_at", self.answered_at.replace(tzinfo=timezone.utc))

    @property
    def question_id(self) -> str:
        return self.submitted.question_id

    def to_row(self) -> dict:
        s = self.submitted
        return {
            "question_id": s.question_id,
            "is_correct": self.is_correct,
            "user_answer": {
                "multipleChoiceAnswer": s.selected_option_index,
                "shortAnswers": dict(s.field_answers) or None,
                "timeSpent": s.time_spent_sec,
            },
            "selected_option": s.selected_option_index,
            "time_spent": s.time_spent_sec,
            "attempted_at": self.answered_at.isoformat(),
        }

    @classmethod
    def from_row(cls, row: Mapping) -> "AnswerRecord":
        answer = row.get("user_answer") or {}
        selected = answer.get("multipleChoiceAnswer", row.get("selected_option"))
        attempted_at = row.get("attempted_at")
        if isinstance(attempted_at, str):
            answered_at = datetime.fromisoformat(attempted_at.replace("Z", "+00:00"))
        elif isinstance(attempted_at, datetime):
            answered_at = attempted_at
        else:
            answered_at = datetime.now(timezone.utc)
        submitted = SubmittedAnswer(
            question_id=str(row["question_id"]),
            selected_option_index=selected,
            field_answers={k: float(v) for k, v in (answer.get("shortAnswers") or {}).items() if v is not None},
            time_spent_sec=float(row.get("time_spent") or answer.get("timeSpent") or 0),
        )
        return cls(submitted=submitted, is_correct=bool(row.get("is_correct")), answered_at=answered_at)


def latest_per_question(records: List[AnswerRecord]) -> Dict[str, AnswerRecord]:
    """Most recent record for each question id; later list entries win ties."""
    latest: Dict[str, AnswerRecord] = {}
    for record in records:
        current = latest.get(record.question_id)
        if current is None or record.answered_at >= current.answered_at:
            latest[record.question_id] = record
    return latest
