"""
Scoring engine: category and mark-value breakdowns, overall exam score, learner metrics.
Everything is recomputed from the full answer set on each call; nothing is patched incrementally.
"""
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from engine import MARK_VALUES, PASS_THRESHOLD_PERCENT
from src.categories import QUESTION_CATEGORIES
from src.grading import grade
from src.models import AnswerRecord, GradeVerdict, Question, SubmittedAnswer, latest_per_question

logger = logging.getLogger(__name__)

# (question, verdict); verdict is None when the question was not attempted
GradedPair = Tuple[Question, Optional[GradeVerdict]]


@dataclass(frozen=True)
class CategoryStats:
    attempted: int
    correct: int
    accuracy: float


@dataclass(frozen=True)
class MarkStats:
    total: int
    correct: int
    marks: int


@dataclass(frozen=True)
class OverallScore:
    total_score: int
    max_score: int
    percentage: float
    passed: bool


@dataclass(frozen=True)
class PerformanceMetrics:
    total_questions: int
    answered_questions: int
    correct_answers: int
    accuracy: float
    average_time_per_question: float
    category_performance: Dict[str, CategoryStats]


@dataclass(frozen=True)
class ExamResult:
    exam_id: str
    total_score: int
    max_score: int
    percentage: float
    passed: bool
    mark_breakdown: Dict[int, MarkStats]
    category_breakdown: Dict[str, CategoryStats]
    verdicts: Dict[str, Optional[GradeVerdict]]
    time_spent: float
    questions_correct: int
    questions_total: int


def _percent(part: int, whole: int) -> float:
    if whole == 0:
        return 0.0
    return part * 100 / whole


def compute_category_breakdown(
    pairs: Sequence[GradedPair],
    categories: Iterable[str] = tuple(QUESTION_CATEGORIES),
) -> Dict[str, CategoryStats]:
    """
    Attempted / correct / accuracy per category.

    Every category in `categories` is present (zeros when unseen), plus any other
    category found in `pairs`. Accuracy is 0 when nothing was attempted.
    """
    counts: Dict[str, List[int]] = {cat: [0, 0] for cat in categories}
    for question, verdict in pairs:
        stats = counts.setdefault(question.category, [0, 0])
        if verdict is None:
            continue
        stats[0] += 1
        if verdict.is_correct:
            stats[1] += 1
    return {
        cat: CategoryStats(attempted=attempted, correct=correct, accuracy=_percent(correct, attempted))
        for cat, (attempted, correct) in counts.items()
    }


def compute_mark_breakdown(pairs: Sequence[GradedPair]) -> Dict[int, MarkStats]:
    """Questions, correct answers and marks earned per mark value 1..5; full credit per correct question."""
    counts: Dict[int, List[int]] = {mark: [0, 0] for mark in MARK_VALUES}
    for question, verdict in pairs:
        stats = counts[question.marks]
        stats[0] += 1
        if verdict is not None and verdict.is_correct:
            stats[1] += 1
    return {
        mark: MarkStats(total=total, correct=correct, marks=correct * mark)
        for mark, (total, correct) in counts.items()
    }


def compute_overall_score(pairs: Sequence[GradedPair]) -> OverallScore:
    """
    Total against maximum marks for a whole exam.

    max_score counts every question in `pairs`, attempted or not; unattempted
    questions earn nothing. Pass is inclusive at PASS_THRESHOLD_PERCENT.
    """
    max_score = sum(question.marks for question, _ in pairs)
    total_score = sum(
        question.marks for question, verdict in pairs if verdict is not None and verdict.is_correct
    )
    percentage = _percent(total_score, max_score)
    return OverallScore(
        total_score=total_score,
        max_score=max_score,
        percentage=percentage,
        passed=percentage >= PASS_THRESHOLD_PERCENT,
    )


def rank_weak_areas(breakdown: Mapping[str, CategoryStats], limit: int = 5) -> Dict[str, List[Tuple[str, CategoryStats]]]:
    """
    Order categories weakest first (accuracy, then name).

    Returns:
        {"weak_areas": first `limit`, "strong_areas": last `limit` strongest first,
         "all_categories": full ordering}
    """
    ordered = sorted(breakdown.items(), key=lambda item: (item[1].accuracy, item[0]))
    return {
        "weak_areas": ordered[:limit],
        "strong_areas": list(reversed(ordered[-limit:])) if len(ordered) > limit else [],
        "all_categories": ordered,
    }


def compute_performance_metrics(
    questions: Sequence[Question],
    records: Sequence[AnswerRecord],
    categories: Iterable[str] = tuple(QUESTION_CATEGORIES),
) -> PerformanceMetrics:
    """
    Learner-wide statistics from the full answer history.

    Only the latest record per question counts; records for questions not in
    `questions` are ignored.
    """
    by_id = {q.id: q for q in questions}
    latest = {qid: r for qid, r in latest_per_question(list(records)).items() if qid in by_id}

    pairs: List[GradedPair] = []
    for question in questions:
        record = latest.get(question.id)
        pairs.append((question, GradeVerdict(is_correct=record.is_correct) if record else None))

    answered = len(latest)
    correct = sum(1 for r in latest.values() if r.is_correct)
    total_time = sum(r.submitted.time_spent_sec for r in latest.values())

    return PerformanceMetrics(
        total_questions=len(questions),
        answered_questions=answered,
        correct_answers=correct,
        accuracy=_percent(correct, answered),
        average_time_per_question=total_time / answered if answered else 0.0,
        category_performance=compute_category_breakdown(pairs, categories),
    )


def build_exam_result(exam, answers: Mapping[str, SubmittedAnswer]) -> ExamResult:
    """
    Grade a completed trial exam.

    Args:
        exam: Object with `id` and `questions` (e.g. TrialExam)
        answers: Submitted answers keyed by question id; missing ids are unattempted

    Returns:
        ExamResult with score, pass status, mark and category breakdowns
    """
    pairs: List[GradedPair] = []
    for question in exam.questions:
        submitted = answers.get(question.id)
        pairs.append((question, grade(question.key, submitted) if submitted is not None else None))

    score = compute_overall_score(pairs)
    exam_categories = sorted({question.category for question in exam.questions})
    questions_correct = sum(1 for _, v in pairs if v is not None and v.is_correct)

    result = ExamResult(
        exam_id=exam.id,
        total_score=score.total_score,
        max_score=score.max_score,
        percentage=score.percentage,
        passed=score.passed,
        mark_breakdown=compute_mark_breakdown(pairs),
        category_breakdown=compute_category_breakdown(pairs, exam_categories),
        verdicts={question.id: verdict for question, verdict in pairs},
        time_spent=sum(answers[q.id].time_spent_sec for q in exam.questions if q.id in answers),
        questions_correct=questions_correct,
        questions_total=len(pairs),
    )
    logger.info(
        "Exam %s: %d/%d (%.1f%%), pass=%s",
        result.exam_id, result.total_score, result.max_score, result.percentage, result.passed,
    )
    return result
