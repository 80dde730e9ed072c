"""
Answer validation: one submitted answer against its key.
Multiple choice is an exact index match; short answer is all-or-nothing across
fields, each field passing when |actual - expected| <= tolerance.
"""
import logging
import math
from typing import Dict, Optional

from src.models import FieldResult, GradeVerdict, QuestionAnswerKey, SubmittedAnswer

logger = logging.getLogger(__name__)

# Relative slack on the tolerance boundary for float representation error (e.g. 0.1 + 0.2 - 0.1).
BOUNDARY_REL_TOL = 1e-9


class MalformedKeyError(ValueError):
    """Answer key defines neither a correct option nor any expected answer."""


def within_tolerance(actual: Optional[float], expected: float, tolerance: float) -> bool:
    """
    Boundary-inclusive |actual - expected| <= tolerance. Missing or non-finite actual never passes.

    A difference above the tolerance by no more than BOUNDARY_REL_TOL of the tolerance
    still passes, so 0.1 + 0.2 against 0.1 +/- 0.2 is correct. Overshoots that small
    are accepted as well: 275 + 1e-10 against 273 +/- 2 passes, 275 + 1e-8 does not.
    """
    if actual is None or not math.isfinite(actual):
        return False
    difference = abs(actual - expected)
    if difference <= tolerance:
        return True
    return math.isclose(difference, tolerance, rel_tol=BOUNDARY_REL_TOL, abs_tol=0.0)


def grade(key: QuestionAnswerKey, submitted: SubmittedAnswer) -> GradeVerdict:
    """
    Grade one answer.

    Args:
        key: Answer key of the question
        submitted: The learner's answer (a missing selection or field is simply incorrect)

    Returns:
        GradeVerdict with overall correctness and per-field detail for short answers

    Raises:
        MalformedKeyError: key has no correct option and no expected answers
    """
    if key.correct_option_index is not None:
        is_correct = (
            submitted.selected_option_index is not None
            and submitted.selected_option_index == key.correct_option_index
        )
        return GradeVerdict(is_correct=is_correct)

    if not key.expected_answers:
        raise MalformedKeyError(f"Question {key.question_id} has no correct option or expected answers")

    per_field: Dict[str, FieldResult] = {}
    for expected in key.expected_answers:
        actual = submitted.field_answers.get(expected.field)
        per_field[expected.field] = FieldResult(
            is_correct=within_tolerance(actual, expected.value, expected.tolerance_abs),
            expected=expected.value,
            actual=actual,
            tolerance_abs=expected.tolerance_abs,
            unit=expected.unit,
        )

    verdict = GradeVerdict(
        is_correct=all(r.is_correct for r in per_field.values()),
        per_field=per_field,
    )
    logger.debug("Graded %s: %d/%d fields", key.question_id, verdict.fields_correct, verdict.fields_total)
    return verdict
