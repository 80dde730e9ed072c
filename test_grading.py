"""Answer validation: multiple choice, tolerance boundaries, multi-field all-or-nothing."""
import pytest

from src.grading import MalformedKeyError, grade, within_tolerance
from src.models import ExpectedAnswer, QuestionAnswerKey, SubmittedAnswer


def mc_key(correct=2):
    return QuestionAnswerKey(question_id="AFPA_001", correct_option_index=correct)


def sa_key(*expected):
    return QuestionAnswerKey(question_id="AFPA_015", expected_answers=expected)


GS = ExpectedAnswer(field="groundSpeed", value=273, tolerance_abs=2, unit="kt")
DRIFT = ExpectedAnswer(field="drift", value=8.5, tolerance_abs=0.5, unit="deg")


# ---- multiple choice ----

def test_multiple_choice_correct():
    verdict = grade(mc_key(), SubmittedAnswer("AFPA_001", selected_option_index=2))
    assert verdict.is_correct
    assert verdict.per_field == {}


def test_multiple_choice_wrong():
    assert not grade(mc_key(), SubmittedAnswer("AFPA_001", selected_option_index=1)).is_correct


def test_multiple_choice_missing_selection_is_incorrect_not_error():
    assert not grade(mc_key(), SubmittedAnswer("AFPA_001")).is_correct


def test_multiple_choice_option_zero():
    assert grade(mc_key(0), SubmittedAnswer("AFPA_001", selected_option_index=0)).is_correct
    assert not grade(mc_key(0), SubmittedAnswer("AFPA_001")).is_correct


# ---- short answer ----

@pytest.mark.parametrize("value, tolerance", [(273, 2), (0, 0), (-58, 1), (8.5, 0.5), (0.1, 0.2), (345.75, 0.25)])
def test_tolerance_boundaries(value, tolerance):
    key = sa_key(ExpectedAnswer(field="x", value=value, tolerance_abs=tolerance))

    def is_correct(actual):
        return grade(key, SubmittedAnswer("AFPA_015", field_answers={"x": actual})).is_correct

    assert is_correct(value)
    assert is_correct(value + tolerance)
    assert is_correct(value - tolerance)
    assert not is_correct(value + tolerance + 1e-6)
    assert not is_correct(value - tolerance - 1e-6)


def test_per_field_detail():
    verdict = grade(sa_key(GS), SubmittedAnswer("AFPA_015", field_answers={"groundSpeed": 274.5}))
    result = verdict.per_field["groundSpeed"]
    assert verdict.is_correct
    assert result.is_correct
    assert result.expected == 273
    assert result.actual == 274.5
    assert result.tolerance_abs == 2
    assert result.unit == "kt"


def test_two_fields_one_wrong_is_incorrect():
    verdict = grade(
        sa_key(GS, DRIFT),
        SubmittedAnswer("AFPA_015", field_answers={"groundSpeed": 273, "drift": 12}),
    )
    assert not verdict.is_correct
    assert verdict.per_field["groundSpeed"].is_correct
    assert not verdict.per_field["drift"].is_correct
    assert verdict.fields_correct == 1
    assert verdict.fields_total == 2


def test_two_fields_both_right_is_correct():
    verdict = grade(
        sa_key(GS, DRIFT),
        SubmittedAnswer("AFPA_015", field_answers={"groundSpeed": 272, "drift": 8.9}),
    )
    assert verdict.is_correct
    assert verdict.fields_correct == 2


def test_missing_field_is_incorrect_not_error():
    verdict = grade(sa_key(GS, DRIFT), SubmittedAnswer("AFPA_015", field_answers={"groundSpeed": 273}))
    assert not verdict.is_correct
    assert verdict.per_field["drift"].actual is None
    assert not verdict.per_field["drift"].is_correct


def test_extra_submitted_fields_are_ignored():
    verdict = grade(sa_key(GS), SubmittedAnswer("AFPA_015", field_answers={"groundSpeed": 273, "etas": 1}))
    assert verdict.is_correct
    assert set(verdict.per_field) == {"groundSpeed"}


def test_non_finite_submission_is_incorrect():
    assert not grade(sa_key(GS), SubmittedAnswer("AFPA_015", field_answers={"groundSpeed": float("nan")})).is_correct
    assert not grade(sa_key(GS), SubmittedAnswer("AFPA_015", field_answers={"groundSpeed": float("inf")})).is_correct


def test_grading_does_not_mutate_inputs():
    key = sa_key(GS, DRIFT)
    submitted = SubmittedAnswer("AFPA_015", field_answers={"groundSpeed": 273})
    grade(key, submitted)
    assert key.expected_answers == (GS, DRIFT)
    assert dict(submitted.field_answers) == {"groundSpeed": 273}


def test_malformed_key_raises():
    with pytest.raises(MalformedKeyError):
        grade(QuestionAnswerKey(question_id="broken"), SubmittedAnswer("broken", selected_option_index=0))


def test_negative_tolerance_rejected():
    with pytest.raises(ValueError):
        ExpectedAnswer(field="x", value=1, tolerance_abs=-1)


def test_within_tolerance_helper():
    assert within_tolerance(275, 273, 2)
    assert not within_tolerance(275.01, 273, 2)
    assert not within_tolerance(None, 273, 2)


def test_boundary_slack_width():
    # slack is relative to the tolerance: 1e-9 of 2 kt
    assert within_tolerance(275 + 1e-10, 273, 2)
    assert not within_tolerance(275 + 1e-8, 273, 2)
    assert not within_tolerance(271 - 1e-8, 273, 2)
    assert not within_tolerance(1e-12, 0, 0)
