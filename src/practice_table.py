"""
TAS / heading / ground speed practice table.
Answer keys come from the wind triangle solver; the hand-authored values the table
used to ship with are kept only so they can be reconciled against the solver.
"""
import logging
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence

from engine import PRACTICE_TOLERANCE
from src.grading import grade
from src.models import ExpectedAnswer, GradeVerdict, QuestionAnswerKey, SubmittedAnswer
from src.nav_computer import WindTriangleInput, WindTriangleResult, solve

logger = logging.getLogger(__name__)

# field -> (result attribute, unit, graded as magnitude)
PRACTICE_FIELDS = {
    "crosswind": ("crosswind_kt", "kt", True),
    "drift_angle": ("drift_angle_deg", "deg", True),
    "head_tailwind": ("head_tailwind_kt", "kt", False),
    "etas": ("effective_tas_kt", "kt", False),
    "ground_speed": ("ground_speed_kt", "kt", False),
    "wc": ("wind_component_kt", "kt", False),
}


@dataclass(frozen=True)
class PracticeRow:
    q: int
    tas: float
    fpt: float
    wind_dir: float
    wind_speed: float
    legacy_answers: Mapping[str, float]

    @property
    def question_id(self) -> str:
        return f"tas-practice-{self.q}"

    def to_input(self) -> WindTriangleInput:
        return WindTriangleInput(self.tas, self.fpt, self.wind_dir, self.wind_speed)


@dataclass(frozen=True)
class Discrepancy:
    q: int
    field: str
    legacy: float
    solver: float

    @property
    def difference(self) -> float:
        return self.legacy - self.solver


def _row(q, tas, fpt, wind_dir, wind_speed, crosswind, drift_angle, head_tailwind, etas, ground_speed, wc):
    return PracticeRow(q, tas, fpt, wind_dir, wind_speed, {
        "crosswind": crosswind,
        "drift_angle": drift_angle,
        "head_tailwind": head_tailwind,
        "etas": etas,
        "ground_speed": ground_speed,
        "wc": wc,
    })


# Crosswind and drift are tabulated as magnitudes.
PRACTICE_ROWS: List[PracticeRow] = [
    _row(1, 410, 210, 150, 100, 84, 12, -50, 402, 352, -58),
    _row(2, 420, 65, 300, 70, 58, 8, 40, 418, 458, 38),
    _row(3, 450, 355, 80, 100, 99, 13, -10, 440, 430, -20),
    _row(4, 450, 255, 240, 60, 16, 2, -58, 450, 392, -58),
    _row(5, 350, 205, 245, 80, 52, 8, -61, 348, 287, -63),
    _row(6, 220, 250, 170, 65, 64, 17, -10, 211, 201, -19),
    _row(7, 280, 320, 280, 80, 50, 10, -60, 276, 216, -64),
    _row(8, 260, 40, 120, 50, 49, 11, -9, 255, 246, -14),
    _row(9, 400, 135, 340, 70, 30, 4, 63, 400, 463, 63),
    _row(10, 450, 225, 340, 110, 100, 13, 43, 440, 483, 33),
    _row(11, 360, 45, 355, 90, 65, 10, -60, 355, 295, -65),
    _row(12, 390, 165, 290, 100, 81, 12, 59, 382, 441, 51),
]


def solver_answers(row: PracticeRow, result: Optional[WindTriangleResult] = None) -> Dict[str, float]:
    """Unrounded solver values in the table's convention."""
    values = (result or solve(row.to_input())).as_dict()
    answers = {}
    for name, (attr, _, magnitude) in PRACTICE_FIELDS.items():
        value = values[attr]
        answers[name] = abs(value) if magnitude else value
    return answers


def build_answer_key(row: PracticeRow, tolerance: float = PRACTICE_TOLERANCE) -> QuestionAnswerKey:
    """Six-field key from the solver, rounded to whole units."""
    answers = solver_answers(row)
    return QuestionAnswerKey(
        question_id=row.question_id,
        expected_answers=tuple(
            ExpectedAnswer(field=name, value=float(round(answers[name])), tolerance_abs=tolerance, unit=unit)
            for name, (_, unit, _) in PRACTICE_FIELDS.items()
        ),
    )


def grade_row(row: PracticeRow, values: Mapping[str, float], tolerance: float = PRACTICE_TOLERANCE) -> GradeVerdict:
    """Grade a learner's filled-in row; blank cells count as incorrect."""
    return grade(build_answer_key(row, tolerance), SubmittedAnswer(question_id=row.question_id, field_answers=values))


def reconcile(rows: Sequence[PracticeRow] = PRACTICE_ROWS, tolerance: float = PRACTICE_TOLERANCE) -> List[Discrepancy]:
    """Legacy table values further than `tolerance` from the solver."""
    discrepancies = []
    for row in rows:
        answers = solver_answers(row)
        for name in PRACTICE_FIELDS:
            legacy = row.legacy_answers.get(name)
            if legacy is None:
                continue
            if abs(legacy - answers[name]) > tolerance:
                discrepancies.append(Discrepancy(q=row.q, field=name, legacy=legacy, solver=answers[name]))
    logger.info("Reconciled %d practice rows: %d discrepancies", len(rows), len(discrepancies))
    return discrepancies
