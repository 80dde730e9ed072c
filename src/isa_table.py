"""
ISA temperature practice table.
Pressure altitude gives the ISA temperature; ISA deviation gives the actual temperature.
Keys use the table's 2 C / 1000 ft rule; the shipped hand values are kept for reconciliation.
"""
import logging
from dataclasses import dataclass
from typing import Dict, List, Mapping, Sequence

from engine import ISA_PRACTICE_LAPSE_RATE_C_PER_1000FT, ISA_PRACTICE_TOLERANCE
from src.grading import grade
from src.models import ExpectedAnswer, GradeVerdict, QuestionAnswerKey, SubmittedAnswer
from src.nav_computer import isa_temperature_c
from src.practice_table import Discrepancy

logger = logging.getLogger(__name__)

ISA_FIELDS = ("isa_temp", "actual_temp")


@dataclass(frozen=True)
class IsaRow:
    q: int
    pressure_altitude_ft: float
    isa_deviation_c: float
    legacy_answers: Mapping[str, float]

    @property
    def question_id(self) -> str:
        return f"isa-practice-{self.q}"


def _row(q, pressure_altitude_ft, isa_deviation_c, isa_temp, actual_temp):
    return IsaRow(q, pressure_altitude_ft, isa_deviation_c, {"isa_temp": isa_temp, "actual_temp": actual_temp})


ISA_ROWS: List[IsaRow] = [
    _row(1, 10000, 8, -5, 3),
    _row(2, 14000, -12, -13, -25),
    _row(3, 21000, -9, -27, -36),
    _row(4, 17000, 5, -19, -14),
    _row(5, 28000, 8, -40, -32),
    _row(6, 15000, -3, -15, -18),
    _row(7, 19000, 12, -23, -11),
    _row(8, 22000, -6, -29, -35),
    _row(9, 28000, 12, -40, -28),
    _row(10, 25000, -14, -35, -49),
]


def isa_answers(row: IsaRow) -> Dict[str, float]:
    isa_temp = isa_temperature_c(row.pressure_altitude_ft, ISA_PRACTICE_LAPSE_RATE_C_PER_1000FT)
    return {"isa_temp": isa_temp, "actual_temp": isa_temp + row.isa_deviation_c}


def build_isa_answer_key(row: IsaRow, tolerance: float = ISA_PRACTICE_TOLERANCE) -> QuestionAnswerKey:
    answers = isa_answers(row)
    return QuestionAnswerKey(
        question_id=row.question_id,
        expected_answers=tuple(
            ExpectedAnswer(field=name, value=float(round(answers[name])), tolerance_abs=tolerance, unit="C")
            for name in ISA_FIELDS
        ),
    )


def grade_isa_row(row: IsaRow, values: Mapping[str, float], tolerance: float = ISA_PRACTICE_TOLERANCE) -> GradeVerdict:
    """Whole degrees, exact by default; blank cells count as incorrect."""
    return grade(build_isa_answer_key(row, tolerance), SubmittedAnswer(question_id=row.question_id, field_answers=values))


def reconcile_isa(rows: Sequence[IsaRow] = ISA_ROWS, tolerance: float = ISA_PRACTICE_TOLERANCE) -> List[Discrepancy]:
    """Legacy ISA table values further than `tolerance` from the lapse-rate answers."""
    discrepancies = []
    for row in rows:
        answers = isa_answers(row)
        for name in ISA_FIELDS:
            legacy = row.legacy_answers.get(name)
            if legacy is not None and abs(legacy - answers[name]) > tolerance:
                discrepancies.append(Discrepancy(q=row.q, field=name, legacy=legacy, solver=answers[name]))
    logger.info("Reconciled %d ISA rows: %d discrepancies", len(rows), len(discrepancies))
    return discrepancies
