"""ISA temperature practice table: lapse-rate answer keys and reconciliation of legacy answers."""
import pytest

from src.isa_table import ISA_ROWS, build_isa_answer_key, grade_isa_row, isa_answers, reconcile_isa

ROWS = {row.q: row for row in ISA_ROWS}


def test_table_has_ten_rows():
    assert sorted(ROWS) == list(range(1, 11))


def test_answer_key_row_one():
    key = build_isa_answer_key(ROWS[1])
    assert key.question_id == "isa-practice-1"
    assert {e.field: e.value for e in key.expected_answers} == {"isa_temp": -5, "actual_temp": 3}
    assert all(e.tolerance_abs == 0 for e in key.expected_answers)


@pytest.mark.parametrize("row", ISA_ROWS, ids=lambda r: f"Q{r.q}")
def test_key_answers_pass(row):
    assert grade_isa_row(row, isa_answers(row)).is_correct


def test_one_degree_off_is_wrong():
    verdict = grade_isa_row(ROWS[2], {"isa_temp": -13, "actual_temp": -24})
    assert not verdict.is_correct
    assert verdict.per_field["isa_temp"].is_correct
    assert grade_isa_row(ROWS[2], {"isa_temp": -13, "actual_temp": -24}, tolerance=1).is_correct


def test_blank_cell_is_incorrect():
    assert not grade_isa_row(ROWS[6], {"isa_temp": -15}).is_correct


def test_reconcile_flags_fl280_rows():
    # 28000 ft at 2 C / 1000 ft is -41 C; the shipped table says -40
    found = [(d.q, d.field, d.legacy, d.solver) for d in reconcile_isa()]
    assert found == [
        (5, "isa_temp", -40, -41),
        (5, "actual_temp", -32, -33),
        (9, "isa_temp", -40, -41),
        (9, "actual_temp", -28, -29),
    ]


def test_reconcile_with_one_degree_tolerance_is_clean():
    assert reconcile_isa(tolerance=1) == []


def test_reconcile_cli_reports_both_tables(monkeypatch, capsys):
    from reconcile_practice_table import main

    monkeypatch.setattr("sys.argv", ["reconcile_practice_table.py"])
    assert main() == 1
    out = capsys.readouterr().out
    assert "TAS PRACTICE TABLE" in out
    assert "ISA PRACTICE TABLE" in out
    assert "Q 5  isa_temp" in out
