"""
Compare the practice tables' hand-authored answers with computed ones: the TAS table
against the wind triangle solver, the ISA table against the 2 C / 1000 ft lapse rate.
Flags every legacy value further than the tolerance from the computed answer.

Run: python reconcile_practice_table.py [--tolerance 2] [--isa-tolerance 0] [--show-all]
"""
import argparse
import logging
import sys
from pathlib import Path

path = Path(__file__).resolve().parent
if str(path) not in sys.path:
    sys.path.insert(0, str(path))

from engine import ISA_PRACTICE_TOLERANCE, PRACTICE_TOLERANCE
from src.isa_table import reconcile_isa
from src.practice_table import PRACTICE_FIELDS, PRACTICE_ROWS, reconcile, solver_answers


def print_discrepancies(title, discrepancies, tolerance):
    print()
    print("=" * 60)
    print(f"{title} (tolerance ±{tolerance:g})")
    print("=" * 60)
    if not discrepancies:
        print("  All legacy answers agree.")
        return
    for d in discrepancies:
        print(f"  Q{d.q:2d}  {d.field:13s}  legacy={d.legacy:7.1f}  computed={d.solver:7.1f}  diff={d.difference:+6.1f}")
    print()
    print(f"  {len(discrepancies)} value(s) outside tolerance across {len({d.q for d in discrepancies})} row(s).")


def main():
    parser = argparse.ArgumentParser(description="Reconcile the practice tables against computed answers.")
    parser.add_argument("--tolerance", type=float, default=PRACTICE_TOLERANCE, help=f"TAS table allowed difference (default {PRACTICE_TOLERANCE})")
    parser.add_argument("--isa-tolerance", type=float, default=ISA_PRACTICE_TOLERANCE, help=f"ISA table allowed difference (default {ISA_PRACTICE_TOLERANCE})")
    parser.add_argument("--show-all", action="store_true", help="Print solver answers for every TAS row")
    args = parser.parse_args()

    if args.show_all:
        print()
        header = "  Q   TAS  FPT   W/V     " + "  ".join(f"{name:>13s}" for name in PRACTICE_FIELDS)
        print(header)
        print("-" * len(header))
        for row in PRACTICE_ROWS:
            answers = solver_answers(row)
            cells = "  ".join(f"{answers[name]:13.1f}" for name in PRACTICE_FIELDS)
            print(f"  {row.q:2d}  {row.tas:4.0f}  {row.fpt:03.0f}  {row.wind_dir:03.0f}/{row.wind_speed:<3.0f}  {cells}")

    tas = reconcile(PRACTICE_ROWS, tolerance=args.tolerance)
    isa = reconcile_isa(tolerance=args.isa_tolerance)
    print_discrepancies("TAS PRACTICE TABLE RECONCILIATION", tas, args.tolerance)
    print_discrepancies("ISA PRACTICE TABLE RECONCILIATION", isa, args.isa_tolerance)
    return 1 if tas or isa else 0


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    sys.exit(main())
