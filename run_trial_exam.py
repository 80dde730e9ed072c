"""
Generate a CASA trial exam from the question bank and optionally simulate a sitting:
answer some questions right, some wrong, skip the rest, then score the exam.

Run: python run_trial_exam.py [--scenario B] [--seed 42] [--bank question_bank.jsonl | --hosted] [--simulate]
"""
import argparse
import logging
import random
import sys
from pathlib import Path

path = Path(__file__).resolve().parent
if str(path) not in sys.path:
    sys.path.insert(0, str(path))

from engine import PASS_THRESHOLD_PERCENT
from src.categories import QUESTION_CATEGORIES, SYLLABUS_TOPICS, format_category_name
from src.engine import build_exam_result, rank_weak_areas
from src.models import Question, SubmittedAnswer
from src.trial_exam import EXAM_SCENARIOS, InsufficientQuestionsError, generate_random_seed, generate_trial_exam

logger = logging.getLogger(__name__)


def load_bank(bank_path: Path | None = None, hosted: bool = False, category: str | None = None) -> list[Question]:
    """Questions from Supabase (hosted) or from a local .json/.jsonl bank file."""
    if hosted:
        import db
        rows = db.get_questions(db.get_supabase(), category)
    else:
        from importer import DEFAULT_BANK, load_and_transform
        rows = [r for r in load_and_transform(bank_path or DEFAULT_BANK) if not category or r["category"] == category]
    return [Question.from_row(row) for row in rows]


def unknown_topics(topics) -> list[str]:
    known = set(QUESTION_CATEGORIES) | set(SYLLABUS_TOPICS)
    return [t for t in topics or () if t not in known]


def simulate_answers(exam, rng: random.Random, correct_ratio: float = 0.7, wrong_ratio: float = 0.2) -> dict:
    """Submitted answers keyed by question id; skipped questions are left out."""
    answers = {}
    for question in exam.questions:
        r = rng.random()
        if r >= correct_ratio + wrong_ratio:
            continue
        right = r < correct_ratio
        key = question.key
        if key.is_multiple_choice:
            choice = key.correct_option_index
            if not right:
                wrong = [i for i in range(len(question.options)) if i != choice]
                choice = rng.choice(wrong) if wrong else None
            answers[question.id] = SubmittedAnswer(question.id, selected_option_index=choice, time_spent_sec=rng.randint(30, 240))
        else:
            offset = 0 if right else 1
            values = {e.field: e.value + offset * (e.tolerance_abs + 1) for e in key.expected_answers}
            answers[question.id] = SubmittedAnswer(question.id, field_answers=values, time_spent_sec=rng.randint(60, 900))
    return answers


def main():
    parser = argparse.ArgumentParser(description="Generate (and optionally simulate) a CASA trial exam.")
    parser.add_argument("--scenario", choices=sorted(EXAM_SCENARIOS), default="B", help="Mark distribution (default B)")
    parser.add_argument("--seed", type=int, default=None, help="RNG seed (default random)")
    parser.add_argument("--bank", default=None, help="Local .json/.jsonl question bank")
    parser.add_argument("--hosted", action="store_true", help="Load questions from Supabase instead of a file")
    parser.add_argument("--include", nargs="*", default=None, help="Only these topics")
    parser.add_argument("--exclude", nargs="*", default=None, help="Never these topics")
    parser.add_argument("--simulate", action="store_true", help="Answer the exam and print the result")
    parser.add_argument("--correct-ratio", type=float, default=0.7, help="Fraction to answer correctly (default 0.7)")
    parser.add_argument("--wrong-ratio", type=float, default=0.2, help="Fraction to answer wrongly (default 0.2)")
    args = parser.parse_args()

    for topic in unknown_topics((args.include or []) + (args.exclude or [])):
        logger.warning("Unknown topic %r (not a bank category or syllabus topic)", topic)

    questions = load_bank(Path(args.bank) if args.bank else None, hosted=args.hosted)
    seed = args.seed if args.seed is not None else generate_random_seed()
    try:
        exam = generate_trial_exam(questions, args.scenario, seed, args.include, args.exclude)
    except InsufficientQuestionsError as e:
        print(e)
        return 1

    scenario = EXAM_SCENARIOS[args.scenario]
    print()
    print("=" * 60)
    print(f"TRIAL EXAM {exam.id}  {scenario.label}  ({exam.time_limit_minutes} min)")
    print("=" * 60)
    for i, q in enumerate(exam.questions, 1):
        print(f"  Q{i:2d}  [{q.marks}]  {q.type:14s}  {format_category_name(q.category):30s}  {q.title[:40]}")

    if not args.simulate:
        return 0

    answers = simulate_answers(exam, random.Random(seed), args.correct_ratio, args.wrong_ratio)
    result = build_exam_result(exam, answers)
    print()
    print(f"  Score: {result.total_score}/{result.max_score} ({result.percentage:.1f}%)  "
          f"{'PASS' if result.passed else 'FAIL'} (pass mark {PASS_THRESHOLD_PERCENT}%)")
    print(f"  Questions correct: {result.questions_correct}/{result.questions_total}  "
          f"time {result.time_spent / 60:.0f} min")
    print()
    print("  By mark value:")
    for mark, stats in sorted(result.mark_breakdown.items(), reverse=True):
        if stats.total:
            print(f"    {mark}-mark  {stats.correct}/{stats.total}  marks {stats.marks}")
    print("  Weakest topics:")
    for category, stats in rank_weak_areas(result.category_breakdown, limit=3)["weak_areas"]:
        print(f"    {format_category_name(category):30s}  {stats.correct}/{stats.attempted}  {stats.accuracy:.0f}%")
    print()
    return 0


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    sys.exit(main())
