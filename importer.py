"""Ingest a question bank (.json array or .jsonl) and bulk UPSERT into questions."""
import json
import argparse
import logging
from pathlib import Path
from uuid import uuid5, NAMESPACE_DNS

from db import get_supabase, upsert_questions_bulk, delete_questions_by_source
from src.models import Question

DEFAULT_BANK = Path(__file__).resolve().parent / "question_bank.jsonl"
DEFAULT_SOURCE = "seed"

logger = logging.getLogger(__name__)


def parse_record(raw: dict, source: str = DEFAULT_SOURCE) -> dict | None:
    """Map one authored question (camelCase, as exported by the question editor) to a questions row.

    Returns None when the record has no id, an out-of-range mark value, or no answer key.
    """
    question_id = raw.get("id")
    if not question_id:
        return None
    correct = raw.get("correctAnswer")
    options = raw.get("options") or []
    if correct is not None and not (isinstance(correct, int) and 0 <= correct < len(options)):
        return None
    row = {
        "id": str(uuid5(NAMESPACE_DNS, str(question_id))),
        "title": raw.get("title") or "",
        "category": raw.get("category") or "unknown",
        "marks": raw.get("marks", 1),
        "options": options or None,
        "correct_answer": correct,
        "expected_answers": raw.get("expectedAnswers") or None,
    }
    try:
        question = Question.from_row(row)
    except (KeyError, TypeError, ValueError) as e:
        logger.warning("Skipping %s: %s", question_id, e)
        return None
    if not question.key.is_multiple_choice and not question.key.expected_answers:
        logger.warning("Skipping %s: no correct option or expected answers", question_id)
        return None
    out = question.to_row()
    out["description"] = raw.get("description") or ""
    out["reference"] = raw.get("reference") or ""
    out["given_data"] = raw.get("givenData") or {}
    out["working_steps"] = raw.get("workingSteps") or []
    out["source"] = source
    return out


def load_records(path: Path):
    """Yield raw question dicts from a JSON array or a JSONL file."""
    text = path.read_text(encoding="utf-8")
    if path.suffix == ".json":
        yield from json.loads(text)
        return
    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        try:
            yield json.loads(line)
        except json.JSONDecodeError:
            logger.warning("Skipping invalid JSON line: %.60s", line)


def load_and_transform(path: Path, source: str = DEFAULT_SOURCE):
    for raw in load_records(path):
        row = parse_record(raw, source)
        if row:
            yield row


def run_import(bank_path: Path | None = None, chunk_size: int = 200, dry_run: bool = False,
               replace: bool = False, source: str = DEFAULT_SOURCE):
    path = bank_path or DEFAULT_BANK
    if not path.exists():
        raise FileNotFoundError(f"Question bank not found: {path}")
    rows = list(load_and_transform(path, source))
    if dry_run:
        print(f"Dry run: would upsert {len(rows)} questions from {path}")
        if rows:
            print("Sample row:", rows[0])
        return rows
    client = get_supabase()
    if replace:
        delete_questions_by_source(client, source)
        print(f"Deleted existing {source} questions")
    upsert_questions_bulk(client, rows, chunk_size=chunk_size)
    print(f"Upserted {len(rows)} questions from {path}")
    return rows


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    parser = argparse.ArgumentParser(description="Import a question bank into Supabase questions.")
    parser.add_argument("bank", nargs="?", default=None, help=f"Path to .json/.jsonl (default: {DEFAULT_BANK})")
    parser.add_argument("--chunk-size", type=int, default=200, help="Upsert chunk size (default 200)")
    parser.add_argument("--dry-run", action="store_true", help="Parse only, do not upsert")
    parser.add_argument("--replace", action="store_true", help="Delete existing questions from this source first")
    parser.add_argument("--source", default=DEFAULT_SOURCE, help=f"Source tag stored on each row (default {DEFAULT_SOURCE})")
    args = parser.parse_args()
    path = Path(args.bank) if args.bank else DEFAULT_BANK
    run_import(bank_path=path, chunk_size=args.chunk_size, dry_run=args.dry_run, replace=args.replace, source=args.source)
