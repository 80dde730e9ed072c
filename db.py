"""Supabase CRUD for the question bank and learner progress."""
import logging
import os

from dotenv import load_dotenv
from supabase import create_client, Client

load_dotenv()

logger = logging.getLogger(__name__)


def get_supabase() -> Client:
    url = os.environ.get("SUPABASE_URL")
    key = os.environ.get("SUPABASE_KEY")
    if not url or not key:
        raise ValueError("SUPABASE_URL and SUPABASE_KEY must be set")
    return create_client(url, key)


def upsert_questions_bulk(client: Client, rows: list[dict], chunk_size: int = 200):
    """Bulk upsert into questions. Rows must include 'id'. Dedupes by id so no chunk has duplicates."""
    n_before = len(rows)
    by_id = {r["id"]: r for r in rows}
    rows = list(by_id.values())
    if len(rows) < n_before:
        logger.info("Deduped questions by id: %d -> %d", n_before, len(rows))
    n_chunks = (len(rows) + chunk_size - 1) // chunk_size
    for i in range(0, len(rows), chunk_size):
        chunk = rows[i : i + chunk_size]
        logger.info("Upserting chunk %d/%d (%d rows)", i // chunk_size + 1, n_chunks, len(chunk))
        client.table("questions").upsert(chunk, on_conflict="id").execute()


def delete_questions_by_source(client: Client, source: str):
    """Delete all questions with the given source (e.g. 'seed')."""
    client.table("questions").delete().eq("source", source).execute()


# --- Questions ---

def get_questions(client: Client, category: str | None = None) -> list[dict]:
    q = client.table("questions").select("*")
    if category:
        q = q.eq("category", category)
    return q.order("created_at").execute().data or []


# --- User progress ---

def get_user_progress(client: Client, user_id: str) -> list[dict]:
    """All answer rows for a user, newest first."""
    r = (
        client.table("user_progress")
        .select("*")
        .eq("user_id", str(user_id))
        .order("attempted_at", desc=True)
        .execute()
    )
    return r.data or []


def upsert_user_progress(client: Client, user_id: str, row: dict):
    return client.table("user_progress").upsert({**row, "user_id": str(user_id)}).execute()
