"""Local document cache: database initialization and connection management."""
import json
import sqlite3
from datetime import datetime
from pathlib import Path

DEFAULT_DB_PATH = str(Path.home() / ".study_companion" / "companion.db")

SCHEMA = """
CREATE TABLE IF NOT EXISTS documents (
    path TEXT PRIMARY KEY,
    collection TEXT NOT NULL,
    data TEXT NOT NULL,
    updated_at TEXT
);

CREATE INDEX IF NOT EXISTS idx_documents_collection ON documents(collection);
"""


def get_connection(db_path: str = DEFAULT_DB_PATH) -> sqlite3.Connection:
    """Return a SQLite connection with row factory enabled."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    return conn


def init_db(db_path: str = DEFAULT_DB_PATH) -> None:
    """Initialize the cache database, creating tables if they don't exist."""
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = get_connection(db_path)
    conn.executescript(SCHEMA)
    conn.commit()
    conn.close()


def collection_of(path: str) -> str:
    """``users/u1/notes/n1`` -> ``users/u1/notes``."""
    return path.rsplit("/", 1)[0] if "/" in path else ""


def get_document(db_path: str, path: str) -> dict | None:
    conn = get_connection(db_path)
    row = conn.execute("SELECT data FROM documents WHERE path = ?", (path,)).fetchone()
    conn.close()
    return json.loads(row["data"]) if row else None


def set_document(db_path: str, path: str, data: dict, merge: bool = False) -> dict:
    """Store a document. With ``merge`` the top-level fields are combined with
    the cached ones. Returns the stored document."""
    conn = get_connection(db_path)
    if merge:
        row = conn.execute("SELECT data FROM documents WHERE path = ?", (path,)).fetchone()
        if row:
            data = {**json.loads(row["data"]), **data}
    conn.execute(
        """INSERT INTO documents (path, collection, data, updated_at) VALUES (?, ?, ?, ?)
        ON CONFLICT(path) DO UPDATE SET data=excluded.data, updated_at=excluded.updated_at""",
        (path, collection_of(path), json.dumps(data), datetime.now().isoformat()),
    )
    conn.commit()
    conn.close()
    return data


def delete_document(db_path: str, path: str) -> None:
    conn = get_connection(db_path)
    conn.execute("DELETE FROM documents WHERE path = ?", (path,))
    conn.commit()
    conn.close()


def list_documents(db_path: str, collection: str) -> list[dict]:
    """All cached documents directly inside a collection."""
    conn = get_connection(db_path)
    rows = conn.execute(
        "SELECT data FROM documents WHERE collection = ? ORDER BY path", (collection,)
    ).fetchall()
    conn.close()
    return [json.loads(r["data"]) for r in rows]


def replace_collection(db_path: str, collection: str, documents: dict[str, dict]) -> None:
    """Replace the cached contents of a collection with ``{doc_id: data}``."""
    now = datetime.now().isoformat()
    conn = get_connection(db_path)
    conn.execute("DELETE FROM documents WHERE collection = ?", (collection,))
    conn.executemany(
        "INSERT INTO documents (path, collection, data, updated_at) VALUES (?, ?, ?, ?)",
        [(f"{collection}/{doc_id}", collection, json.dumps(data), now) for doc_id, data in documents.items()],
    )
    conn.commit()
    conn.close()
