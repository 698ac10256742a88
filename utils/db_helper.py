import sqlite3, os, json
from typing import Any, Dict, List

from app.errors import DatabaseError

DB_PATH = "data/history.db"


def _ensure_schema(conn):
    conn.execute("""
    CREATE TABLE IF NOT EXISTS results(
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        score INTEGER,
        accuracy REAL,
        wpm REAL,
        difficulty TEXT,
        duration INTEGER,
        completed_quests TEXT,
        created_at DATETIME DEFAULT CURRENT_TIMESTAMP
    );
    """)


def get_conn(db_path: str = DB_PATH):
    folder = os.path.dirname(db_path)
    if folder:
        os.makedirs(folder, exist_ok=True)
    conn = sqlite3.connect(db_path)
    _ensure_schema(conn)
    return conn


def insert_result(result, db_path: str = DB_PATH) -> int:
    """Append one finished game (a GameResult) to the history log."""
    conn = None
    try:
        conn = get_conn(db_path)
        cur = conn.cursor()
        cur.execute(
            "INSERT INTO results(score, accuracy, wpm, difficulty, duration, completed_quests, created_at) "
            "VALUES (?,?,?,?,?,?,?)",
            (
                int(result.score),
                float(result.accuracy),
                float(result.wpm),
                result.difficulty,
                int(result.duration),
                json.dumps(list(result.completed_quests)),
                result.finished_at,
            ),
        )
        conn.commit()
        return cur.lastrowid
    except Exception as e:
        raise DatabaseError(str(e)) from e
    finally:
        if conn is not None:
            conn.close()


def load_results(db_path: str = DB_PATH, limit: int = 50) -> List[Dict[str, Any]]:
    """Newest first. Display only: gameplay never reads this back."""
    conn = None
    try:
        conn = get_conn(db_path)
        cur = conn.cursor()
        cur.execute(
            "SELECT score, accuracy, wpm, difficulty, duration, completed_quests, created_at "
            "FROM results ORDER BY id DESC LIMIT ?",
            (int(limit),),
        )
        rows = cur.fetchall()
    except Exception as e:
        raise DatabaseError(str(e)) from e
    finally:
        if conn is not None:
            conn.close()
    return [
        {
            "score": r[0],
            "accuracy": r[1],
            "wpm": r[2],
            "difficulty": r[3],
            "duration": r[4],
            "completed_quests": json.loads(r[5] or "[]"),
            "created_at": r[6],
        }
        for r in rows
    ]
