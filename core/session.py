# core/session.py
import os
import sqlite3
import datetime
import pytz
from dataclasses import dataclass
from typing import Optional

from .logger import DATA_DIR, get_logger

logger = get_logger(__name__)

SESSION_DB_PATH = os.getenv("SESSION_DB_PATH", os.path.join(DATA_DIR, "session.sqlite3"))


@dataclass
class Session:
    """
    Login state of the current user. Owned by the application shell and
    handed to whatever needs the token or the username.
    """
    token: Optional[str] = None
    username: Optional[str] = None
    balance: Optional[float] = None
    logged_in_at: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)


def _connect(db_path: str):
    parent = os.path.dirname(db_path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    return sqlite3.connect(db_path)


def now_utc_iso() -> str:
    return datetime.datetime.now(tz=pytz.UTC).isoformat()


def ensure_db(db_path: str = SESSION_DB_PATH):
    with _connect(db_path) as con:
        cur = con.cursor()
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS session (
                id INTEGER PRIMARY KEY CHECK (id = 1),
                token TEXT,
                username TEXT,
                balance REAL,
                logged_in_at TEXT
            )
        """
        )
        con.commit()


def load_session(db_path: str = SESSION_DB_PATH) -> Session:
    """
    Return the persisted session, or an anonymous one if nobody is logged in.
    """
    ensure_db(db_path)
    with _connect(db_path) as con:
        cur = con.cursor()
        cur.execute(
            "SELECT token, username, balance, logged_in_at FROM session WHERE id=1"
        )
        row = cur.fetchone()

    if not row:
        return Session()
    token, username, balance, logged_in_at = row
    return Session(
        token=token,
        username=username,
        balance=balance,
        logged_in_at=logged_in_at,
    )


def save_session(session: Session, db_path: str = SESSION_DB_PATH) -> Session:
    if not session.logged_in_at:
        session.logged_in_at = now_utc_iso()
    ensure_db(db_path)
    with _connect(db_path) as con:
        cur = con.cursor()
        cur.execute(
            """
            INSERT INTO session (id, token, username, balance, logged_in_at)
            VALUES (1,?,?,?,?)
            ON CONFLICT(id) DO UPDATE SET
                token=excluded.token,
                username=excluded.username,
                balance=excluded.balance,
                logged_in_at=excluded.logged_in_at
        """,
            (session.token, session.username, session.balance, session.logged_in_at),
        )
        con.commit()
    logger.info("Persisted session for user '%s'.", session.username)
    return session


def clear_session(db_path: str = SESSION_DB_PATH):
    ensure_db(db_path)
    with _connect(db_path) as con:
        cur = con.cursor()
        cur.execute("DELETE FROM session")
        con.commit()
    logger.info("Cleared persisted session.")
