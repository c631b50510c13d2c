#!/usr/bin/python3
import sqlite3
import os
import errno
from datetime import datetime
import json

from blocker.config_loader import user_config_dir

# Database location
DB_PATH = user_config_dir() / "state.db"


def ensure_db_exists():
    """Ensure the database directory exists."""
    DB_PATH.parent.mkdir(parents=True, exist_ok=True)


def get_connection():
    """Get a connection to the database."""
    ensure_db_exists()
    conn = sqlite3.connect(str(DB_PATH))
    conn.row_factory = sqlite3.Row
    return conn


def init_db():
    """Initialize the database schema."""
    conn = get_connection()
    cursor = conn.cursor()

    # At most one in-flight block; id is pinned to 1
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS active_block (
            id INTEGER PRIMARY KEY CHECK (id = 1),
            token TEXT NOT NULL,
            hostnames TEXT NOT NULL,  -- JSON array of hostnames
            start_time REAL NOT NULL,
            end_time REAL NOT NULL,
            pid INTEGER NOT NULL
        )
    """)

    conn.commit()
    conn.close()


def record_block(token, hostnames, duration_minutes, pid=None):
    """Record the block started by this process, replacing any previous one."""
    conn = get_connection()
    cursor = conn.cursor()

    now = datetime.now().timestamp()
    end_time = now + (duration_minutes * 60)

    cursor.execute("""
        INSERT OR REPLACE INTO active_block (id, token, hostnames, start_time, end_time, pid)
        VALUES (1, ?, ?, ?, ?, ?)
    """, (token, json.dumps(hostnames), now, end_time, pid if pid is not None else os.getpid()))

    conn.commit()
    conn.close()
    return end_time


def get_block():
    """Get the recorded block, or None."""
    conn = get_connection()
    cursor = conn.cursor()

    cursor.execute("SELECT * FROM active_block WHERE id = 1")
    row = cursor.fetchone()
    conn.close()

    if not row:
        return None
    block = dict(row)
    block['hostnames'] = json.loads(block['hostnames'])
    return block


def clear_block(token=None):
    """Delete the recorded block.

    With a token, only a block carrying that token is deleted. Returns True
    if a row was removed.
    """
    conn = get_connection()
    cursor = conn.cursor()

    if token is None:
        cursor.execute("DELETE FROM active_block")
    else:
        cursor.execute("DELETE FROM active_block WHERE token = ?", (token,))
    removed = cursor.rowcount > 0

    conn.commit()
    conn.close()
    return removed


def owns_block(token):
    """Check whether the recorded block still belongs to token."""
    block = get_block()
    return block is not None and block['token'] == token


def is_process_alive(pid):
    """Check whether a process with this pid exists."""
    if pid <= 0:
        return False
    try:
        os.kill(pid, 0)
    except OSError as e:
        # EPERM means it exists but belongs to someone else
        return e.errno == errno.EPERM
    return True


def claim_block(token, pid):
    """Hand the recorded block over to another process."""
    conn = get_connection()
    cursor = conn.cursor()

    cursor.execute("UPDATE active_block SET pid = ? WHERE token = ?", (pid, token))
    claimed = cursor.rowcount > 0

    conn.commit()
    conn.close()
    return claimed
