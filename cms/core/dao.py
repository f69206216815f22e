"""
Form store persistence: one JSON envelope per content type.

The values array is always replaced wholesale; there is no per-record
merge on this side. Concurrent writers to the same type race and the last
write wins.
"""

import json
import secrets
import uuid
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from util.logging import logger
from .db import get_db
from .schema import FormEnvelope, Session


class StoreError(Exception):
    """Custom exception for form store failures."""
    pass


class EnvelopeNotFoundError(StoreError):
    """Raised when an envelope id does not resolve."""
    pass


_ENVELOPE_COLUMNS = "id, type, values_json, created_at, updated_at"


def _row_to_envelope(row) -> FormEnvelope:
    envelope_id, form_type, values_json, created_at, updated_at = row
    return FormEnvelope(
        id=envelope_id,
        type=form_type,
        values=json.loads(values_json),
        created_at=datetime.fromisoformat(created_at),
        updated_at=datetime.fromisoformat(updated_at)
    )


def list_envelopes(form_type: str) -> List[FormEnvelope]:
    """List envelopes for a type, most recently created first."""
    try:
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"SELECT {_ENVELOPE_COLUMNS} FROM form_data WHERE type = ? ORDER BY created_at DESC, rowid DESC",
                (form_type,)
            )
            return [_row_to_envelope(row) for row in cursor.fetchall()]
    except Exception as e:
        logger.error(f"Failed to list envelopes for type '{form_type}': {e}")
        raise StoreError(str(e)) from e


def get_envelope(envelope_id: str) -> Optional[FormEnvelope]:
    """Get an envelope by id."""
    if not envelope_id or not envelope_id.strip():
        return None

    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute(f"SELECT {_ENVELOPE_COLUMNS} FROM form_data WHERE id = ?", (envelope_id.strip(),))
        row = cursor.fetchone()
        return _row_to_envelope(row) if row else None


def upsert_envelope(form_type: str, values: List[Dict[str, Any]]) -> FormEnvelope:
    """Create the envelope for a type, or replace its values if it exists."""
    now = datetime.now().isoformat()
    try:
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(
                '''
                INSERT INTO form_data (id, type, values_json, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(type) DO UPDATE SET
                    values_json = excluded.values_json,
                    updated_at = excluded.updated_at
                ''',
                (str(uuid.uuid4()), form_type, json.dumps(values), now, now)
            )
            conn.commit()

            cursor.execute(f"SELECT {_ENVELOPE_COLUMNS} FROM form_data WHERE type = ?", (form_type,))
            envelope = _row_to_envelope(cursor.fetchone())
    except Exception as e:
        logger.log_form_operation("upsert", form_type, "failed", {"error": str(e)})
        raise StoreError(str(e)) from e

    logger.log_form_operation("upsert", form_type, details={"id": envelope.id, "count": len(values)})
    return envelope


def replace_values(envelope_id: str, values: List[Dict[str, Any]]) -> FormEnvelope:
    """Replace the whole values array of an existing envelope."""
    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute(
            "UPDATE form_data SET values_json = ?, updated_at = ? WHERE id = ?",
            (json.dumps(values), datetime.now().isoformat(), envelope_id)
        )
        if cursor.rowcount == 0:
            raise EnvelopeNotFoundError(f"Envelope not found: {envelope_id}")
        conn.commit()

        cursor.execute(f"SELECT {_ENVELOPE_COLUMNS} FROM form_data WHERE id = ?", (envelope_id,))
        envelope = _row_to_envelope(cursor.fetchone())

    logger.log_form_operation("replace", envelope.type, details={"id": envelope_id, "count": len(values)})
    return envelope


def delete_envelope(envelope_id: str) -> None:
    """Remove an envelope entirely."""
    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute("DELETE FROM form_data WHERE id = ?", (envelope_id,))
        if cursor.rowcount == 0:
            raise EnvelopeNotFoundError(f"Envelope not found: {envelope_id}")
        conn.commit()

    logger.info(f"Deleted envelope {envelope_id}")


def get_envelope_count() -> int:
    """Get the number of stored envelopes."""
    try:
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT COUNT(*) FROM form_data")
            return cursor.fetchone()[0]
    except Exception as e:
        logger.error(f"Failed to count envelopes: {e}")
        return 0


def create_session(email: str, max_age_sec: int) -> Session:
    """Create a login session and return it."""
    created_at = datetime.now()
    session = Session(
        token=secrets.token_urlsafe(32),
        email=email,
        created_at=created_at,
        expires_at=created_at + timedelta(seconds=max_age_sec)
    )
    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute(
            "INSERT INTO sessions (token, email, created_at, expires_at) VALUES (?, ?, ?, ?)",
            (session.token, session.email, session.created_at.isoformat(), session.expires_at.isoformat())
        )
        conn.commit()
    return session


def get_session(token: str) -> Optional[Session]:
    """Get a live session by token; expired sessions are removed."""
    if not token:
        return None

    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute("SELECT token, email, created_at, expires_at FROM sessions WHERE token = ?", (token,))
        row = cursor.fetchone()
        if not row:
            return None

        session = Session(
            token=row[0],
            email=row[1],
            created_at=datetime.fromisoformat(row[2]),
            expires_at=datetime.fromisoformat(row[3])
        )
        if session.is_expired():
            cursor.execute("DELETE FROM sessions WHERE token = ?", (token,))
            conn.commit()
            return None
        return session


def delete_session(token: str) -> bool:
    """Delete a session; returns False when it did not exist."""
    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute("DELETE FROM sessions WHERE token = ?", (token,))
        conn.commit()
        return cursor.rowcount > 0
