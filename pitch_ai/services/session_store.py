"""In-memory interview session storage.

Sessions live for the lifetime of the process only.
"""

from datetime import datetime, timezone
from typing import Optional

_sessions: dict[str, dict] = {}


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def save_upload(session_id: str, content_type: str, record: dict) -> dict:
    session = _sessions.setdefault(session_id, {"uploads": {}})
    uploads = session.setdefault("uploads", {})
    stored = dict(record)
    stored["uploadedAt"] = _now_iso()
    uploads[content_type] = stored
    return stored


def get_session(session_id: str) -> Optional[dict]:
    return _sessions.get(session_id)


def update_session(session_id: str, data: dict) -> dict:
    existing = _sessions.get(session_id)
    if existing is None:
        _sessions[session_id] = dict(data)
    else:
        existing.update(data)
    return _sessions[session_id]


def processed_content(session_id: str) -> list[dict]:
    """Flatten a session's uploads into the processedContent list shape."""
    session = _sessions.get(session_id) or {}
    uploads = session.get("uploads") or {}
    items = []
    for content_type, record in uploads.items():
        if not isinstance(record, dict) or not record.get("content"):
            continue
        item = {
            "type": content_type,
            "content": record["content"],
            "method": record.get("method"),
        }
        for key in ("filename", "url"):
            if record.get(key):
                item[key] = record[key]
        items.append(item)
    return items


def clear_sessions() -> None:
    _sessions.clear()
