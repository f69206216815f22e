"""Shared data types for the form store and the editor."""

import uuid
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Any, Dict, List, NewType

# UI list-key only; never sent to or matched against the store
ClientKey = NewType("ClientKey", str)


def new_client_key(content_type: str) -> ClientKey:
    """Generate a fresh opaque key for one editor list entry."""
    return ClientKey(f"{content_type}-{uuid.uuid4().hex[:12]}")


@dataclass(frozen=True)
class PendingUpload:
    """A file chosen in the editor that has not been uploaded yet."""
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass
class FormEnvelope:
    id: str
    type: str
    values: List[Dict[str, Any]]
    created_at: datetime
    updated_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON responses."""
        data = asdict(self)
        data['created_at'] = self.created_at.isoformat()
        data['updated_at'] = self.updated_at.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FormEnvelope':
        """Create from a JSON response body."""
        stamps = {}
        for name in ('created_at', 'updated_at'):
            value = data.get(name)
            stamps[name] = datetime.fromisoformat(value) if value else datetime.now()
        return cls(
            id=str(data['id']),
            type=str(data.get('type', '')),
            values=list(data.get('values') or []),
            **stamps
        )


@dataclass
class Session:
    token: str
    email: str
    created_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime = None) -> bool:
        return (now or datetime.now()) >= self.expires_at
