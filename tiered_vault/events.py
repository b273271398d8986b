"""
Append-only log of vault events (creation, approval, settlement)

Events are emitted only after an operation has fully succeeded, so the log
never records a rejected call.
"""

import hashlib
import json
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


class EventKind(str, Enum):
    REQUEST_CREATED = "request_created"
    REQUEST_APPROVED = "request_approved"
    REQUEST_WITHDRAWN = "request_withdrawn"


@dataclass(frozen=True)
class VaultEvent:
    """A single immutable event. event_hash is SHA-256 of its canonical JSON."""
    sequence: int
    kind: EventKind
    request_id: int
    actor: str
    payload: Dict[str, Any]
    timestamp: int
    event_hash: str

    @classmethod
    def create(cls, sequence: int, kind: EventKind, request_id: int, actor: str,
               payload: Dict[str, Any], timestamp: int) -> 'VaultEvent':
        canonical = json.dumps(
            {
                'sequence': sequence,
                'kind': kind.value,
                'request_id': request_id,
                'actor': actor,
                'payload': payload,
                'timestamp': timestamp
            },
            sort_keys=True
        ).encode()
        return cls(sequence, kind, request_id, actor, payload, timestamp,
                   "sha256:" + hashlib.sha256(canonical).hexdigest())

    def to_dict(self) -> dict:
        return {
            'sequence': self.sequence,
            'kind': self.kind.value,
            'request_id': self.request_id,
            'actor': self.actor,
            'payload': self.payload,
            'timestamp': self.timestamp,
            'event_hash': self.event_hash
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'VaultEvent':
        return cls(
            sequence=data['sequence'],
            kind=EventKind(data['kind']),
            request_id=data['request_id'],
            actor=data['actor'],
            payload=data['payload'],
            timestamp=data['timestamp'],
            event_hash=data['event_hash']
        )


class EventLog:
    """Append-only event log with optional JSONL file persistence"""

    def __init__(self, storage_path: Optional[Path] = None):
        self._events: List[VaultEvent] = []
        self._subscribers: List[Callable[[VaultEvent], None]] = []
        self._storage_path = Path(storage_path) if storage_path else None

        if self._storage_path and self._storage_path.exists():
            self._load_from_file(self._storage_path)

    def emit(self, kind: EventKind, request_id: int, actor: str,
             payload: Dict[str, Any], timestamp: int) -> VaultEvent:
        """
        Build the next event in sequence and append it.

        Emission happens after the vault state has changed, so it never
        raises: a failed file write or a failing subscriber is logged and
        the event stays in the in-memory log.
        """
        event = VaultEvent.create(len(self._events) + 1, kind, request_id, actor, payload, timestamp)
        self._events.append(event)

        if self._storage_path:
            try:
                with open(self._storage_path, 'a', encoding='utf-8') as f:
                    f.write(json.dumps(event.to_dict(), sort_keys=True) + "\n")
            except OSError:
                logger.exception("Could not append event %d to %s", event.sequence, self._storage_path)

        logger.info("%s request=%s actor=%s", kind.value, request_id, actor)
        for callback in self._subscribers:
            try:
                callback(event)
            except Exception:
                logger.exception("Subscriber %r failed on event %d", callback, event.sequence)
        return event

    def subscribe(self, callback: Callable[[VaultEvent], None]) -> None:
        self._subscribers.append(callback)

    def events(self, kind: Optional[EventKind] = None) -> List[VaultEvent]:
        """Return events, optionally filtered by kind"""
        if kind is None:
            return list(self._events)
        return [e for e in self._events if e.kind == kind]

    def for_request(self, request_id: int) -> List[VaultEvent]:
        return [e for e in self._events if e.request_id == request_id]

    def __len__(self):
        return len(self._events)

    def _load_from_file(self, path: Path) -> None:
        with open(path, encoding='utf-8') as f:
            for line in f:
                line = line.strip()
                if line:
                    self._events.append(VaultEvent.from_dict(json.loads(line)))
