"""
LazyMint Event Infrastructure

Typed contract events and the append-only log the execution runtime keeps
for them.

Design Principles
─────────────────

    Immutable Events: Events are facts about committed state changes.
    They are never edited; a reverted invocation removes the events it
    appended before anything outside the runtime can observe them.

    Ordering: Events carry a runtime-global sequence number in emission
    order, which follows the runtime's total order of mutating calls.

Copyright (c) 2026 Momentum. All rights reserved.
"""

from __future__ import annotations

import threading
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Type, TypeVar

E = TypeVar("E", bound="Event")


# ════════════════════════════════════════════════════════════════════════════
# EVENT BASE
# ════════════════════════════════════════════════════════════════════════════


@dataclass
class Event:
    """
    Base class for all contract events.

    Example:
        @dataclass
        class SignerUpdated(Event):
            previous_signer: str = ""
            new_signer: str = ""
    """

    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    event_timestamp: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )

    @property
    def event_type(self) -> str:
        """Get the event type name."""
        return self.__class__.__name__

    def to_dict(self) -> Dict[str, Any]:
        """Serialize event to dictionary."""
        data = asdict(self)
        data["event_type"] = self.event_type
        return data


# ════════════════════════════════════════════════════════════════════════════
# LEDGER EVENTS
# ════════════════════════════════════════════════════════════════════════════


@dataclass
class TransferSingle(Event):
    """Emitted for every balance change; issuance uses the zero address as ``sender``."""
    operator: str = ""
    sender: str = ""
    recipient: str = ""
    token_id: int = 0
    value: int = 0


@dataclass
class URI(Event):
    """Emitted when a token's metadata pointer is stored."""
    value: str = ""
    token_id: int = 0


@dataclass
class ApprovalForAll(Event):
    """Emitted when a holder changes a standard operator approval."""
    account: str = ""
    operator: str = ""
    approved: bool = False


@dataclass
class GlobalApprovalUpdated(Event):
    """Emitted when the owner adds or removes a global approver."""
    operator: str = ""
    approved: bool = False


@dataclass
class GlobalApprovalOptOutUpdated(Event):
    """Emitted when a holder opts in or out of global approvals."""
    holder: str = ""
    opted_out: bool = False


@dataclass
class SignerUpdated(Event):
    previous_signer: str = ""
    new_signer: str = ""


# ════════════════════════════════════════════════════════════════════════════
# ZONE AND OWNERSHIP EVENTS
# ════════════════════════════════════════════════════════════════════════════


@dataclass
class NftAddressUpdated(Event):
    previous_address: str = ""
    new_address: str = ""


@dataclass
class OwnershipTransferred(Event):
    previous_owner: str = ""
    new_owner: str = ""


# ════════════════════════════════════════════════════════════════════════════
# EVENT LOG
# ════════════════════════════════════════════════════════════════════════════


@dataclass
class EventRecord:
    """An event as recorded by the runtime."""
    sequence_number: int
    address: str
    event: Event

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sequence_number": self.sequence_number,
            "address": self.address,
            "event": self.event.to_dict(),
        }


class EventLog:
    """
    Append-only event log keyed by emitting contract address.

    Supports truncation back to a saved position so that the runtime can
    discard the events of a reverted invocation.

    Example:
        log = EventLog()
        mark = log.position
        log.append(ledger_address, SignerUpdated(...))
        log.truncate(mark)      # revert
    """

    def __init__(self):
        self._records: List[EventRecord] = []
        self._sequence_number = 0
        self._lock = threading.RLock()

    def append(self, address: str, event: Event) -> EventRecord:
        with self._lock:
            self._sequence_number += 1
            record = EventRecord(
                sequence_number=self._sequence_number,
                address=address,
                event=event,
            )
            self._records.append(record)
            return record

    @property
    def position(self) -> int:
        """Number of records currently in the log."""
        with self._lock:
            return len(self._records)

    def truncate(self, position: int) -> List[EventRecord]:
        """Drop every record after ``position`` and return the dropped records."""
        with self._lock:
            dropped = self._records[position:]
            del self._records[position:]
            self._sequence_number = self._records[-1].sequence_number if self._records else 0
            return dropped

    def filter(
        self,
        event_type: Optional[Type[E]] = None,
        address: Optional[str] = None,
    ) -> List[E]:
        """Return events matching the given type and emitting address, in order."""
        with self._lock:
            records = list(self._records)
        if address is not None:
            records = [r for r in records if r.address.lower() == address.lower()]
        if event_type is not None:
            records = [r for r in records if isinstance(r.event, event_type)]
        return [r.event for r in records]  # type: ignore[misc]

    def records(self, from_position: int = 0) -> List[EventRecord]:
        with self._lock:
            return self._records[from_position:]

    def __len__(self) -> int:
        return self.position
