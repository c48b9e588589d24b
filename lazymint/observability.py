"""
LazyMint Observability Framework

Structured logging and a tamper-evident audit trail for the issuance
ledger and the order zone.

Architecture:
    ┌─────────────────────────────────────────────────────────┐
    │                    Contract Code                         │
    │  logger.info("msg", token_id=x)   audit.log(action=...)  │
    └───────────────────────┬─────────────────────────────────┘
                            │
    ┌───────────────────────▼─────────────────────────────────┐
    │              LazyMintLogger / AuditLogger                │
    │  Correlation IDs, layer tags, hash-chained audit events │
    └───────────────────────┬─────────────────────────────────┘
                            │
    ┌───────────────────────▼─────────────────────────────────┐
    │                    Log Handlers                          │
    │        StructuredHandler (json) │ StreamHandler (text)   │
    └─────────────────────────────────────────────────────────┘

Copyright (c) 2026 Momentum. All rights reserved.
"""

from __future__ import annotations

import contextvars
import functools
import hashlib
import json
import logging
import sys
import threading
import time
import traceback
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple, TypeVar

from lazymint.config import get_config

correlation_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "correlation_id", default=""
)


class LogLevel(Enum):
    """Log severity levels."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class Layer(Enum):
    """LazyMint system layers for categorization."""
    LEDGER = "ledger"
    ZONE = "zone"
    SECURITY = "security"
    RUNTIME = "runtime"
    CONFIG = "config"
    CLI = "cli"


@dataclass
class LogEvent:
    """Structured log event."""
    timestamp: str
    level: str
    logger: str
    message: str
    correlation_id: str = ""
    layer: str = ""
    operation: str = ""
    duration_ms: Optional[float] = None
    error_code: str = ""
    context: Dict[str, Any] = field(default_factory=dict)
    exception: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary, excluding empty values."""
        d = asdict(self)
        return {k: v for k, v in d.items() if v is not None and v != "" and v != {}}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)


class StructuredHandler(logging.Handler):
    """Logging handler that outputs structured JSON."""

    def __init__(self, stream: Any = None):
        super().__init__()
        self.stream = stream or sys.stderr

    def emit(self, record: logging.LogRecord) -> None:
        try:
            event = LogEvent(
                timestamp=datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
                level=record.levelname.lower(),
                logger=record.name,
                message=record.getMessage(),
                correlation_id=correlation_id_var.get(),
                layer=getattr(record, "layer", ""),
                operation=getattr(record, "operation", ""),
                duration_ms=getattr(record, "duration_ms", None),
                error_code=getattr(record, "error_code", ""),
                context=getattr(record, "context", {}),
            )

            if record.exc_info:
                event.exception = "".join(traceback.format_exception(*record.exc_info))

            self.stream.write(event.to_json() + "\n")
            self.stream.flush()
        except Exception:
            self.handleError(record)


def _make_handler(log_format: str) -> logging.Handler:
    if log_format == "text":
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s: %(message)s"
        ))
        return handler
    return StructuredHandler()


class LazyMintLogger:
    """
    Structured logger for LazyMint components.

    Automatically includes correlation IDs and layer information
    in all log events.
    """

    def __init__(
        self,
        name: str,
        layer: Layer,
        level: Optional[LogLevel] = None,
    ):
        obs = get_config().observability
        level = level or LogLevel(obs.log_level.get())

        self.name = name
        self.layer = layer
        self._logger = logging.getLogger(f"lazymint.{layer.value}.{name}")
        self._logger.setLevel(getattr(logging, level.value.upper()))

        if not any(getattr(h, "_lazymint", False) for h in self._logger.handlers):
            handler = _make_handler(obs.log_format.get())
            handler._lazymint = True  # type: ignore[attr-defined]
            self._logger.addHandler(handler)

    def _log(
        self,
        level: int,
        message: str,
        operation: str = "",
        error_code: str = "",
        duration_ms: Optional[float] = None,
        exc_info: bool = False,
        **context: Any,
    ) -> None:
        extra = {
            "layer": self.layer.value,
            "operation": operation,
            "error_code": error_code,
            "duration_ms": duration_ms,
            "context": context,
        }
        self._logger.log(level, message, extra=extra, exc_info=exc_info)

    def debug(self, message: str, **context: Any) -> None:
        self._log(logging.DEBUG, message, **context)

    def info(self, message: str, **context: Any) -> None:
        self._log(logging.INFO, message, **context)

    def warning(self, message: str, **context: Any) -> None:
        self._log(logging.WARNING, message, **context)

    def error(
        self,
        message: str,
        error_code: str = "",
        exc_info: bool = False,
        **context: Any,
    ) -> None:
        self._log(logging.ERROR, message, error_code=error_code, exc_info=exc_info, **context)

    def operation(
        self,
        name: str,
        duration_ms: float,
        success: bool = True,
        **context: Any,
    ) -> None:
        """Log an operation completion."""
        level = logging.DEBUG if success else logging.WARNING
        status = "completed" if success else "failed"
        self._log(
            level,
            f"Operation {name} {status}",
            operation=name,
            duration_ms=duration_ms,
            **context,
        )


def generate_correlation_id() -> str:
    """Generate a new correlation ID."""
    return f"corr-{uuid.uuid4().hex[:12]}"


def set_correlation_id(correlation_id: str) -> contextvars.Token:
    """Set the correlation ID for the current context."""
    return correlation_id_var.set(correlation_id)


def get_correlation_id() -> str:
    """Get the current correlation ID, creating one if unset."""
    cid = correlation_id_var.get()
    if not cid:
        cid = generate_correlation_id()
        correlation_id_var.set(cid)
    return cid


def get_logger(name: str, layer: Layer) -> LazyMintLogger:
    """Get a logger for a LazyMint component."""
    return LazyMintLogger(name, layer)


T = TypeVar("T")


def timed_operation(
    logger: LazyMintLogger,
    operation_name: str,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Decorator for timing and logging operations."""
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            start = time.monotonic()
            success = True
            try:
                return func(*args, **kwargs)
            except Exception:
                success = False
                raise
            finally:
                duration_ms = (time.monotonic() - start) * 1000
                logger.operation(operation_name, duration_ms, success)
        return wrapper
    return decorator


# =============================================================================
# AUDIT TRAIL
# =============================================================================

@dataclass
class AuditEvent:
    """Audit event for administrative and issuance outcomes."""
    event_id: str
    timestamp: str
    actor: str
    action: str
    resource_type: str
    resource_id: str
    outcome: str  # success, noop, denied
    correlation_id: str = ""
    details: Dict[str, Any] = field(default_factory=dict)
    previous_hash: str = ""
    event_hash: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def compute_hash(self) -> str:
        content = self.to_dict()
        content.pop("event_hash")
        data = json.dumps(content, sort_keys=True, default=str)
        return hashlib.sha256(data.encode()).hexdigest()


class AuditLogger:
    """
    Tamper-evident audit trail.

    Each event carries the hash of its predecessor. The trail is kept
    outside contract state, so denied calls stay recorded after their
    state changes are rolled back.
    """

    GENESIS = "genesis"

    def __init__(self, logger: LazyMintLogger, enabled: Optional[bool] = None):
        self._logger = logger
        self._events: List[AuditEvent] = []
        self._lock = threading.Lock()
        if enabled is None:
            enabled = get_config().observability.audit_enabled.get()
        self.enabled = enabled

    def log(
        self,
        actor: str,
        action: str,
        resource_type: str,
        resource_id: str,
        outcome: str,
        **details: Any,
    ) -> Optional[AuditEvent]:
        """Log an audit event."""
        if not self.enabled:
            return None

        with self._lock:
            event = AuditEvent(
                event_id=uuid.uuid4().hex,
                timestamp=datetime.now(timezone.utc).isoformat(),
                actor=actor,
                action=action,
                resource_type=resource_type,
                resource_id=resource_id,
                outcome=outcome,
                correlation_id=get_correlation_id(),
                details=details,
                previous_hash=self._events[-1].event_hash if self._events else self.GENESIS,
            )
            event.event_hash = event.compute_hash()
            self._events.append(event)

        self._logger.info(
            f"AUDIT: {action} on {resource_type}/{resource_id} -> {outcome}",
            operation="audit",
            actor=actor,
            event_hash=event.event_hash,
        )
        return event

    def verify_chain(self) -> Tuple[bool, Optional[int]]:
        """
        Verify the audit trail integrity.

        Returns (valid, first_invalid_index).
        """
        with self._lock:
            previous = self.GENESIS
            for i, event in enumerate(self._events):
                if event.previous_hash != previous or event.compute_hash() != event.event_hash:
                    return (False, i)
                previous = event.event_hash
            return (True, None)

    def get_events(
        self,
        action: Optional[str] = None,
        outcome: Optional[str] = None,
    ) -> List[AuditEvent]:
        """Query audit events."""
        with self._lock:
            events = list(self._events)
        if action:
            events = [e for e in events if e.action == action]
        if outcome:
            events = [e for e in events if e.outcome == outcome]
        return events

    def export(self) -> List[Dict[str, Any]]:
        with self._lock:
            return [e.to_dict() for e in self._events]
