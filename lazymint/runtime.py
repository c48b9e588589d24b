"""
LazyMint Execution Runtime

In-process stand-in for the execution environment the ledger and zone
contracts run on. It owns the contract registry, assigns deterministic
addresses, serializes every mutating call into one total order and makes
each call all-or-nothing.

Architecture:
    ┌─────────────────────────────────────────────────────────────┐
    │                     ExecutionRuntime                         │
    │  ┌──────────────┐  ┌──────────────┐  ┌──────────────┐       │
    │  │   Contract   │  │  Transaction │  │   EventLog   │       │
    │  │   Registry   │  │    Frames    │  │ + AuditTrail │       │
    │  └──────┬───────┘  └──────┬───────┘  └──────┬───────┘       │
    │         │   snapshot / restore / truncate   │               │
    │  ┌──────┴─────────────────┴─────────────────┴──────┐        │
    │  │        LazyMint1155   │   LazyMintZone   │ ...  │        │
    │  └─────────────────────────────────────────────────┘        │
    └─────────────────────────────────────────────────────────────┘

Usage:
    runtime = ExecutionRuntime(chain_id=1337)
    ledger = runtime.deploy(LazyMint1155, deployer=owner, signer=signer)

    with runtime.transaction():
        ...  # any exception restores every contract and the event log

Copyright (c) 2026 Momentum. All rights reserved.
"""

from __future__ import annotations

import copy
import functools
import threading
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, Optional, Type, TypeVar

from eth_utils import keccak, to_bytes, to_checksum_address

from lazymint.config import get_config
from lazymint.events import Event, EventLog
from lazymint.hardening import LazyMintError, UnknownContract, normalize_address
from lazymint.observability import AuditLogger, Layer, get_logger

logger = get_logger("runtime", Layer.RUNTIME)

C = TypeVar("C", bound="Contract")
F = TypeVar("F", bound=Callable[..., Any])


# =============================================================================
# CONTRACT BASE
# =============================================================================


class Contract:
    """
    Base class for contracts hosted by an ExecutionRuntime.

    Subclasses keep all mutable data in a single ``state`` dataclass so the
    runtime can snapshot and restore it around each call.
    """

    state: Any

    def __init__(self, runtime: "ExecutionRuntime", address: str, deployer: str):
        self.runtime = runtime
        self.address = address
        self.deployer = deployer

    def snapshot(self) -> Any:
        return copy.deepcopy(self.state)

    def restore(self, snapshot: Any) -> None:
        self.state = snapshot

    def emit(self, event: Event) -> None:
        self.runtime.events.append(self.address, event)

    def audit(self, actor: str, action: str, outcome: str, **details: Any) -> None:
        self.runtime.audit.log(
            actor=actor,
            action=action,
            resource_type=type(self).__name__,
            resource_id=self.address,
            outcome=outcome,
            **details,
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(address={self.address!r})"


def transactional(method: F) -> F:
    """
    Run a contract method inside a runtime transaction.

    Failures raised by the method roll back every contract touched during
    the call and are recorded as denied in the audit trail before they
    propagate.
    """
    @functools.wraps(method)
    def wrapper(self: Contract, *args: Any, **kwargs: Any) -> Any:
        try:
            with self.runtime.transaction():
                return method(self, *args, **kwargs)
        except LazyMintError as e:
            self.audit(
                actor=str(kwargs.get("caller", "")),
                action=method.__name__,
                outcome="denied",
                error_code=e.code.value if e.code else "",
                reason=e.message,
            )
            raise
    return wrapper  # type: ignore[return-value]


# =============================================================================
# RUNTIME
# =============================================================================


class ExecutionRuntime:
    """
    Contract registry plus transactional execution.

    Mutating calls hold a re-entrant lock for their whole duration, so
    calls from different threads are applied one at a time while nested
    calls (the zone calling into the ledger) proceed on the same thread.
    """

    def __init__(self, chain_id: Optional[int] = None, audit: Optional[AuditLogger] = None):
        if chain_id is None:
            chain_id = get_config().runtime.chain_id.get()
        self.chain_id = chain_id
        self.events = EventLog()
        self.audit = audit or AuditLogger(logger)
        self._contracts: Dict[str, Contract] = {}
        self._nonces: Dict[str, int] = {}
        self._lock = threading.RLock()
        self._depth = 0

    # ─────────────────────────────────────────────────────────────────────
    # Deployment
    # ─────────────────────────────────────────────────────────────────────

    def compute_address(self, deployer: str, nonce: int) -> str:
        """Address of the contract ``deployer`` creates with ``nonce``."""
        seed = to_bytes(hexstr=deployer) + nonce.to_bytes(32, "big")
        return to_checksum_address(keccak(seed)[-20:])

    def deploy(self, contract_cls: Type[C], *, deployer: str, **kwargs: Any) -> C:
        """Instantiate ``contract_cls`` at the deployer's next address."""
        deployer = normalize_address(deployer, "deployer")
        with self._lock:
            nonce = self._nonces.get(deployer, 0)
            self._nonces[deployer] = nonce + 1
            address = self.compute_address(deployer, nonce)

            with self.transaction():
                contract = contract_cls(self, address, deployer, **kwargs)
                self._contracts[address] = contract

        logger.info(
            f"Deployed {contract_cls.__name__}",
            operation="deploy",
            address=address,
            deployer=deployer,
        )
        return contract

    def get_contract(self, address: str) -> Contract:
        address = normalize_address(address)
        with self._lock:
            contract = self._contracts.get(address)
        if contract is None:
            raise UnknownContract(address)
        return contract

    def has_code(self, address: str) -> bool:
        with self._lock:
            return normalize_address(address) in self._contracts

    # ─────────────────────────────────────────────────────────────────────
    # Transactions
    # ─────────────────────────────────────────────────────────────────────

    @contextmanager
    def transaction(self) -> Iterator["ExecutionRuntime"]:
        """
        Atomic frame over all contract state and the event log.

        Frames nest; an exception escaping any frame restores what that
        frame saw on entry and is re-raised unchanged.
        """
        with self._lock:
            snapshots = {addr: c.snapshot() for addr, c in self._contracts.items()}
            mark = self.events.position
            self._depth += 1
            try:
                yield self
            except BaseException:
                for addr in list(self._contracts):
                    if addr in snapshots:
                        self._contracts[addr].restore(snapshots[addr])
                    else:
                        del self._contracts[addr]
                dropped = self.events.truncate(mark)
                logger.debug(
                    "Transaction reverted",
                    operation="revert",
                    depth=self._depth,
                    dropped_events=len(dropped),
                )
                raise
            finally:
                self._depth -= 1

    @property
    def in_transaction(self) -> bool:
        return self._depth > 0
