#!/usr/bin/env python3
"""
Chain Execution Environment

A minimal single-threaded ledger environment the contracts run inside:

- Block number and timestamp that only move when mined or warped
- Deterministic addresses for contracts and externally owned accounts
- Call frames that carry the sender of each external call
- All-or-nothing units of work: the outermost call snapshots every registered
  contract and rolls all of them back, events included, when anything raises
"""

import copy
import functools
import hashlib
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional

from .errors import NoSender, Reentrancy

logger = logging.getLogger(__name__)

Address = str

ZERO_ADDRESS: Address = "0x0000000000000000000000000000000000000000"
# Tokens sent here cannot be recovered but still count towards total supply
SINK_ADDRESS: Address = "0x000000000000000000000000000000000000dEaD"


@dataclass
class Event:
    """Record emitted by a contract during a unit of work"""
    name: str
    emitter: Address
    args: Dict[str, Any]
    block_number: int
    timestamp: int


@dataclass
class CallFrame:
    contract: "Contract"
    sender: Address
    method: str


@dataclass
class _Snapshot:
    states: Dict[Address, Dict[str, Any]] = field(default_factory=dict)
    log_length: int = 0


class Chain:
    """Execution environment shared by every deployed contract"""

    def __init__(self, timestamp: int = 1_700_000_000, block_time: int = 2):
        self.timestamp = timestamp
        self.block_number = 1
        self.block_time = block_time

        self.contracts: Dict[Address, "Contract"] = {}
        self.logs: List[Event] = []
        self.labels: Dict[Address, str] = {}

        self._frames: List[CallFrame] = []
        self._origin: Optional[Address] = None
        self._nonce = 0

    # ------------------------------------------------------------------
    # Addresses
    # ------------------------------------------------------------------

    def new_address(self, label: str = "") -> Address:
        """Derive a fresh, deterministic address"""
        self._nonce += 1
        digest = hashlib.sha256(f"{label}:{self._nonce}".encode()).hexdigest()
        address = "0x" + digest[:40]
        if label:
            self.labels[address] = label
        return address

    def account(self, label: str) -> Address:
        """Create an externally owned account"""
        return self.new_address(label)

    def register(self, contract: "Contract", label: str = "") -> Address:
        address = self.new_address(label or contract.__class__.__name__)
        self.contracts[address] = contract
        return address

    def label(self, address: Address) -> str:
        return self.labels.get(address, address[:10])

    # ------------------------------------------------------------------
    # Time
    # ------------------------------------------------------------------

    def mine(self, seconds: int = None, blocks: int = 1) -> None:
        """Advance to a new block, by default one block_time per block"""
        if seconds is None:
            seconds = self.block_time * blocks
        if seconds < 0 or blocks < 1:
            raise ValueError("Cannot mine backwards")
        self.block_number += blocks
        self.timestamp += seconds

    def warp(self, timestamp: int) -> None:
        """Jump to an absolute timestamp in a new block"""
        if timestamp < self.timestamp:
            raise ValueError(f"Cannot warp back from {self.timestamp} to {timestamp}")
        self.mine(timestamp - self.timestamp)

    # ------------------------------------------------------------------
    # Call context
    # ------------------------------------------------------------------

    @contextmanager
    def acting_as(self, sender: Address) -> Iterator[Address]:
        """Make sender the origin of every outermost call inside the block"""
        previous = self._origin
        self._origin = sender
        try:
            yield sender
        finally:
            self._origin = previous

    @property
    def msg_sender(self) -> Address:
        if not self._frames:
            raise NoSender("No call in progress")
        return self._frames[-1].sender

    @property
    def in_call(self) -> bool:
        return bool(self._frames)

    def call(self, contract: "Contract", fn: Callable, args: tuple, kwargs: dict,
             nonreentrant: bool = False) -> Any:
        """Run fn as an external call into contract"""
        if self._frames:
            sender = self._frames[-1].contract.address
        elif self._origin is not None:
            sender = self._origin
        else:
            raise NoSender(f"{fn.__name__} called without an acting account")

        if nonreentrant and any(frame.contract is contract for frame in self._frames):
            raise Reentrancy(f"Re-entered {contract.__class__.__name__}.{fn.__name__}")

        outermost = not self._frames
        snapshot = self._snapshot() if outermost else None

        self._frames.append(CallFrame(contract, sender, fn.__name__))
        try:
            return fn(contract, *args, **kwargs)
        except Exception as e:
            if outermost:
                self._restore(snapshot)
                logger.debug("Reverted %s.%s from %s: %s",
                             contract.__class__.__name__, fn.__name__,
                             self.label(sender), e.__class__.__name__)
            raise
        finally:
            self._frames.pop()

    def _snapshot(self) -> _Snapshot:
        # Contract-to-contract references and the chain itself are shared, not copied
        memo = {id(c): c for c in self.contracts.values()}
        memo[id(self)] = self
        states = {
            address: copy.deepcopy(vars(contract), memo)
            for address, contract in self.contracts.items()
        }
        return _Snapshot(states=states, log_length=len(self.logs))

    def _restore(self, snapshot: _Snapshot) -> None:
        for address, state in snapshot.states.items():
            contract_state = vars(self.contracts[address])
            contract_state.clear()
            contract_state.update(state)
        del self.logs[snapshot.log_length:]

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def emit(self, emitter: Address, name: str, args: Dict[str, Any]) -> Event:
        event = Event(name, emitter, dict(args), self.block_number, self.timestamp)
        self.logs.append(event)
        return event

    def events(self, name: str = None, emitter: Address = None) -> List[Event]:
        return [
            event for event in self.logs
            if (name is None or event.name == name)
            and (emitter is None or event.emitter == emitter)
        ]


class Contract:
    """Base class for components deployed on a Chain"""

    def __init__(self, chain: Chain, label: str = ""):
        self.chain = chain
        self.address = chain.register(self, label)

    @property
    def msg_sender(self) -> Address:
        return self.chain.msg_sender

    def emit(self, name: str, **args) -> Event:
        return self.chain.emit(self.address, name, args)


def external(fn: Callable) -> Callable:
    """Mark a state-changing method as an all-or-nothing external call"""
    @functools.wraps(fn)
    def wrapper(self, *args, **kwargs):
        return self.chain.call(self, fn, args, kwargs)
    return wrapper


def nonreentrant(fn: Callable) -> Callable:
    """External call that refuses to run while its contract is already on the call stack"""
    @functools.wraps(fn)
    def wrapper(self, *args, **kwargs):
        return self.chain.call(self, fn, args, kwargs, nonreentrant=True)
    return wrapper
