#!/usr/bin/env python3
"""
Execution environment tests

Call frames and senders, all-or-nothing rollback across contracts, event
truncation, reentrancy rejection and block time.
"""

import pytest

from options_token_sim.core.chain import Chain, Contract, external, nonreentrant
from options_token_sim.core.errors import NoSender, Reentrancy


class Counter(Contract):

    def __init__(self, chain):
        super().__init__(chain, "Counter")
        self.value = 0
        self.seen = None

    @external
    def bump(self):
        self.value += 1
        self.seen = self.msg_sender
        self.emit("Bumped", value=self.value)

    @external
    def bump_both_then_fail(self, other):
        self.value += 1
        other.bump()
        raise RuntimeError("boom")

    @external
    def forward(self, other):
        other.bump()


class Guarded(Contract):

    def __init__(self, chain):
        super().__init__(chain, "Guarded")
        self.entries = 0

    @nonreentrant
    def enter(self, callback):
        self.entries += 1
        callback(self)


class TestCallContext:
    """Who is calling"""

    def setup_method(self):
        self.chain = Chain()
        self.alice = self.chain.account("alice")
        self.a = Counter(self.chain)
        self.b = Counter(self.chain)

    def test_external_call_requires_sender(self):
        with pytest.raises(NoSender):
            self.a.bump()
        with pytest.raises(NoSender):
            _ = self.chain.msg_sender

    def test_outer_sender_is_acting_account(self):
        with self.chain.acting_as(self.alice):
            self.a.bump()
        assert self.a.seen == self.alice
        assert not self.chain.in_call

    def test_nested_sender_is_calling_contract(self):
        with self.chain.acting_as(self.alice):
            self.a.forward(self.b)
        assert self.b.seen == self.a.address, "Inner call should see the forwarding contract"

    def test_labels(self):
        assert self.chain.label(self.alice) == "alice"
        assert self.chain.label(self.a.address) == "Counter"
        assert self.alice != self.chain.account("alice"), "Addresses are never reused"


class TestRollback:
    """A failing unit of work leaves no trace"""

    def setup_method(self):
        self.chain = Chain()
        self.alice = self.chain.account("alice")
        self.a = Counter(self.chain)
        self.b = Counter(self.chain)

    def test_state_and_events_restored_across_contracts(self):
        with self.chain.acting_as(self.alice):
            self.a.bump()
            events_before = len(self.chain.logs)

            with pytest.raises(RuntimeError):
                self.a.bump_both_then_fail(self.b)

        assert self.a.value == 1
        assert self.b.value == 0
        assert self.b.seen is None
        assert len(self.chain.logs) == events_before
        assert len(self.chain.events("Bumped")) == 1

    def test_event_filtering(self):
        with self.chain.acting_as(self.alice):
            self.a.bump()
            self.b.bump()
        assert len(self.chain.events("Bumped", emitter=self.b.address)) == 1
        assert self.chain.events("Bumped")[0].emitter == self.a.address


class TestReentrancy:

    def setup_method(self):
        self.chain = Chain()
        self.alice = self.chain.account("alice")
        self.guarded = Guarded(self.chain)

    def test_reentry_rejected_and_rolled_back(self):
        with self.chain.acting_as(self.alice):
            with pytest.raises(Reentrancy):
                self.guarded.enter(lambda g: g.enter(lambda _: None))
        assert self.guarded.entries == 0

    def test_sequential_calls_allowed(self):
        with self.chain.acting_as(self.alice):
            self.guarded.enter(lambda _: None)
            self.guarded.enter(lambda _: None)
        assert self.guarded.entries == 2


class TestBlockTime:

    def test_mine_and_warp(self):
        chain = Chain(timestamp=1_000, block_time=2)
        chain.mine()
        assert (chain.block_number, chain.timestamp) == (2, 1_002)
        chain.mine(600)
        assert (chain.block_number, chain.timestamp) == (3, 1_602)
        chain.warp(2_000)
        assert chain.timestamp == 2_000

    def test_cannot_go_back(self):
        chain = Chain(timestamp=1_000)
        with pytest.raises(ValueError):
            chain.warp(999)
        with pytest.raises(ValueError):
            chain.mine(-1)
