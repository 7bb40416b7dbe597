#!/usr/bin/env python3
"""
Options Token Exercise Test Suite

End-to-end exercise through the registry on the default deployment
(TWAP 10, 50% multiplier, 0.1 floor, strike 5):

1. Settlement: options to the sink, payment to the treasury, underlying minted
2. Zero-amount short circuit and the deadline check
3. Registry errors: unregistered and deactivated options
4. Atomic rollback on any failure, reentrancy included
"""

import dataclasses

import pytest

from options_token_sim.core.chain import SINK_ADDRESS
from options_token_sim.core.errors import (
    InsufficientAllowance, InsufficientBalance, NotActive, NotOption, PastDeadline, Reentrancy,
    SlippageTooHigh, Unauthorized
)
from options_token_sim.core.fixed_point import WAD
from options_token_sim.engine.deployment import DeploymentFactory
from options_token_sim.exercise.base import BaseExercise
from options_token_sim.exercise.discount import DiscountExerciseParams, DiscountExerciseReturnData


class IncompleteExercise(BaseExercise):
    """Strategy that never implements settlement"""


class ReentrantExercise(BaseExercise):
    """Strategy that tries to exercise again while settling"""

    def _redeem(self, caller, amount, recipient, params):
        return self.options_token.exercise(amount, recipient, 0, params)


class TestOptionsTokenExercise:
    """Exercise through the options token"""

    def setup_method(self):
        self.deployment = DeploymentFactory.deploy()
        self.chain = self.deployment.chain
        self.options = self.deployment.options_token
        self.alice = self.chain.account("alice")
        self.bob = self.chain.account("bob")

        self.deployment.fund(self.alice, options=100 * WAD, payment=1_000 * WAD)
        self.deployment.approve_all(self.alice)

    def exercise(self, amount=100 * WAD, max_payment=500 * WAD, option_id=None,
                 recipient=None, deadline=None, sender=None):
        option_id = self.deployment.option_id if option_id is None else option_id
        params = DiscountExerciseParams(max_payment).encode()
        with self.chain.acting_as(sender or self.alice):
            return self.options.exercise(amount, recipient or self.alice, option_id, params, deadline)

    def snapshot(self):
        d = self.deployment
        return (
            self.options.balance_of(self.alice),
            self.options.balance_of(SINK_ADDRESS),
            d.payment.balance_of(self.alice),
            d.payment.balance_of(d.treasury),
            d.underlying.balance_of(self.alice),
            d.underlying.total_supply,
            len(self.chain.logs),
        )

    def test_strike_price(self):
        assert self.deployment.oracle.get_price() == 5 * WAD
        assert self.deployment.exercise.get_payment_amount(100 * WAD) == 500 * WAD

    def test_exercise_settles(self):
        supply_before = self.options.total_supply
        underlying_before = self.deployment.underlying.total_supply

        data = self.exercise()

        assert DiscountExerciseReturnData.decode(data).payment_amount == 500 * WAD
        assert self.options.balance_of(self.alice) == 0
        assert self.options.balance_of(SINK_ADDRESS) == 100 * WAD
        assert self.options.total_supply == supply_before, "Exercised options are not burned"
        assert self.deployment.payment.balance_of(self.alice) == 500 * WAD
        assert self.deployment.payment.balance_of(self.deployment.treasury) == 500 * WAD
        assert self.deployment.underlying.balance_of(self.alice) == 100 * WAD
        assert self.deployment.underlying.total_supply == underlying_before + 100 * WAD

    def test_exercise_events(self):
        self.exercise(recipient=self.bob)

        exercise_event = self.chain.events("Exercise", emitter=self.options.address)[-1]
        assert exercise_event.args["sender"] == self.alice
        assert exercise_event.args["recipient"] == self.bob
        assert exercise_event.args["amount"] == 100 * WAD
        assert exercise_event.args["option_id"] == self.deployment.option_id

        exercised = self.chain.events("Exercised", emitter=self.deployment.exercise.address)[-1]
        assert exercised.args["payment_amount"] == 500 * WAD
        assert self.deployment.underlying.balance_of(self.bob) == 100 * WAD

    def test_slippage_ceiling_rolls_back(self):
        before = self.snapshot()
        with pytest.raises(SlippageTooHigh):
            self.exercise(max_payment=500 * WAD - 1)
        assert self.snapshot() == before

    def test_exact_ceiling_accepted(self):
        self.exercise(max_payment=500 * WAD)
        assert self.options.balance_of(self.alice) == 0

    def test_zero_amount_is_noop(self):
        before = self.snapshot()
        data = self.exercise(amount=0, option_id=99)
        assert data == b""
        assert self.snapshot() == before
        with pytest.raises(ValueError):
            DiscountExerciseReturnData.decode(data)

    def test_deadline(self):
        now = self.chain.timestamp
        with pytest.raises(PastDeadline):
            self.exercise(deadline=now - 1)
        with pytest.raises(PastDeadline):
            self.exercise(amount=0, deadline=now - 1)
        self.exercise(deadline=now)
        assert self.options.balance_of(SINK_ADDRESS) == 100 * WAD

    def test_unregistered_option(self):
        with pytest.raises(NotOption):
            self.exercise(option_id=7)

    def test_deactivated_option(self):
        with self.chain.acting_as(self.deployment.deployer):
            self.options.set_option_active(self.deployment.option_id, False)
        assert not self.options.is_option_active(self.deployment.option_id)

        before = self.snapshot()
        with pytest.raises(NotActive):
            self.exercise()
        assert self.snapshot() == before

        with self.chain.acting_as(self.deployment.deployer):
            self.options.set_option_active(self.deployment.option_id, True)
        self.exercise()

    def test_registry_admin_is_owner_only(self):
        with self.chain.acting_as(self.alice):
            with pytest.raises(Unauthorized):
                self.options.set_option_active(self.deployment.option_id, False)
            with pytest.raises(Unauthorized):
                self.options.add_option(self.deployment.exercise)
        with self.chain.acting_as(self.deployment.deployer):
            with pytest.raises(NotOption):
                self.options.set_option_active(3, True)

    def test_insufficient_options(self):
        with pytest.raises(InsufficientBalance):
            self.exercise(amount=101 * WAD, max_payment=1_000 * WAD)

    def test_missing_payment_approval_rolls_back(self):
        self.deployment.fund(self.bob, options=10 * WAD, payment=100 * WAD)
        bob_options = self.options.balance_of(self.bob)

        with pytest.raises(InsufficientAllowance):
            self.exercise(amount=10 * WAD, max_payment=50 * WAD, sender=self.bob)

        assert self.options.balance_of(self.bob) == bob_options
        assert self.options.balance_of(SINK_ADDRESS) == 0

    def test_reentrant_strategy_rejected(self):
        d = self.deployment
        strategy = ReentrantExercise(self.chain, d.deployer, self.options)
        with self.chain.acting_as(d.deployer):
            option_id = self.options.add_option(strategy)
        assert option_id == d.option_id + 1

        before = self.snapshot()
        with pytest.raises(Reentrancy):
            self.exercise(option_id=option_id)
        assert self.snapshot() == before

    def test_option_ids_are_sequential(self):
        d = self.deployment
        registry = self.options.get_option(d.option_id)
        assert registry.implementation is d.exercise
        assert registry.active

    def test_registry_entries_are_read_only(self):
        option = self.options.get_option(self.deployment.option_id)
        with pytest.raises(dataclasses.FrozenInstanceError):
            option.active = False
        assert self.options.is_option_active(self.deployment.option_id)

    def test_deactivation_replaces_entry(self):
        before = self.options.get_option(self.deployment.option_id)
        with self.chain.acting_as(self.deployment.deployer):
            self.options.set_option_active(self.deployment.option_id, False)
        assert before.active, "Earlier reads keep their own view"
        assert not self.options.get_option(self.deployment.option_id).active

    def test_strategy_must_implement_redeem(self):
        contracts_before = len(self.chain.contracts)
        with pytest.raises(TypeError):
            IncompleteExercise(self.chain, self.deployment.deployer, self.options)
        assert len(self.chain.contracts) == contracts_before
