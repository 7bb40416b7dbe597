#!/usr/bin/env python3
"""
Token ledger tests

Transfers, allowances, minter and owner gates, and options token issuance.
"""

import pytest

from options_token_sim.core.chain import Chain
from options_token_sim.core.errors import InsufficientAllowance, InsufficientBalance, Unauthorized
from options_token_sim.core.fixed_point import MAX_UINT256, WAD
from options_token_sim.core.options_token import OptionsToken
from options_token_sim.core.token import Token


class TestToken:
    """ERC20-style ledger behaviour"""

    def setup_method(self):
        self.chain = Chain()
        self.owner = self.chain.account("owner")
        self.alice = self.chain.account("alice")
        self.bob = self.chain.account("bob")
        self.token = Token(self.chain, "Payment Token", "PAY", owner=self.owner)

        with self.chain.acting_as(self.owner):
            self.token.set_minter(self.owner, True)
            self.token.mint(self.alice, 100 * WAD)

    def test_mint_and_transfer(self):
        with self.chain.acting_as(self.alice):
            self.token.transfer(self.bob, 30 * WAD)
        assert self.token.balance_of(self.alice) == 70 * WAD
        assert self.token.balance_of(self.bob) == 30 * WAD
        assert self.token.total_supply == 100 * WAD

    def test_insufficient_balance(self):
        with self.chain.acting_as(self.bob):
            with pytest.raises(InsufficientBalance):
                self.token.transfer(self.alice, 1)

    def test_allowance_is_spent(self):
        with self.chain.acting_as(self.alice):
            self.token.approve(self.bob, 40 * WAD)
        with self.chain.acting_as(self.bob):
            self.token.transfer_from(self.alice, self.bob, 25 * WAD)
            with pytest.raises(InsufficientAllowance):
                self.token.transfer_from(self.alice, self.bob, 16 * WAD)
        assert self.token.allowance(self.alice, self.bob) == 15 * WAD
        assert self.token.balance_of(self.bob) == 25 * WAD

    def test_infinite_allowance_not_decremented(self):
        with self.chain.acting_as(self.alice):
            self.token.approve(self.bob, MAX_UINT256)
        with self.chain.acting_as(self.bob):
            self.token.transfer_from(self.alice, self.bob, 10 * WAD)
        assert self.token.allowance(self.alice, self.bob) == MAX_UINT256

    def test_only_minters_mint(self):
        with self.chain.acting_as(self.alice):
            with pytest.raises(Unauthorized):
                self.token.mint(self.alice, 1)
            with pytest.raises(Unauthorized):
                self.token.set_minter(self.alice, True)

    def test_burn_reduces_supply(self):
        with self.chain.acting_as(self.alice):
            self.token.burn(10 * WAD)
        assert self.token.total_supply == 90 * WAD

    def test_negative_burn_rejected(self):
        with self.chain.acting_as(self.bob):
            with pytest.raises(ValueError):
                self.token.burn(-5 * WAD)
        assert self.token.balance_of(self.bob) == 0
        assert self.token.total_supply == 100 * WAD, "Burning must never create supply"


class TestOwnership:
    """Owner-only transfer of the admin role"""

    def setup_method(self):
        self.chain = Chain()
        self.owner = self.chain.account("owner")
        self.alice = self.chain.account("alice")
        self.token = Token(self.chain, "Payment Token", "PAY", owner=self.owner)

    def test_transfer_ownership(self):
        with self.chain.acting_as(self.owner):
            self.token.transfer_ownership(self.alice)
        assert self.token.owner == self.alice

        event = self.chain.events("OwnershipTransferred", emitter=self.token.address)[-1]
        assert event.args["previous_owner"] == self.owner
        assert event.args["new_owner"] == self.alice

        with self.chain.acting_as(self.alice):
            self.token.set_minter(self.alice, True)
        with self.chain.acting_as(self.owner):
            with pytest.raises(Unauthorized):
                self.token.set_minter(self.owner, True)

    def test_only_owner_transfers(self):
        events_before = len(self.chain.events("OwnershipTransferred"))
        with self.chain.acting_as(self.alice):
            with pytest.raises(Unauthorized):
                self.token.transfer_ownership(self.alice)
        assert self.token.owner == self.owner
        assert len(self.chain.events("OwnershipTransferred")) == events_before


class TestOptionsTokenIssuance:
    """Only the token admin issues options"""

    def setup_method(self):
        self.chain = Chain()
        self.owner = self.chain.account("owner")
        self.admin = self.chain.account("token_admin")
        self.alice = self.chain.account("alice")
        self.options = OptionsToken(self.chain, "Call Option", "oUND", owner=self.owner,
                                    token_admin=self.admin)

    def test_token_admin_mints(self):
        with self.chain.acting_as(self.admin):
            self.options.mint(self.alice, 5 * WAD)
        assert self.options.balance_of(self.alice) == 5 * WAD

    def test_owner_is_not_token_admin(self):
        with self.chain.acting_as(self.owner):
            with pytest.raises(Unauthorized):
                self.options.mint(self.alice, 1)

    def test_set_token_admin(self):
        with self.chain.acting_as(self.owner):
            self.options.set_token_admin(self.alice)
        with self.chain.acting_as(self.alice):
            self.options.mint(self.alice, 1)
        with self.chain.acting_as(self.admin):
            with pytest.raises(Unauthorized):
                self.options.mint(self.alice, 1)
        assert self.chain.events("SetTokenAdmin")[-1].args["token_admin"] == self.alice

    def test_only_owner_sets_token_admin(self):
        with self.chain.acting_as(self.admin):
            with pytest.raises(Unauthorized):
                self.options.set_token_admin(self.admin)
