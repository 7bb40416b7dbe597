#!/usr/bin/env python3
"""
Options Token

The redeemable right. Holders call exercise() to convert options into the
underlying asset through one of the registered redemption strategies.

Exercised options are moved to the sink address rather than burned: an
emission schedule elsewhere reads total_supply and must never see it drop
because of redemptions.

An exercise with amount 0 returns an empty blob. Strategy results decode
from a non-empty blob only, so callers passing 0 get b"" back and must not
try to decode it.
"""

import logging
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, List, Optional

from .chain import Address, Chain, SINK_ADDRESS, external, nonreentrant
from .errors import NotActive, NotOption, PastDeadline, Unauthorized
from .token import Token

if TYPE_CHECKING:
    from ..exercise.base import BaseExercise

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RedemptionOption:
    """Registry entry; ids are positions in the registry and never reused"""
    implementation: "BaseExercise"
    active: bool


class OptionsToken(Token):
    """Exercise coordinator and ledger for the options"""

    def __init__(self, chain: Chain, name: str, symbol: str, owner: Address, token_admin: Address):
        super().__init__(chain, name, symbol, owner)
        self.token_admin = token_admin
        self.options: List[RedemptionOption] = []

    # ------------------------------------------------------------------
    # Issuance
    # ------------------------------------------------------------------

    @external
    def mint(self, to: Address, amount: int) -> None:
        """Issue options; only the token admin may call"""
        if self.msg_sender != self.token_admin:
            raise Unauthorized(f"{self.chain.label(self.msg_sender)} is not the token admin")
        self._mint(to, amount)

    @external
    def set_token_admin(self, token_admin: Address) -> None:
        self._only_owner()
        self.token_admin = token_admin
        self.emit("SetTokenAdmin", token_admin=token_admin)
        logger.info("%s token admin set to %s", self.symbol, self.chain.label(token_admin))

    # ------------------------------------------------------------------
    # Strategy registry
    # ------------------------------------------------------------------

    @external
    def add_option(self, implementation: "BaseExercise") -> int:
        """Register a strategy as active and return its option id"""
        self._only_owner()
        option_id = len(self.options)
        self.options.append(RedemptionOption(implementation=implementation, active=True))
        self.emit("SetOptionActive", option_id=option_id,
                  implementation=implementation.address, active=True)
        logger.info("Registered option %d -> %s", option_id, implementation.__class__.__name__)
        return option_id

    @external
    def set_option_active(self, option_id: int, active: bool) -> None:
        self._only_owner()
        option = replace(self._get_option(option_id), active=active)
        self.options[option_id] = option
        self.emit("SetOptionActive", option_id=option_id,
                  implementation=option.implementation.address, active=active)
        logger.info("Option %d active=%s", option_id, active)

    def get_option(self, option_id: int) -> RedemptionOption:
        return self._get_option(option_id)

    def is_option_active(self, option_id: int) -> bool:
        return 0 <= option_id < len(self.options) and self.options[option_id].active

    def _get_option(self, option_id: int) -> RedemptionOption:
        if not isinstance(option_id, int) or not 0 <= option_id < len(self.options):
            raise NotOption(f"Option {option_id} is not registered")
        return self.options[option_id]

    # ------------------------------------------------------------------
    # Exercise
    # ------------------------------------------------------------------

    @nonreentrant
    def exercise(self, amount: int, recipient: Address, option_id: int,
                 params: bytes, deadline: Optional[int] = None) -> bytes:
        """
        Exercise options through a registered strategy

        Args:
            amount: Options to exercise (WAD)
            recipient: Receiver of the underlying
            option_id: Registry id of the strategy
            params: Strategy-specific encoded parameters
            deadline: Optional timestamp after which the call fails

        Returns:
            The strategy's encoded settlement record, or b"" when amount is 0
        """
        if deadline is not None and self.chain.timestamp > deadline:
            raise PastDeadline(f"Deadline {deadline} passed at {self.chain.timestamp}")
        return self._exercise(amount, recipient, option_id, params)

    def _exercise(self, amount: int, recipient: Address, option_id: int, params: bytes) -> bytes:
        if amount == 0:
            return b""

        option = self._get_option(option_id)
        if not option.active:
            raise NotActive(f"Option {option_id} is not active")

        sender = self.msg_sender
        self._transfer(sender, SINK_ADDRESS, amount)

        data = option.implementation.redeem(sender, amount, recipient, params)

        self.emit("Exercise", sender=sender, recipient=recipient, amount=amount,
                  option_id=option_id, params=params)
        logger.info("%s exercised %d %s via option %d",
                    self.chain.label(sender), amount, self.symbol, option_id)
        return data
