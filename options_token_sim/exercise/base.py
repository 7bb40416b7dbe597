#!/usr/bin/env python3
"""
Redemption strategy base

Strategies only accept calls from the options token that registered them.
The options token checks activation on its side as well; this gate holds
even if someone calls the strategy directly.
"""

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, List, Sequence

from ..core.chain import Address, Chain, external
from ..core.errors import InvalidFeeConfig, NotOptionsToken
from ..core.fixed_point import mul_div_down, require_uint
from ..core.ownership import Owned

if TYPE_CHECKING:
    from ..core.options_token import OptionsToken
    from ..core.token import Token

logger = logging.getLogger(__name__)

FEE_DENOM = 10_000


class BaseExercise(Owned, ABC):
    """Capability interface every redemption strategy implements"""

    def __init__(self, chain: Chain, owner: Address, options_token: "OptionsToken",
                 fee_recipients: Sequence[Address] = (), fee_bps: Sequence[int] = (),
                 label: str = ""):
        super().__init__(chain, owner, label)
        self.options_token = options_token
        self.fee_recipients: List[Address] = []
        self.fee_bps: List[int] = []
        if fee_recipients:
            self._set_fees(fee_recipients, fee_bps)

    def _only_options_token(self) -> None:
        if self.msg_sender != self.options_token.address:
            raise NotOptionsToken(
                f"{self.chain.label(self.msg_sender)} is not the options token"
            )

    @external
    def redeem(self, caller: Address, amount: int, recipient: Address, params: bytes) -> bytes:
        """Settle an exercise; returns the strategy's encoded result"""
        self._only_options_token()
        return self._redeem(caller, amount, recipient, params)

    @abstractmethod
    def _redeem(self, caller: Address, amount: int, recipient: Address, params: bytes) -> bytes:
        pass

    # Fees

    @external
    def set_fees(self, recipients: Sequence[Address], bps: Sequence[int]) -> None:
        self._only_owner()
        self._set_fees(recipients, bps)

    def _set_fees(self, recipients: Sequence[Address], bps: Sequence[int]) -> None:
        if len(recipients) != len(bps):
            raise InvalidFeeConfig(f"{len(recipients)} recipients but {len(bps)} fee entries")
        for value in bps:
            require_uint(value, 16, "fee bps")
        if recipients and sum(bps) != FEE_DENOM:
            raise InvalidFeeConfig(f"Fee bps sum to {sum(bps)}, expected {FEE_DENOM}")
        self.fee_recipients = list(recipients)
        self.fee_bps = list(bps)
        self.emit("SetFees", recipients=list(recipients), bps=list(bps))
        logger.info("%s fees split across %d recipients", self.__class__.__name__, len(recipients))

    def _distribute_fees_from(self, total_amount: int, token: "Token", source: Address) -> None:
        """Pull total_amount of token from source and split it by fee_bps"""
        remaining = total_amount
        last = len(self.fee_recipients) - 1
        for i, recipient in enumerate(self.fee_recipients):
            # last recipient absorbs the rounding dust
            share = remaining if i == last else mul_div_down(total_amount, self.fee_bps[i], FEE_DENOM)
            remaining -= share
            token.transfer_from(source, recipient, share)
        self.emit("DistributeFees", recipients=list(self.fee_recipients), total_amount=total_amount)
