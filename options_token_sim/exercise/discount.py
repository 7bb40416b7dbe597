#!/usr/bin/env python3
"""
Discount Exercise

Options are exercised by paying the oracle strike price for each unit of
underlying. The strike already carries the discount multiplier; payment is
rounded up so the protocol never under-charges.
"""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Sequence

from ..core.abi import decode_words, encode_words
from ..core.chain import Address, Chain, external
from ..core.errors import SlippageTooHigh
from ..core.fixed_point import mul_wad_up
from .base import BaseExercise

if TYPE_CHECKING:
    from ..core.options_token import OptionsToken
    from ..core.token import Token
    from ..oracles.base import BaseOracle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DiscountExerciseParams:
    max_payment_amount: int

    def encode(self) -> bytes:
        return encode_words(self.max_payment_amount)

    @classmethod
    def decode(cls, data: bytes) -> "DiscountExerciseParams":
        (max_payment_amount,) = decode_words(data, 1)
        return cls(max_payment_amount)


@dataclass(frozen=True)
class DiscountExerciseReturnData:
    payment_amount: int

    def encode(self) -> bytes:
        return encode_words(self.payment_amount)

    @classmethod
    def decode(cls, data: bytes) -> "DiscountExerciseReturnData":
        (payment_amount,) = decode_words(data, 1)
        return cls(payment_amount)


class DiscountExercise(BaseExercise):
    """Pay strike price in the payment token, receive freshly minted underlying"""

    def __init__(self, chain: Chain, owner: Address, options_token: "OptionsToken",
                 payment_token: "Token", underlying_token: "Token", oracle: "BaseOracle",
                 treasury: Address, fee_recipients: Sequence[Address] = (),
                 fee_bps: Sequence[int] = ()):
        super().__init__(chain, owner, options_token, fee_recipients, fee_bps,
                         label="DiscountExercise")
        self.payment_token = payment_token
        self.underlying_token = underlying_token
        self.oracle = oracle
        self.treasury = treasury
        self.emit("SetOracle", oracle=oracle.address)
        self.emit("SetTreasury", treasury=treasury)

    def get_payment_amount(self, amount: int) -> int:
        """Payment currently required to exercise amount options"""
        return mul_wad_up(amount, self.oracle.get_price())

    def _redeem(self, caller: Address, amount: int, recipient: Address, params: bytes) -> bytes:
        decoded = DiscountExerciseParams.decode(params)

        payment_amount = mul_wad_up(amount, self.oracle.get_price())
        if payment_amount > decoded.max_payment_amount:
            raise SlippageTooHigh(
                f"Payment {payment_amount} exceeds ceiling {decoded.max_payment_amount}"
            )

        if self.fee_recipients:
            self._distribute_fees_from(payment_amount, self.payment_token, caller)
        else:
            self.payment_token.transfer_from(caller, self.treasury, payment_amount)

        self.underlying_token.mint(recipient, amount)

        self.emit("Exercised", sender=caller, recipient=recipient, amount=amount,
                  payment_amount=payment_amount)
        logger.debug("Exercised %d for payment %d", amount, payment_amount)
        return DiscountExerciseReturnData(payment_amount).encode()

    # Admin

    @external
    def set_oracle(self, oracle: "BaseOracle") -> None:
        self._only_owner()
        self.oracle = oracle
        self.emit("SetOracle", oracle=oracle.address)
        logger.info("DiscountExercise oracle set to %s", oracle.__class__.__name__)

    @external
    def set_treasury(self, treasury: Address) -> None:
        self._only_owner()
        self.treasury = treasury
        self.emit("SetTreasury", treasury=treasury)
        logger.info("DiscountExercise treasury set to %s", self.chain.label(treasury))
