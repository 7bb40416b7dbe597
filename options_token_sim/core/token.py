#!/usr/bin/env python3
"""
Fungible Token Ledger

Balance and allowance bookkeeping for the options token and both settlement
assets. Minting is gated by a minter set the owner manages, standing in for
whatever authority controls issuance of the real asset.
"""

import logging
from typing import Dict, Set

from .chain import Address, Chain, ZERO_ADDRESS, external
from .errors import InsufficientAllowance, InsufficientBalance, Unauthorized
from .fixed_point import MAX_UINT256, require_uint
from .ownership import Owned

logger = logging.getLogger(__name__)


class Token(Owned):
    """ERC20-style ledger"""

    def __init__(self, chain: Chain, name: str, symbol: str, owner: Address, decimals: int = 18):
        super().__init__(chain, owner, label=symbol)
        self.name = name
        self.symbol = symbol
        self.decimals = decimals

        self.total_supply = 0
        self.balances: Dict[Address, int] = {}
        self.allowances: Dict[Address, Dict[Address, int]] = {}
        self.minters: Set[Address] = set()

    # Views

    def balance_of(self, account: Address) -> int:
        return self.balances.get(account, 0)

    def allowance(self, owner: Address, spender: Address) -> int:
        return self.allowances.get(owner, {}).get(spender, 0)

    # Transfers

    @external
    def transfer(self, to: Address, amount: int) -> bool:
        self._transfer(self.msg_sender, to, amount)
        return True

    @external
    def transfer_from(self, owner: Address, to: Address, amount: int) -> bool:
        spender = self.msg_sender
        allowed = self.allowance(owner, spender)
        if allowed != MAX_UINT256:
            if allowed < amount:
                raise InsufficientAllowance(
                    f"{self.symbol}: allowance {allowed} < {amount} for {self.chain.label(spender)}"
                )
            self.allowances[owner][spender] = allowed - amount
        self._transfer(owner, to, amount)
        return True

    @external
    def approve(self, spender: Address, amount: int) -> bool:
        require_uint(amount, 256, "amount")
        owner = self.msg_sender
        self.allowances.setdefault(owner, {})[spender] = amount
        self.emit("Approval", owner=owner, spender=spender, amount=amount)
        return True

    def _transfer(self, sender: Address, to: Address, amount: int) -> None:
        require_uint(amount, 256, "amount")
        balance = self.balance_of(sender)
        if balance < amount:
            raise InsufficientBalance(
                f"{self.symbol}: balance {balance} < {amount} for {self.chain.label(sender)}"
            )
        self.balances[sender] = balance - amount
        self.balances[to] = self.balance_of(to) + amount
        self.emit("Transfer", sender=sender, to=to, amount=amount)

    # Supply

    @external
    def set_minter(self, minter: Address, allowed: bool) -> None:
        self._only_owner()
        if allowed:
            self.minters.add(minter)
        else:
            self.minters.discard(minter)
        self.emit("SetMinter", minter=minter, allowed=allowed)
        logger.info("%s minter %s set to %s", self.symbol, self.chain.label(minter), allowed)

    @external
    def mint(self, to: Address, amount: int) -> None:
        if self.msg_sender not in self.minters:
            raise Unauthorized(f"{self.chain.label(self.msg_sender)} cannot mint {self.symbol}")
        self._mint(to, amount)

    @external
    def burn(self, amount: int) -> None:
        require_uint(amount, 256, "amount")
        sender = self.msg_sender
        balance = self.balance_of(sender)
        if balance < amount:
            raise InsufficientBalance(f"{self.symbol}: cannot burn {amount}, balance {balance}")
        self.balances[sender] = balance - amount
        self.total_supply -= amount
        self.emit("Transfer", sender=sender, to=ZERO_ADDRESS, amount=amount)

    def _mint(self, to: Address, amount: int) -> None:
        require_uint(amount, 256, "amount")
        require_uint(self.total_supply + amount, 256, "total_supply")
        self.total_supply += amount
        self.balances[to] = self.balance_of(to) + amount
        self.emit("Transfer", sender=ZERO_ADDRESS, to=to, amount=amount)
