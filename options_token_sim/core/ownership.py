#!/usr/bin/env python3
"""Single-owner authorization gate"""

import logging

from .chain import Address, Chain, Contract, external
from .errors import Unauthorized

logger = logging.getLogger(__name__)


class Owned(Contract):
    """Contract with one administrator guarding its set* operations"""

    def __init__(self, chain: Chain, owner: Address, label: str = ""):
        super().__init__(chain, label)
        self.owner = owner
        self.emit("OwnershipTransferred", previous_owner=None, new_owner=owner)

    def _only_owner(self) -> None:
        if self.msg_sender != self.owner:
            raise Unauthorized(
                f"{self.chain.label(self.msg_sender)} is not the owner of {self.__class__.__name__}"
            )

    @external
    def transfer_ownership(self, new_owner: Address) -> None:
        self._only_owner()
        previous = self.owner
        self.owner = new_owner
        self.emit("OwnershipTransferred", previous_owner=previous, new_owner=new_owner)
        logger.info("%s ownership transferred to %s",
                    self.__class__.__name__, self.chain.label(new_owner))
