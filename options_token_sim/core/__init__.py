"""Core options token components"""

from .chain import Chain, Contract, Event, SINK_ADDRESS, ZERO_ADDRESS, external, nonreentrant
from .token import Token
from .ownership import Owned
from .options_token import OptionsToken, RedemptionOption

__all__ = [
    "Chain", "Contract", "Event", "SINK_ADDRESS", "ZERO_ADDRESS", "external", "nonreentrant",
    "Token", "Owned",
    "OptionsToken", "RedemptionOption"
]
