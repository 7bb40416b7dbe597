"""Redemption strategies"""

from .base import BaseExercise
from .discount import DiscountExercise, DiscountExerciseParams, DiscountExerciseReturnData

__all__ = ["BaseExercise", "DiscountExercise", "DiscountExerciseParams", "DiscountExerciseReturnData"]
