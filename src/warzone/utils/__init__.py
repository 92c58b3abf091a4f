"""Utility functions for the warzone game engine."""

from warzone.utils.rng import (
    generate_seed,
    random_choice,
    random_int,
    roll_hits,
    shuffled,
)

__all__ = [
    "generate_seed",
    "random_choice",
    "random_int",
    "roll_hits",
    "shuffled",
]
