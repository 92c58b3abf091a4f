"""Deterministic Random Number Generator (RNG) for warzone games.

Every random decision is seeded from game state (game_id, turn, phase,
context) so that:
- Reproducibility: the same seed always produces the same results
- Replays: a saved game resumes with the same combat outcomes
- Audit trail: each helper returns the seed it used

Examples:
    >>> seed = generate_seed(game_id=1, turn=3, phase="order_execution", context="combat:0")
    >>> result = roll_hits(seed, trials=5, probability=0.6)
    >>> sorted(result)
    ['hits', 'probability', 'rolls', 'seed', 'trials']

    >>> result = random_choice(seed, ["bomb", "blockade", "airlift"])
    >>> result['choice'] in ["bomb", "blockade", "airlift"]
    True
"""

import hashlib
import random
from collections.abc import Sequence
from typing import Any


def generate_seed(game_id: int, turn: int, phase: str, context: str) -> str:
    """Generate deterministic seed from game state.

    Format: "game_id:turn:phase:context"

    Args:
        game_id: Identifier of the game (tournaments derive one per game)
        turn: Current turn number
        phase: Phase in which the roll happens (e.g. 'startup', 'order_execution')
        context: What the roll is for (e.g. 'combat:3:Alaska->Kamchatka', 'card:alice')

    Returns:
        Seed string for RNG in format "game_id:turn:phase:context"

    Examples:
        >>> generate_seed(1, 4, "order_execution", "combat:0")
        '1:4:order_execution:combat:0'

    Raises:
        ValueError: If game_id or turn is negative
    """
    if game_id < 0:
        raise ValueError(f"game_id must be non-negative, got {game_id}")
    if turn < 0:
        raise ValueError(f"turn must be non-negative, got {turn}")

    return f"{game_id}:{turn}:{phase}:{context}"


def _seed_to_int(seed: str) -> int:
    """Convert seed string to a stable 64-bit integer for random.Random().

    Args:
        seed: Seed string

    Returns:
        64-bit integer derived from SHA-256(seed)
    """
    digest = hashlib.sha256(seed.encode("utf-8")).digest()
    # Use first 8 bytes for a 64-bit integer
    return int.from_bytes(digest[:8], "big", signed=False)


def roll_hits(seed: str, trials: int, probability: float) -> dict[str, Any]:
    """Roll ``trials`` independent Bernoulli trials with deterministic seed.

    Used for combat, where every army unit kills one opposing unit with a
    fixed probability.

    Args:
        seed: Deterministic seed string
        trials: Number of units rolling (non-negative)
        probability: Per-unit success probability (0.0 to 1.0)

    Returns:
        Dictionary containing:
            - hits: Number of successful trials
            - rolls: The uniform draws, one per trial
            - trials: The number of trials
            - probability: The requested probability
            - seed: The seed used

    Examples:
        >>> result = roll_hits("1:1:order_execution:test", 10, 1.0)
        >>> result['hits']
        10

    Raises:
        ValueError: If trials is negative or probability not in [0.0, 1.0]
    """
    if trials < 0:
        raise ValueError(f"trials must be non-negative, got {trials}")
    if not 0.0 <= probability <= 1.0:
        raise ValueError(f"probability must be between 0.0 and 1.0, got {probability}")

    rng = random.Random(_seed_to_int(seed))
    rolls = [rng.random() for _ in range(trials)]

    return {
        "hits": sum(1 for roll in rolls if roll < probability),
        "rolls": rolls,
        "trials": trials,
        "probability": probability,
        "seed": seed,
    }


def random_choice(seed: str, options: Sequence[Any]) -> dict[str, Any]:
    """Choose randomly from options with deterministic seed.

    Args:
        seed: Deterministic seed string
        options: Options to choose from (must be non-empty)

    Returns:
        Dictionary containing:
            - choice: The selected option
            - index: Index of the selected option
            - seed: The seed used

    Raises:
        ValueError: If options is empty
    """
    if not options:
        raise ValueError("options list cannot be empty")

    rng = random.Random(_seed_to_int(seed))
    index = rng.randint(0, len(options) - 1)

    return {
        "choice": options[index],
        "index": index,
        "seed": seed,
    }


def random_int(seed: str, min_val: int, max_val: int) -> dict[str, Any]:
    """Generate random integer in range with deterministic seed.

    Args:
        seed: Deterministic seed string
        min_val: Minimum value (inclusive)
        max_val: Maximum value (inclusive)

    Returns:
        Dictionary containing:
            - value: The random integer
            - min: The minimum value
            - max: The maximum value
            - seed: The seed used

    Raises:
        ValueError: If min_val > max_val
    """
    if min_val > max_val:
        raise ValueError(f"min_val ({min_val}) cannot be greater than max_val ({max_val})")

    rng = random.Random(_seed_to_int(seed))
    value = rng.randint(min_val, max_val)

    return {
        "value": value,
        "min": min_val,
        "max": max_val,
        "seed": seed,
    }


def shuffled(seed: str, items: Sequence[Any]) -> dict[str, Any]:
    """Return a deterministic permutation of ``items``.

    Returns:
        Dictionary containing:
            - order: A new list holding the shuffled items
            - seed: The seed used
    """
    order = list(items)
    random.Random(_seed_to_int(seed)).shuffle(order)
    return {"order": order, "seed": seed}
