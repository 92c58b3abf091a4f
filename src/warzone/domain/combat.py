"""Combat resolution for advances into territory held by someone else."""

from __future__ import annotations

from dataclasses import dataclass

from warzone.domain.rules_config import DEFAULT_RULES, RulesConfig
from warzone.utils.rng import roll_hits


@dataclass(slots=True)
class CombatOptions:
    """Configuration for resolving a single engagement.

    Fixed hit counts bypass the dice entirely, which keeps tests independent
    of the configured probabilities.
    """

    attacker_fixed_hits: int | None = None
    defender_fixed_hits: int | None = None
    attacker_seed: str = "attacker-combat"
    defender_seed: str = "defender-combat"


@dataclass(slots=True)
class CombatResult:
    """Summary of a resolved engagement."""

    attacking: int
    defending: int
    attacker_losses: int
    defender_losses: int

    @property
    def attackers_remaining(self) -> int:
        return self.attacking - self.attacker_losses

    @property
    def defenders_remaining(self) -> int:
        return self.defending - self.defender_losses

    @property
    def conquered(self) -> bool:
        return self.defenders_remaining == 0


def resolve_combat(
    attacking: int,
    defending: int,
    *,
    options: CombatOptions | None = None,
    rules: RulesConfig = DEFAULT_RULES,
) -> CombatResult:
    """Resolve one simultaneous volley between two stacks of armies.

    Every attacking unit kills a defender with the attacker kill probability
    and every defending unit kills an attacker with the defender kill
    probability.  Losses never exceed the size of the stack that suffers them.
    """

    if attacking < 0 or defending < 0:
        raise ValueError(f"army counts must be non-negative, got {attacking} and {defending}")
    options = options or CombatOptions()

    attacker_hits = _hits(
        attacking,
        rules.combat.attacker_kill_probability,
        options.attacker_fixed_hits,
        options.attacker_seed,
    )
    defender_hits = _hits(
        defending,
        rules.combat.defender_kill_probability,
        options.defender_fixed_hits,
        options.defender_seed,
    )

    return CombatResult(
        attacking=attacking,
        defending=defending,
        attacker_losses=min(defender_hits, attacking),
        defender_losses=min(attacker_hits, defending),
    )


def _hits(units: int, probability: float, fixed: int | None, seed: str) -> int:
    if fixed is not None:
        return max(0, min(fixed, units))
    return roll_hits(seed, units, probability)["hits"]
