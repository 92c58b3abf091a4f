"""Error hierarchy for the warzone domain.

Every :class:`GameRuleError` is recoverable: the command that raised it is
rejected and the game state is left untouched.  :class:`MapIntegrityError`
signals a broken internal invariant and is never handled by the game loop.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from warzone.domain.enums import Phase
    from warzone.domain.validation import ValidationResult


class GameRuleError(ValueError):
    """Base class for user-facing rule violations."""


class MapFormatError(GameRuleError):
    """Raised when a map file has malformed or inconsistent sections."""

    def __init__(self, message: str, *, line: int | None = None) -> None:
        self.line = line
        super().__init__(f"line {line}: {message}" if line is not None else message)


class MapValidationError(GameRuleError):
    """Raised when a map fails connectivity or name-uniqueness checks."""

    def __init__(self, result: ValidationResult) -> None:
        self.result = result
        super().__init__("; ".join(result.errors()) or "map is not valid")


class MapEditError(GameRuleError):
    """Raised when a map editing operation cannot be applied."""


class UnknownContinent(MapEditError):
    """Raised when a continent name does not exist on the map."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"continent {name!r} does not exist")


class TerritoryNotFound(MapEditError):
    """Raised when a territory name does not exist on the map."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"territory {name!r} does not exist")


class UnknownCommandInPhase(GameRuleError):
    """Raised when a command is not accepted by the current phase."""

    def __init__(self, command: str, phase: Phase, *, reason: str | None = None) -> None:
        self.command = command
        self.phase = phase
        super().__init__(reason or f"command {command!r} is not available in phase {phase}")


class CommandSyntaxError(GameRuleError):
    """Raised when a command has missing or malformed arguments."""


class OrderValidationError(GameRuleError):
    """Raised when an order is rejected at issue time."""


class StaleOrderDrop(GameRuleError):
    """Raised when a queued order's preconditions no longer hold at execution."""


class TournamentError(GameRuleError):
    """Raised when tournament parameters fall outside the accepted bounds."""


class MapIntegrityError(RuntimeError):
    """Raised when the map's internal invariants are broken."""
