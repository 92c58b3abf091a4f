"""Card inventories and the end-of-turn card draw."""

from __future__ import annotations

from warzone.domain.enums import CardType, Phase
from warzone.domain.errors import OrderValidationError
from warzone.domain.models import GameState, Player
from warzone.utils.rng import generate_seed, random_choice

CARD_DECK: tuple[CardType, ...] = tuple(CardType)


def add_card(player: Player, card: CardType) -> None:
    player.cards[card] = player.cards.get(card, 0) + 1


def has_card(player: Player, card: CardType) -> bool:
    return player.cards.get(card, 0) > 0


def spend_card(player: Player, card: CardType) -> None:
    """Remove one card of ``card`` from the inventory or reject the order."""

    count = player.cards.get(card, 0)
    if count <= 0:
        raise OrderValidationError(f"{player.name} does not hold a {card} card")
    if count == 1:
        del player.cards[card]
    else:
        player.cards[card] = count - 1


def award_cards(state: GameState) -> dict[str, CardType]:
    """Give one random card to each player who conquered a territory this turn."""

    awarded: dict[str, CardType] = {}
    for player in state.players.values():
        if not player.conquered_this_turn:
            continue
        seed = generate_seed(
            state.game_id, state.turn, Phase.ORDER_EXECUTION, f"card:{player.name}"
        )
        card = random_choice(seed, CARD_DECK)["choice"]
        add_card(player, card)
        awarded[player.name] = card
    return awarded


def reset_turn_flags(state: GameState) -> None:
    """Clear conquest flags and negotiations once a turn has been resolved."""

    for player in state.players.values():
        player.conquered_this_turn = False
        player.negotiating_with.clear()
