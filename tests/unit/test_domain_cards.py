"""Unit tests for card inventories and the end-of-turn draw."""

from __future__ import annotations

import pytest

from warzone.domain import cards
from warzone.domain.enums import CardType
from warzone.domain.errors import OrderValidationError
from warzone.domain.models import GameState, Player, TerritoryGraph


def _state(**flags: bool) -> GameState:
    players = {name: Player(name=name, conquered_this_turn=won) for name, won in flags.items()}
    return GameState(game_id=3, turn=2, graph=TerritoryGraph(), players=players)


def test_spend_card_removes_one_copy():
    player = Player(name="alice")
    cards.add_card(player, CardType.BOMB)
    cards.add_card(player, CardType.BOMB)

    cards.spend_card(player, CardType.BOMB)

    assert player.cards == {CardType.BOMB: 1}
    assert cards.has_card(player, CardType.BOMB)


def test_spending_missing_card_is_rejected():
    player = Player(name="alice")
    with pytest.raises(OrderValidationError, match="does not hold a airlift card"):
        cards.spend_card(player, CardType.AIRLIFT)


def test_only_conquering_players_receive_a_card():
    state = _state(alice=True, bob=False)

    awarded = cards.award_cards(state)

    assert list(awarded) == ["alice"]
    assert awarded["alice"] in cards.CARD_DECK
    assert sum(state.players["alice"].cards.values()) == 1
    assert state.players["bob"].cards == {}


def test_card_draw_is_deterministic():
    first = cards.award_cards(_state(alice=True))
    second = cards.award_cards(_state(alice=True))
    assert first == second


def test_reset_turn_flags_clears_conquests_and_truces():
    state = _state(alice=True, bob=False)
    state.players["alice"].negotiating_with.add("bob")

    cards.reset_turn_flags(state)

    assert not state.players["alice"].conquered_this_turn
    assert state.players["alice"].negotiating_with == set()
