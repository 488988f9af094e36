"""
Chance and Community Chest decks and card effects.

The decks are fixed tables; a draw is addressed by index so an external
randomness source can pick the card. Without an index the game's seeded
RNG chooses one.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from panda_monopoly.exceptions import GameErrorCode, InvalidActionError, InvalidPositionError
from panda_monopoly.game import GameState
from panda_monopoly.money import EventType
from panda_monopoly.player import AwaitingCardDraw, PlayerState
from panda_monopoly.spaces import DeckType


class CardEffect(Enum):
    """Types of card effects."""

    MONEY = "money"  # Positive collects from bank, negative pays bank
    MOVE = "move"  # Relative move; negative moves back without passing GO
    MOVE_TO = "move_to"
    MOVE_TO_NEAREST = "move_to_nearest"
    GET_OUT_OF_JAIL_FREE = "get_out_of_jail_free"
    COLLECT_FROM_PLAYERS = "collect_from_players"
    REPAIR_FREE = "repair_free"


@dataclass(frozen=True)
class Card:
    """A Chance or Community Chest card."""

    description: str
    effect: CardEffect
    value: int = 0
    targets: Tuple[int, ...] = ()


CHANCE_CARDS: Tuple[Card, ...] = (
    Card("Advance to the nearest of Mediterranean or Baltic Ave", CardEffect.MOVE_TO_NEAREST, targets=(1, 3)),
    Card("Network congestion fee. Pay $50", CardEffect.MONEY, -50),
    Card("Airdrop received. Collect $100", CardEffect.MONEY, 100),
    Card("Go back 3 spaces", CardEffect.MOVE, -3),
    Card("Get Out of Jail Free", CardEffect.GET_OUT_OF_JAIL_FREE),
)

COMMUNITY_CHEST_CARDS: Tuple[Card, ...] = (
    Card("Community reward. Collect $50 from every player", CardEffect.COLLECT_FROM_PLAYERS, 50),
    Card("Staking rewards. Collect $100", CardEffect.MONEY, 100),
    Card("Advance to Kentucky Ave", CardEffect.MOVE_TO, 21),
    Card("Protocol upgrade. Repairs are free", CardEffect.REPAIR_FREE),
    Card("Gas fees. Pay $50", CardEffect.MONEY, -50),
)

DECKS = {
    DeckType.CHANCE: CHANCE_CARDS,
    DeckType.COMMUNITY_CHEST: COMMUNITY_CHEST_CARDS,
}


def _draw(game: GameState, player_id: str, deck: DeckType, card_index: Optional[int]) -> Card:
    player = game.require_turn(player_id)
    game.require_not_bankrupting(player)
    phase = player.phase
    if not (isinstance(phase, AwaitingCardDraw) and phase.deck == deck):
        raise InvalidActionError(
            GameErrorCode.INVALID_SPECIAL_SPACE_ACTION,
            f"{player_id} has no {deck.value} card to draw",
        )

    cards = DECKS[deck]
    if card_index is None:
        card_index = game.rng.randrange(len(cards))
    if not 0 <= card_index < len(cards):
        raise InvalidPositionError(
            GameErrorCode.INVALID_CARD_INDEX,
            f"Card index {card_index} out of range for {deck.value}",
        )

    card = cards[card_index]
    game.require_bank_can_pay(bank_outlay(game, player, card))
    game.touch(player)
    game.event_log.log(
        EventType.CARD_DRAW,
        player_id=player_id,
        deck=deck.value,
        index=card_index,
        card=card.description,
    )
    game.clear_obligation(player)
    execute_card(game, player, card)
    return card


def bank_outlay(game: GameState, player: PlayerState, card: Card) -> int:
    """Cash the bank pays out when the card is applied, GO salary included."""
    if card.effect == CardEffect.MONEY:
        return max(card.value, 0)
    if card.effect == CardEffect.MOVE:
        passes_go = game.passes_go(player, card.value)
    elif card.effect == CardEffect.MOVE_TO:
        passes_go = card.value < player.position
    elif card.effect == CardEffect.MOVE_TO_NEAREST:
        passes_go = game.board.find_nearest(player.position, card.targets) < player.position
    else:
        return 0
    return game.config.go_salary if passes_go else 0


def draw_chance_card(game: GameState, player_id: str, card_index: Optional[int] = None) -> Card:
    """Draw and apply a Chance card."""
    return _draw(game, player_id, DeckType.CHANCE, card_index)


def draw_community_chest_card(game: GameState, player_id: str, card_index: Optional[int] = None) -> Card:
    """Draw and apply a Community Chest card."""
    return _draw(game, player_id, DeckType.COMMUNITY_CHEST, card_index)


def execute_card(game: GameState, player: PlayerState, card: Card) -> None:
    """
    Apply a card's effect to the drawing player.

    Movement cards resolve the new space like a normal landing. A payment
    the player cannot cover moves nothing and leaves the player facing
    bankruptcy.
    """
    game.event_log.log(
        EventType.CARD_EFFECT,
        player_id=player.player_id,
        effect=card.effect.value,
        value=card.value,
    )

    if card.effect == CardEffect.MONEY:
        if card.value >= 0:
            game.receive_from_bank(player, card.value)
        elif player.cash_balance < -card.value:
            game.defer_to_bankruptcy(player, -card.value)
        else:
            game.pay_bank(player, -card.value)

    elif card.effect == CardEffect.MOVE:
        game.move_player(player, card.value)

    elif card.effect == CardEffect.MOVE_TO:
        game.move_to(player, card.value)

    elif card.effect == CardEffect.MOVE_TO_NEAREST:
        game.move_to(player, game.board.find_nearest(player.position, card.targets))

    elif card.effect == CardEffect.GET_OUT_OF_JAIL_FREE:
        player.get_out_of_jail_cards += 1

    elif card.effect == CardEffect.COLLECT_FROM_PLAYERS:
        # Each opponent pays what they can, up to the card value.
        for other in game.active_players():
            if other is player:
                continue
            amount = min(card.value, other.cash_balance)
            if amount > 0:
                game.transfer(other, player, amount)

    elif card.effect == CardEffect.REPAIR_FREE:
        pass
