"""Shared test fixtures for the rules engine tests."""

import pytest

from panda_monopoly.config import GameConfig
from panda_monopoly.game import initialize_game

START_TIME = 1_700_000_000


class FakeClock:
    """A clock the tests move by hand."""

    def __init__(self, start: int = START_TIME):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def game_config():
    """Default game configuration with fixed seed for reproducibility."""
    return GameConfig(seed=42)


@pytest.fixture
def make_game(clock):
    """Factory for a started game; the first player is the creator."""

    def _make(player_ids=("alice", "bob"), config=None, start=True):
        game = initialize_game(player_ids[0], config or GameConfig(seed=42), clock=clock)
        for player_id in player_ids:
            game.join_game(player_id)
        if start:
            game.start_game(player_ids[0])
        return game

    return _make


@pytest.fixture
def basic_game(make_game, game_config):
    """Started game with alice (seat 0, on turn) and bob."""
    return make_game(("alice", "bob"), game_config)


@pytest.fixture
def four_player_game(make_game, game_config):
    """Started game with four players."""
    return make_game(("alice", "bob", "carol", "dave"), game_config)


@pytest.fixture
def give_property():
    """
    Arrange ownership directly: hand a space to a player with optional
    buildings and mortgage, keeping bank pools and net worth consistent.
    """

    def _give(game, player_id, position, houses=0, hotel=False, mortgaged=False):
        player = game.get_player(player_id)
        space = game.board.get_ownable_space(position)
        state = game.properties[position]
        state.owner = player_id
        state.houses = houses
        state.has_hotel = hotel
        state.is_mortgaged = mortgaged
        player.properties_owned.add(position)
        player.net_worth += space.price - (space.mortgage_value if mortgaged else 0)
        game.bank.houses_available -= houses
        if hotel:
            game.bank.hotels_available -= 1
        return state

    return _give
