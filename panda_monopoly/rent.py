"""
Rent calculation over the board catalog and the per-space ownership table.

These are pure functions: they read ownership state and never mutate it.
"""

from typing import Sequence

from panda_monopoly.board import BOARD, Board
from panda_monopoly.player import PropertyState
from panda_monopoly.spaces import PropertySpace, RailroadSpace, UtilitySpace


def count_owned(properties: Sequence[PropertyState], owner: str, positions: Sequence[int]) -> int:
    """Count how many of the given positions belong to owner."""
    return sum(1 for pos in positions if properties[pos].owner == owner)


def has_monopoly(
    properties: Sequence[PropertyState], owner: str, color_group: str, board: Board = BOARD
) -> bool:
    """Check if owner holds every street in a color group."""
    group = board.get_color_group(color_group)
    return bool(group) and count_owned(properties, owner, group) == len(group)


def compute_rent(
    properties: Sequence[PropertyState],
    position: int,
    dice_total: int = 0,
    board: Board = BOARD,
) -> int:
    """
    Calculate rent owed for landing on a space.

    Mortgaged and unowned spaces charge nothing. Streets use the hotel tier,
    the house tiers, or base rent (doubled for an undeveloped monopoly).
    Railroads charge 25 doubled per additional railroad the owner holds.
    Utilities charge the payer's dice total times 4, or times 10 when the
    owner holds both.
    """
    space = board.get_space(position)
    state = properties[position]
    if state.owner is None or state.is_mortgaged:
        return 0

    if isinstance(space, PropertySpace):
        monopoly = has_monopoly(properties, state.owner, space.color_group, board)
        return space.get_rent(state.houses, state.has_hotel, monopoly)

    if isinstance(space, RailroadSpace):
        return space.get_rent(count_owned(properties, state.owner, board.railroads))

    if isinstance(space, UtilitySpace):
        return space.get_rent(dice_total, count_owned(properties, state.owner, board.utilities))

    return 0
