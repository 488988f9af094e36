"""
The static board catalog.

BOARD is built once at import time and never mutated; every game shares it.
"""

from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Tuple

from panda_monopoly.config import (
    BOARD_SIZE,
    FREE_PARKING_POSITION,
    GO_POSITION,
    GO_TO_JAIL_POSITION,
    JAIL_POSITION,
)
from panda_monopoly.exceptions import GameErrorCode, InvalidPositionError
from panda_monopoly.spaces import (
    Space,
    GoSpace,
    OwnableSpace,
    PropertySpace,
    RailroadSpace,
    UtilitySpace,
    TaxSpace,
    ChanceSpace,
    CommunityChestSpace,
    JailSpace,
    GoToJailSpace,
    FreeParkingSpace,
)


def _street(name, position, price, color, rents, house_cost, mortgage) -> PropertySpace:
    return PropertySpace(
        name=name,
        position=position,
        price=price,
        mortgage_value=mortgage,
        color_group=color,
        rents=tuple(rents),
        house_cost=house_cost,
    )


def _railroad(name: str, position: int) -> RailroadSpace:
    return RailroadSpace(name=name, position=position, price=200, mortgage_value=100)


def _utility(name: str, position: int) -> UtilitySpace:
    return UtilitySpace(name=name, position=position, price=150, mortgage_value=75)


class Board:
    """The Monopoly game board with 40 spaces."""

    def __init__(self, spaces: Iterable[Space]):
        self.spaces: Tuple[Space, ...] = tuple(spaces)
        if len(self.spaces) != BOARD_SIZE:
            raise ValueError(f"Board must have {BOARD_SIZE} spaces, got {len(self.spaces)}")
        self.color_groups: Mapping[str, Tuple[int, ...]] = MappingProxyType(self._build_color_groups())
        self.railroads: Tuple[int, ...] = tuple(
            s.position for s in self.spaces if isinstance(s, RailroadSpace)
        )
        self.utilities: Tuple[int, ...] = tuple(
            s.position for s in self.spaces if isinstance(s, UtilitySpace)
        )

    def _build_color_groups(self) -> dict:
        groups: dict = {}
        for space in self.spaces:
            if isinstance(space, PropertySpace):
                groups.setdefault(space.color_group, []).append(space.position)
        return {color: tuple(positions) for color, positions in groups.items()}

    def get_space(self, position: int) -> Space:
        """Get the space at a position, raising on an invalid index."""
        if not 0 <= position < BOARD_SIZE:
            raise InvalidPositionError(
                GameErrorCode.INVALID_BOARD_POSITION,
                f"Board position {position} out of range",
            )
        return self.spaces[position]

    def get_ownable_space(self, position: int) -> Optional[OwnableSpace]:
        """Get a purchasable space, or None for tax, card and corner spaces."""
        space = self.get_space(position)
        return space if isinstance(space, OwnableSpace) else None

    def get_color_group(self, color: str) -> Tuple[int, ...]:
        """Get all street positions in a color group."""
        return self.color_groups.get(color, ())

    def find_nearest(self, position: int, targets: Iterable[int]) -> int:
        """Find the first target reached moving forward from a position."""
        targets = set(targets)
        for offset in range(1, BOARD_SIZE + 1):
            pos = (position + offset) % BOARD_SIZE
            if pos in targets:
                return pos
        raise InvalidPositionError(GameErrorCode.INVALID_BOARD_POSITION, "No target on board")


BOARD = Board(
    [
        # Bottom row (0-10)
        GoSpace("GO", GO_POSITION),
        _street("Mediterranean Ave", 1, 60, "brown", (2, 10, 30, 90, 160, 250), 50, 30),
        CommunityChestSpace("Community Chest", 2),
        _street("Baltic Ave", 3, 60, "brown", (4, 20, 60, 180, 320, 450), 50, 30),
        TaxSpace("Income Tax", 4, 200),
        _railroad("Nha Trang Beach", 5),
        _street("Oriental Ave", 6, 100, "light_blue", (6, 30, 90, 270, 400, 550), 50, 50),
        ChanceSpace("Chance", 7),
        _street("Vermont Ave", 8, 100, "light_blue", (6, 30, 90, 270, 400, 550), 50, 50),
        _street("Connecticut Ave", 9, 120, "light_blue", (8, 40, 100, 300, 450, 600), 50, 60),
        JailSpace("Jail", JAIL_POSITION),
        # Left column (11-19)
        _street("St. Charles Place", 11, 140, "pink", (10, 50, 150, 450, 625, 750), 100, 70),
        _utility("Electric Company", 12),
        _street("States Ave", 13, 140, "pink", (10, 50, 150, 450, 625, 750), 100, 70),
        _street("Virginia Ave", 14, 160, "pink", (12, 60, 180, 500, 700, 900), 100, 80),
        _railroad("Da Nang Beach", 15),
        _street("St. James Place", 16, 180, "orange", (14, 70, 200, 550, 750, 950), 100, 90),
        CommunityChestSpace("Community Chest", 17),
        _street("Tennessee Ave", 18, 180, "orange", (14, 70, 200, 550, 750, 950), 100, 90),
        _street("New York Ave", 19, 200, "orange", (16, 80, 240, 600, 800, 1000), 100, 100),
        # Top row (20-30)
        FreeParkingSpace("Free Parking", FREE_PARKING_POSITION),
        _street("Kentucky Ave", 21, 220, "red", (18, 90, 270, 650, 850, 1050), 150, 110),
        ChanceSpace("Chance", 22),
        _street("Indiana Ave", 23, 220, "red", (18, 90, 270, 650, 850, 1050), 150, 110),
        _street("Illinois Ave", 24, 240, "red", (20, 100, 300, 750, 950, 1100), 150, 120),
        _railroad("Phu Quoc Beach", 25),
        _street("Atlantic Ave", 26, 260, "yellow", (22, 110, 330, 850, 1050, 1200), 150, 120),
        _street("Ventnor Ave", 27, 260, "yellow", (22, 110, 330, 850, 1050, 1200), 150, 130),
        _utility("Water Works", 28),
        _street("Marvin Gardens", 29, 280, "yellow", (24, 120, 360, 900, 1100, 1300), 150, 140),
        GoToJailSpace("Go To Jail", GO_TO_JAIL_POSITION),
        # Right column (31-39)
        _street("Pacific Ave", 31, 300, "green", (26, 130, 390, 900, 1100, 1300), 200, 150),
        _street("N. Carolina Ave", 32, 300, "green", (26, 130, 390, 900, 1100, 1300), 200, 150),
        CommunityChestSpace("Community Chest", 33),
        _street("Pennsylvania Ave", 34, 320, "green", (28, 150, 450, 1000, 1200, 1400), 200, 160),
        _railroad("Vung Tau Beach", 35),
        ChanceSpace("Chance", 36),
        _street("Park Place", 37, 350, "dark_blue", (35, 175, 500, 1100, 1400, 1500), 200, 175),
        TaxSpace("Luxury Tax", 38, 75),
        _street("Boardwalk", 39, 400, "dark_blue", (50, 200, 600, 1200, 1600, 2000), 200, 200),
    ]
)
