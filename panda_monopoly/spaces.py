"""
Board space definitions and types.
"""

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Tuple


class DeckType(Enum):
    """The two card decks."""

    CHANCE = "chance"
    COMMUNITY_CHEST = "community_chest"


@dataclass(frozen=True)
class Space:
    """Base class for a board space."""

    name: str
    position: int

    @property
    def is_purchasable(self) -> bool:
        return False

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name='{self.name}', position={self.position})"


@dataclass(frozen=True)
class GoSpace(Space):
    """The GO space."""


@dataclass(frozen=True)
class OwnableSpace(Space):
    """A space that can be bought, owned and mortgaged."""

    price: int
    mortgage_value: int

    @property
    def is_purchasable(self) -> bool:
        return self.price > 0


@dataclass(frozen=True)
class PropertySpace(OwnableSpace):
    """
    A street that can be owned, built upon, and mortgaged.

    rents holds six tiers: base, 1 to 4 houses, and hotel.
    """

    color_group: str
    rents: Tuple[int, int, int, int, int, int]
    house_cost: int

    @property
    def rent_base(self) -> int:
        return self.rents[0]

    @property
    def rent_hotel(self) -> int:
        return self.rents[5]

    def get_rent(self, houses: int = 0, has_hotel: bool = False, has_monopoly: bool = False) -> int:
        """
        Calculate rent for this street.

        A hotel charges the hotel tier, houses index the house tiers, and an
        undeveloped street charges double base rent when its group is held
        in full.
        """
        if has_hotel:
            return self.rent_hotel
        if houses > 0:
            return self.rents[houses]
        if has_monopoly:
            return self.rent_base * 2
        return self.rent_base


@dataclass(frozen=True)
class RailroadSpace(OwnableSpace):
    """A railroad. Rent doubles with each additional railroad owned."""

    base_rent: int = 25

    def get_rent(self, railroads_owned: int) -> int:
        if railroads_owned <= 0:
            return 0
        return self.base_rent * (2 ** (min(railroads_owned, 4) - 1))


@dataclass(frozen=True)
class UtilitySpace(OwnableSpace):
    """A utility. Rent is a multiple of the payer's dice roll."""

    def get_rent(self, dice_total: int, utilities_owned: int) -> int:
        if utilities_owned <= 0:
            return 0
        multiplier = 10 if utilities_owned >= 2 else 4
        return dice_total * multiplier


@dataclass(frozen=True)
class TaxSpace(Space):
    """A tax space."""

    amount: int


@dataclass(frozen=True)
class ChanceSpace(Space):
    deck: ClassVar[DeckType] = DeckType.CHANCE


@dataclass(frozen=True)
class CommunityChestSpace(Space):
    deck: ClassVar[DeckType] = DeckType.COMMUNITY_CHEST


@dataclass(frozen=True)
class JailSpace(Space):
    """Jail / Just Visiting."""


@dataclass(frozen=True)
class GoToJailSpace(Space):
    """Sends the player straight to jail."""


@dataclass(frozen=True)
class FreeParkingSpace(Space):
    """Free Parking. Nothing happens here."""
