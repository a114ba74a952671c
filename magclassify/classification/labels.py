"""Magnet position labels and their display metadata."""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Tuple


class Direction(str, Enum):
    """Closed set of magnet positions relative to the device."""
    TOP = "Top"
    RIGHT = "Right"
    ORIGIN = "Origin"
    LEFT = "Left"
    DOWN = "Down"

    @property
    def metadata(self) -> "DirectionMetadata":
        """Display metadata for this label."""
        return DIRECTION_METADATA[self]


@dataclass(frozen=True)
class DirectionMetadata:
    """How a label is presented by a UI layer."""
    color: str
    icon: str
    indicator_offset: Tuple[int, int]  # (x, y), y pointing up


DIRECTION_METADATA: Dict[Direction, DirectionMetadata] = {
    Direction.TOP: DirectionMetadata("blue", "arrow.up.circle.fill", (0, 1)),
    Direction.RIGHT: DirectionMetadata("green", "arrow.right.circle.fill", (1, 0)),
    Direction.ORIGIN: DirectionMetadata("gray", "circle.fill", (0, 0)),
    Direction.LEFT: DirectionMetadata("orange", "arrow.left.circle.fill", (-1, 0)),
    Direction.DOWN: DirectionMetadata("red", "arrow.down.circle.fill", (0, -1)),
}

# No magnet present
NEUTRAL_DIRECTION = Direction.ORIGIN
