from __future__ import annotations

from typing import Optional, Sequence


def next_index(points: Sequence, current: Optional[int]) -> Optional[int]:
    """Step forward, wrapping from the last point to the first."""
    n = len(points)
    if n == 0:
        return None
    if current is None:
        return 0
    return (current + 1) % n


def previous_index(points: Sequence, current: Optional[int]) -> Optional[int]:
    """Step backward, wrapping from the first point to the last."""
    n = len(points)
    if n == 0:
        return None
    if current is None:
        return n - 1
    return (current - 1) % n


class NavigationCursor:
    """Cyclic view cursor over the current PointList."""

    def __init__(self) -> None:
        self.current_index: Optional[int] = None

    def reset(self, points: Sequence) -> Optional[int]:
        self.current_index = 0 if len(points) else None
        return self.current_index

    def step_next(self, points: Sequence) -> Optional[int]:
        self.current_index = next_index(points, self.current_index)
        return self.current_index

    def step_previous(self, points: Sequence) -> Optional[int]:
        self.current_index = previous_index(points, self.current_index)
        return self.current_index

    def move_to(self, index: int, points: Sequence) -> Optional[int]:
        if not 0 <= index < len(points):
            raise IndexError(f"index {index} outside [0, {len(points)})")
        self.current_index = index
        return self.current_index
