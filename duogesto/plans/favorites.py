"""
Favorites

Properties and travels carry a list with the names of the members who
marked them as favorite. Marking is a toggle keyed by display name.
"""

from typing import Sequence


def toggle_favorite(favorites: Sequence[str], name: str) -> list[str]:
    """Return a new favorites list with the name added or removed."""
    name = (name or "").strip()
    if not name:
        raise ValueError("A member name is required to mark a favorite")
    if name in favorites:
        return [f for f in favorites if f != name]
    return [*favorites, name]
