"""Plans for the couple's future: the home shopping list, properties and travels."""

from duogesto.plans.favorites import toggle_favorite
from duogesto.plans.home import HomePlanner, home_summary, room_progress
from duogesto.plans.properties import PropertyCatalog
from duogesto.plans.travels import TravelPlanner, comment_author

__all__ = [
    "HomePlanner",
    "PropertyCatalog",
    "TravelPlanner",
    "comment_author",
    "home_summary",
    "room_progress",
    "toggle_favorite",
]
