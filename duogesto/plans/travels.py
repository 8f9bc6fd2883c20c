"""
Travel Planner

Destinations the couple wants to visit, and what they thought once they
went.

Flow for a new destination:
1. Validate the form (activities without a title are dropped)
2. Store it unvisited, with no favorites and no comments
3. Optionally open a savings goal for it through the GoalLedger

IMPORTANT: Comments live inside the travel document. Adding or removing
one rewrites the whole comments list, so two members commenting at the
same instant can lose one of the comments.
"""

from typing import Any, Optional, Sequence
from uuid import uuid4

from duogesto.goals import GoalLedger
from duogesto.models.audit import AuditEventType
from duogesto.models.normalize import parse_date, to_document, travel_from_document
from duogesto.models.records import BankGoal, Travel, TravelComment, TravelReview, User
from duogesto.plans.base import PlanService
from duogesto.plans.favorites import toggle_favorite
from duogesto.services.storage import Collection


DEFAULT_REVIEWER = "Duo"


def comment_author(user: User) -> str:
    """First name of the member, or the username when there is no display name."""
    parts = user.display_name.split()
    return parts[0] if parts else user.username


def _review(raw: Any) -> Optional[TravelReview]:
    if isinstance(raw, TravelReview):
        return raw
    if not isinstance(raw, dict):
        return None
    name = str(raw.get("name") or "").strip()
    text = str(raw.get("text") or "").strip()
    if not name and not text:
        return None
    return TravelReview(name=name or DEFAULT_REVIEWER, text=text)


class TravelPlanner(PlanService):

    def __init__(self, store, goal_ledger: Optional[GoalLedger] = None, **kwargs):
        super().__init__(store, **kwargs)
        self._goal_ledger = goal_ledger

    async def list_travels(self) -> list[Travel]:
        """Destinations still to visit first, then the visited ones."""
        docs = await self._store.list_records(Collection.TRAVELS)
        travels = [travel_from_document(d) for d in docs]
        return sorted(travels, key=lambda t: t.is_visited)

    async def get_travel(self, travel_id: str) -> Travel:
        return await self._load(Collection.TRAVELS, travel_id, travel_from_document)

    async def _replace(self, travel: Travel, **changes) -> Travel:
        updated = Travel.model_validate({**travel.model_dump(), **changes, "updated_at": self._clock()})
        await self._store.update(Collection.TRAVELS, travel.id, to_document(updated))
        return updated

    # -------------------------------------------------------------------------
    # Destinations
    # -------------------------------------------------------------------------

    async def save_travel(
        self,
        form: dict,
        added_by: Optional[str] = None,
        travel_id: Optional[str] = None,
        create_goal: bool = False,
    ) -> tuple[Travel, Optional[BankGoal]]:
        """
        Create or edit a destination.

        Editing keeps the visit, favorites, comments and who added it.
        With create_goal a savings goal sized for the trip is opened too.

        Returns:
            (travel, goal) where goal is None unless one was opened.

        Raises:
            RecordValidationError: bad form.
            NotFoundError: travel_id given but no such travel.
            ValueError: create_goal without a goal ledger.
        """
        if create_goal and self._goal_ledger is None:
            raise ValueError("A goal ledger is required to open a travel goal")

        cleaned = await self._validated(self._validator.validate_travel(form))
        now = self._clock()

        if travel_id is None:
            travel = Travel(**cleaned, added_by=added_by, created_at=now, updated_at=now)
            travel_id = await self._store.create(Collection.TRAVELS, to_document(travel))
            travel = travel.model_copy(update={"id": travel_id})
        else:
            travel = await self._replace(await self.get_travel(travel_id), **cleaned)

        await self._audit(
            AuditEventType.TRAVEL_SAVED, Collection.TRAVELS, travel_id, travel.location, actor=added_by
        )

        goal = None
        if create_goal:
            goal = await self._goal_ledger.create_travel_goal(
                travel.location, travel.price, travel.price_type, owner_name=added_by
            )
        return travel, goal

    async def delete_travel(self, travel_id: str) -> None:
        await self._store.delete(Collection.TRAVELS, travel_id)
        await self._audit(
            AuditEventType.TRAVEL_DELETED, Collection.TRAVELS, travel_id, "Travel deleted"
        )

    async def record_visit(
        self,
        travel_id: str,
        visit_date: Any,
        reviews: Sequence[Any] = (),
        photos_url: Optional[str] = None,
    ) -> Travel:
        """
        Mark a destination visited.

        Reviews are {name, text} pairs; a review with a text but no name is
        signed "Duo", an empty one is dropped.
        """
        travel = await self.get_travel(travel_id)
        visited = await self._replace(
            travel,
            is_visited=True,
            visit_date=parse_date(visit_date),
            reviews=[r for r in (_review(raw) for raw in reviews) if r is not None],
            photos_url=(photos_url or "").strip() or None,
            visited_at=self._clock(),
        )
        await self._audit(
            AuditEventType.TRAVEL_VISITED, Collection.TRAVELS, travel_id, travel.location
        )
        return visited

    async def toggle_favorite(self, travel_id: str, member_name: str) -> Travel:
        travel = await self.get_travel(travel_id)
        favorites = toggle_favorite(travel.favorites, member_name)
        await self._store.update(Collection.TRAVELS, travel_id, {"favorites": favorites})
        await self._audit(
            AuditEventType.FAVORITE_TOGGLED,
            Collection.TRAVELS,
            travel_id,
            f"Favorites: {', '.join(favorites) or 'none'}",
            actor=member_name,
        )
        return travel.model_copy(update={"favorites": favorites})

    # -------------------------------------------------------------------------
    # Comments
    # -------------------------------------------------------------------------

    async def add_comment(self, travel_id: str, user: User, text: str) -> TravelComment:
        """
        Append a comment signed with the member's first name.

        Raises:
            ValueError: blank text.
            NotFoundError: no such travel.
        """
        text = (text or "").strip()
        if not text:
            raise ValueError("Comment text is required")

        travel = await self.get_travel(travel_id)
        comment = TravelComment(
            id=uuid4().hex,
            author=comment_author(user),
            user_id=user.id,
            text=text,
            posted_at=self._clock(),
        )
        await self._store.update(
            Collection.TRAVELS,
            travel_id,
            {"comments": [c.model_dump(mode="json") for c in [*travel.comments, comment]]},
        )
        await self._audit(
            AuditEventType.TRAVEL_COMMENTED, Collection.TRAVELS, travel_id, text, actor=user.username
        )
        return comment

    async def delete_comment(self, travel_id: str, comment_id: str) -> Travel:
        """Remove one comment; an unknown comment id changes nothing."""
        travel = await self.get_travel(travel_id)
        comments = [c for c in travel.comments if c.id != comment_id]
        await self._store.update(
            Collection.TRAVELS,
            travel_id,
            {"comments": [c.model_dump(mode="json") for c in comments]},
        )
        return travel.model_copy(update={"comments": comments})
