"""
Home Shopping List

Rooms of the home being furnished and the items to buy for each one.

An item is bought or not; marking it is a toggle. The summary counts
what is still to buy:

    pending_total    = sum(price of unbought items), a missing price is 0
    progress_percent = round(bought / total * 100), 0 when there are no items

IMPORTANT: Deleting a room does not delete its items. They keep counting
in the whole-home totals and show up in no room.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Sequence

from duogesto.models.audit import AuditEventType
from duogesto.models.normalize import (
    home_item_from_document,
    room_from_document,
    to_document,
)
from duogesto.models.records import HomeItem, Room
from duogesto.models.reports import HomeSummary, RoomProgress
from duogesto.plans.base import PlanService
from duogesto.services.storage import Collection


DEFAULT_ROOM_COLOR = "bg-emerald-100 text-emerald-600"


def _percent(done: int, total: int) -> int:
    if total == 0:
        return 0
    ratio = Decimal(done) * 100 / Decimal(total)
    return int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _pending_total(items: Sequence[HomeItem]) -> Decimal:
    return sum(
        (item.price or Decimal("0") for item in items if not item.bought),
        Decimal("0"),
    )


def room_progress(room: Room, items: Sequence[HomeItem]) -> RoomProgress:
    """Progress of one room, counting only the items that belong to it."""
    own = [item for item in items if item.room_id == room.id]
    bought = sum(1 for item in own if item.bought)
    return RoomProgress(
        room_id=room.id,
        label=room.label,
        icon=room.icon,
        total_items=len(own),
        bought_items=bought,
        pending_total=_pending_total(own),
        progress_percent=_percent(bought, len(own)),
    )


def home_summary(rooms: Sequence[Room], items: Sequence[HomeItem]) -> HomeSummary:
    bought = sum(1 for item in items if item.bought)
    return HomeSummary(
        total_items=len(items),
        bought_items=bought,
        pending_items=len(items) - bought,
        pending_total=_pending_total(items),
        progress_percent=_percent(bought, len(items)),
        rooms=tuple(room_progress(room, items) for room in rooms),
    )


class HomePlanner(PlanService):
    """Rooms, items and the bought toggle."""

    # -------------------------------------------------------------------------
    # Rooms
    # -------------------------------------------------------------------------

    async def list_rooms(self) -> list[Room]:
        docs = await self._store.list_records(Collection.ROOMS)
        return [room_from_document(d) for d in docs]

    async def save_room(self, form: dict, room_id: Optional[str] = None) -> Room:
        """Create a room, or replace label, icon and color of an existing one."""
        cleaned = await self._validated(self._validator.validate_room(form))
        room = Room(
            label=cleaned["label"],
            icon=cleaned["icon"],
            color=cleaned["color"] or DEFAULT_ROOM_COLOR,
        )

        if room_id is None:
            room_id = await self._store.create(Collection.ROOMS, to_document(room))
        else:
            await self._store.update(Collection.ROOMS, room_id, to_document(room))

        await self._audit(AuditEventType.ROOM_SAVED, Collection.ROOMS, room_id, room.label)
        return room.model_copy(update={"id": room_id})

    async def delete_room(self, room_id: str) -> None:
        await self._store.delete(Collection.ROOMS, room_id)
        await self._audit(AuditEventType.ROOM_DELETED, Collection.ROOMS, room_id, "Room deleted")

    # -------------------------------------------------------------------------
    # Items
    # -------------------------------------------------------------------------

    async def list_items(self, room_id: Optional[str] = None) -> list[HomeItem]:
        docs = await self._store.list_records(Collection.HOME_ITEMS)
        items = [home_item_from_document(d) for d in docs]
        if room_id is not None:
            items = [item for item in items if item.room_id == room_id]
        return items

    async def save_item(
        self,
        form: dict,
        room_id: str,
        item_id: Optional[str] = None,
    ) -> HomeItem:
        """
        Create or edit an item of a room.

        Editing keeps the bought flag and the creation time.

        Raises:
            RecordValidationError: missing name or bad price.
            NotFoundError: item_id given but no such item.
        """
        cleaned = await self._validated(self._validator.validate_home_item(form))

        if item_id is None:
            item = HomeItem(
                name=cleaned["name"],
                price=cleaned["price"],
                link=cleaned["link"],
                room_id=room_id,
                created_at=self._clock(),
            )
            item_id = await self._store.create(Collection.HOME_ITEMS, to_document(item))
        else:
            existing = await self._load(Collection.HOME_ITEMS, item_id, home_item_from_document)
            item = existing.model_copy(update={
                "name": cleaned["name"],
                "price": cleaned["price"],
                "link": cleaned["link"],
                "room_id": room_id,
            })
            await self._store.update(Collection.HOME_ITEMS, item_id, to_document(item))

        await self._audit(AuditEventType.HOME_ITEM_SAVED, Collection.HOME_ITEMS, item_id, item.name)
        return item.model_copy(update={"id": item_id})

    async def delete_item(self, item_id: str) -> None:
        await self._store.delete(Collection.HOME_ITEMS, item_id)
        await self._audit(
            AuditEventType.HOME_ITEM_DELETED, Collection.HOME_ITEMS, item_id, "Item deleted"
        )

    async def toggle_bought(self, item_id: str, by_whom: Optional[str] = None) -> HomeItem:
        """Flip the bought flag of an item."""
        item = await self._load(Collection.HOME_ITEMS, item_id, home_item_from_document)
        bought = not item.bought
        await self._store.update(Collection.HOME_ITEMS, item_id, {"bought": bought})

        event = AuditEventType.HOME_ITEM_BOUGHT if bought else AuditEventType.HOME_ITEM_UNBOUGHT
        await self._audit(event, Collection.HOME_ITEMS, item_id, item.name, actor=by_whom)
        return item.model_copy(update={"bought": bought})

    async def summary(self) -> HomeSummary:
        return home_summary(await self.list_rooms(), await self.list_items())
