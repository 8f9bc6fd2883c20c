"""
Property Catalog

Places to rent or buy the couple is comparing. The figure shown for each
one is Property.total_cost: the price plus the condo fee when the
property has one.
"""

from typing import Optional

from duogesto.models.audit import AuditEventType
from duogesto.models.normalize import property_from_document, to_document
from duogesto.models.records import Property
from duogesto.plans.base import PlanService
from duogesto.plans.favorites import toggle_favorite
from duogesto.services.storage import Collection


class PropertyCatalog(PlanService):

    async def list_properties(self) -> list[Property]:
        """Every property, cheapest total cost first."""
        docs = await self._store.list_records(Collection.PROPERTIES)
        properties = [property_from_document(d) for d in docs]
        return sorted(properties, key=lambda p: p.total_cost)

    async def get_property(self, property_id: str) -> Property:
        return await self._load(Collection.PROPERTIES, property_id, property_from_document)

    async def save_property(
        self,
        form: dict,
        added_by: Optional[str] = None,
        property_id: Optional[str] = None,
    ) -> Property:
        """
        Create or edit a property.

        Editing keeps who added it, its favorites and its creation time.

        Raises:
            RecordValidationError: bad form.
            NotFoundError: property_id given but no such property.
        """
        cleaned = await self._validated(self._validator.validate_property(form))
        now = self._clock()

        if property_id is None:
            prop = Property(**cleaned, added_by=added_by, created_at=now, updated_at=now)
            property_id = await self._store.create(Collection.PROPERTIES, to_document(prop))
        else:
            existing = await self.get_property(property_id)
            prop = Property.model_validate({**existing.model_dump(), **cleaned, "updated_at": now})
            await self._store.update(Collection.PROPERTIES, property_id, to_document(prop))

        await self._audit(
            AuditEventType.PROPERTY_SAVED,
            Collection.PROPERTIES,
            property_id,
            f"{prop.neighborhood}, {prop.city}",
            actor=added_by,
        )
        return prop.model_copy(update={"id": property_id})

    async def delete_property(self, property_id: str) -> None:
        await self._store.delete(Collection.PROPERTIES, property_id)
        await self._audit(
            AuditEventType.PROPERTY_DELETED, Collection.PROPERTIES, property_id, "Property deleted"
        )

    async def toggle_favorite(self, property_id: str, member_name: str) -> Property:
        prop = await self.get_property(property_id)
        favorites = toggle_favorite(prop.favorites, member_name)
        await self._store.update(Collection.PROPERTIES, property_id, {"favorites": favorites})
        await self._audit(
            AuditEventType.FAVORITE_TOGGLED,
            Collection.PROPERTIES,
            property_id,
            f"Favorites: {', '.join(favorites) or 'none'}",
            actor=member_name,
        )
        return prop.model_copy(update={"favorites": favorites})
