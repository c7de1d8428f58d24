import logging
from typing import Optional, Sequence

from fastapi import Request
from sqlalchemy.orm import Session

from ddproperty.authorization import Actor, ensure_can_modify
from ddproperty.config import settings
from ddproperty.exceptions import BadRequestError, NotFoundError
from ddproperty.models import Property, PropertyStatus, PropertyType
from ddproperty.repositories.property_repository import PropertyRepository
from ddproperty.schemas.property import (
    FeatureCreate,
    MediaIn,
    OwnedPropertySummary,
    PropertyCreate,
    PropertyPriceStats,
    PropertyQueryParams,
    PropertySummary,
    PropertyTypeInfo,
    PropertyUpdate,
    TaxonomyUpdate,
)
from ddproperty.services.audit_log_service import AuditLogService, request_context
from ddproperty.services.media_storage import MediaStorage, RelocationReport
from ddproperty.services.taxonomy import normalize_taxonomy

logger = logging.getLogger(__name__)

PROPERTY_TYPE_INFO = {
    PropertyType.CONDO: ("Condo", "คอนโด", "Condominium unit in a managed building"),
    PropertyType.HOUSE: ("House", "บ้านเดี่ยว", "Detached single-family house"),
    PropertyType.TOWNHOUSE: ("Townhouse", "ทาวน์เฮาส์", "Multi-storey terraced house"),
    PropertyType.VILLA: ("Villa", "วิลล่า", "Luxury house, usually with private pool"),
    PropertyType.LAND: ("Land", "ที่ดิน", "Vacant plot of land"),
    PropertyType.APARTMENT: ("Apartment", "อพาร์ทเมนท์", "Rental apartment unit"),
    PropertyType.COMMERCIAL: ("Commercial", "อาคารพาณิชย์", "Shophouse or commercial building"),
    PropertyType.OFFICE: ("Office", "สำนักงาน", "Office space"),
    PropertyType.RETAIL: ("Retail", "พื้นที่ค้าปลีก", "Retail or shop space"),
    PropertyType.WAREHOUSE: ("Warehouse", "โกดัง", "Warehouse or storage building"),
    PropertyType.FACTORY: ("Factory", "โรงงาน", "Factory or industrial building"),
    PropertyType.HOTEL: ("Hotel", "โรงแรม", "Hotel business or building"),
    PropertyType.RESORT: ("Resort", "รีสอร์ท", "Resort property"),
}


def absolute_url(url: Optional[str]) -> Optional[str]:
    if not url or url.startswith(("http://", "https://")):
        return url
    return f"{settings.BASE_URL}{url if url.startswith('/') else '/' + url}"


class PropertyService:
    def __init__(self, db: Session, media: Optional[MediaStorage] = None):
        self.db = db
        self.media = media
        self.repository = PropertyRepository(db, media)

    def _get_or_404(self, property_id: int) -> Property:
        prop = self.repository.find_by_id(property_id)
        if not prop:
            raise NotFoundError(f"Property with ID {property_id} not found")
        return prop

    # ------------------------------------------------------------------ reads

    async def get_all_properties(self, params: PropertyQueryParams):
        if params.status is None:
            params = params.model_copy(update={"status": PropertyStatus.ACTIVE})
        return self.repository.find_all(params)

    async def get_random_properties(self, count: int) -> list[PropertySummary]:
        results = []
        for prop in self.repository.find_random(count):
            summary = PropertySummary.model_validate(prop)
            summary.images.sort(key=lambda image: (not image.is_featured, image.sort_order))
            for image in summary.images:
                image.url = absolute_url(image.url)
            summary.featured_image = summary.images[0] if summary.images else None
            results.append(summary)
        return results

    async def get_property_by_id(self, property_id: int, count_view: bool = False) -> Property:
        if count_view and self.repository.get(property_id) is not None:
            self.repository.increment_view_count(property_id)
        return self._get_or_404(property_id)

    async def get_user_properties(self, actor: Actor, params: PropertyQueryParams):
        params = params.model_copy(update={"user_id": actor.id})
        rows, meta = self.repository.find_all(params)
        counts = self.repository.inquiry_counts([prop.id for prop in rows])
        items = []
        for prop in rows:
            item = OwnedPropertySummary.model_validate(prop)
            item.inquiry_count = counts.get(prop.id, 0)
            items.append(item)
        return items, meta

    async def get_property_types(self) -> list[PropertyTypeInfo]:
        counts = self.repository.count_by_type()
        return [
            PropertyTypeInfo(
                value=property_type,
                name_en=name_en,
                name_th=name_th,
                description=description,
                count=counts.get(property_type, 0),
            )
            for property_type, (name_en, name_th, description) in PROPERTY_TYPE_INFO.items()
        ]

    async def get_property_price_types(self) -> list[PropertyPriceStats]:
        counts = self.repository.count_by_type()
        stats = self.repository.price_stats_by_type()
        result = []
        for property_type in PropertyType:
            row = stats.get(property_type, {})
            avg = row.get("avg")
            result.append(
                PropertyPriceStats(
                    property_type=property_type,
                    count=counts.get(property_type, 0),
                    min_price=row.get("min"),
                    max_price=row.get("max"),
                    avg_price=round(avg, 2) if avg is not None else None,
                )
            )
        return result

    # ------------------------------------------------------------------ writes

    async def create_property(
        self, payload: PropertyCreate, actor: Actor, request: Optional[Request] = None
    ) -> Property:
        self._check_staged_references(
            [*payload.images, *payload.floor_plans, *payload.unit_plans]
        )
        prop, report = await self.repository.create(payload, actor.id)
        self._record_relocation(prop, report, actor, request)
        logger.info("Property %s (%s) created by user %s", prop.id, prop.property_code, actor.id)
        return prop

    def _check_staged_references(self, descriptors: Sequence[MediaIn]) -> None:
        """Local media on a new property must be unclaimed staged uploads."""
        if self.media is None:
            return
        local = [d.url for d in descriptors if self.media.is_local(d.url)]
        for url in local:
            if not self.media.is_staged(url):
                raise BadRequestError(f"Media URL {url} is not a staged upload")
        if self.repository.media_urls_in_use(local):
            raise BadRequestError("Staged media is already attached to another property")

    def _check_owned_references(self, property_id: int, descriptors: Sequence[MediaIn]) -> None:
        if self.media is None:
            return
        for descriptor in descriptors:
            if self.media.is_local(descriptor.url) and not self.media.belongs_to(
                property_id, descriptor.url
            ):
                raise BadRequestError(
                    f"Media URL {descriptor.url} does not belong to property {property_id}"
                )

    def _record_relocation(
        self,
        prop: Property,
        report: RelocationReport,
        actor: Optional[Actor],
        request: Optional[Request] = None,
    ) -> None:
        if report.ok:
            return
        try:
            AuditLogService().create_log(
                db=self.db,
                action="property.media_relocation",
                resource_type="property",
                resource_id=prop.id,
                actor=actor,
                changes=report.as_dict(),
                status="failure",
                error_message="; ".join(report.errors)[:1000],
                **request_context(request),
            )
        except Exception:
            logger.exception("Could not record media relocation failure for property %s", prop.id)

    async def update_property(
        self, property_id: int, payload: PropertyUpdate, actor: Actor
    ) -> Property:
        prop = self._get_or_404(property_id)
        ensure_can_modify(actor, prop.user_id, "You are not authorized to update this property")
        values = payload.column_values(exclude_unset=True)
        for required in ("title", "property_type", "status", "country"):
            if required in values and values[required] is None:
                raise BadRequestError(f"{required} cannot be empty")
        return self.repository.update(prop, values)

    async def delete_property(self, property_id: int, actor: Actor) -> None:
        prop = self._get_or_404(property_id)
        ensure_can_modify(actor, prop.user_id, "You are not authorized to delete this property")
        self.repository.delete(prop)
        if self.media is not None:
            await self.media.remove_property_dir(property_id)
        logger.info("Property %s deleted by user %s", property_id, actor.id)

    async def replace_taxonomy(
        self, property_id: int, payload: TaxonomyUpdate, actor: Actor
    ) -> Property:
        prop = self._get_or_404(property_id)
        ensure_can_modify(actor, prop.user_id, "You are not authorized to update this property")
        kinds = payload.present_kinds()
        if not kinds:
            raise BadRequestError("No attribute kinds supplied")
        taxonomy = normalize_taxonomy({kind: getattr(payload, kind) for kind in kinds})
        return self.repository.replace_taxonomy(prop, taxonomy, kinds)

    async def add_property_images(
        self,
        property_id: int,
        actor: Actor,
        descriptors: Sequence[MediaIn] = (),
        uploads: Sequence = (),
    ):
        prop = self._get_or_404(property_id)
        ensure_can_modify(actor, prop.user_id, "You are not authorized to update this property")
        descriptors = list(descriptors)
        self._check_owned_references(property_id, descriptors)
        if uploads and self.media is not None:
            for upload in uploads:
                url = await self.media.store_for_property(property_id, upload)
                descriptors.append(MediaIn(url=url))
        if not descriptors:
            raise BadRequestError("No images supplied")
        return self.repository.add_images(prop, descriptors)

    async def delete_property_image(self, image_id: int, actor: Actor) -> None:
        image = self.repository.get_image(image_id)
        if not image:
            raise NotFoundError(f"Image with ID {image_id} not found")
        ensure_can_modify(
            actor, image.property.user_id, "You are not authorized to update this property"
        )
        url, property_id = image.url, image.property_id
        self.repository.delete_image(image)
        if self.media is not None and self.media.belongs_to(property_id, url):
            await self.media.remove_url(url)

    async def add_property_feature(
        self, property_id: int, payload: FeatureCreate, actor: Actor
    ):
        prop = self._get_or_404(property_id)
        ensure_can_modify(actor, prop.user_id, "You are not authorized to update this property")
        return self.repository.add_feature(prop, payload)

    async def delete_property_feature(self, feature_id: int, actor: Actor) -> None:
        feature = self.repository.get_feature(feature_id)
        if not feature:
            raise NotFoundError(f"Feature with ID {feature_id} not found")
        ensure_can_modify(
            actor, feature.property.user_id, "You are not authorized to update this property"
        )
        self.repository.delete_feature(feature)

    async def reconcile_media(self, property_id: Optional[int] = None) -> RelocationReport:
        return await self.repository.reconcile_media(property_id)
