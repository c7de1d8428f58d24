"""Persistence for the property aggregate.

A property is written together with everything it owns (listings, media rows
and the attribute rows produced by the taxonomy normalizer) in one
transaction. File moves happen afterwards and never undo the write; see
``ddproperty.services.media_storage``.
"""
import logging
from collections import defaultdict
from typing import Optional, Sequence

from sqlalchemy import func, select, update, distinct
from sqlalchemy.exc import (
    IntegrityError,
    OperationalError,
    SQLAlchemyError,
    StatementError,
)
from sqlalchemy.orm import Session, selectinload

from ddproperty.config import settings
from ddproperty.exceptions import (
    ApiError,
    BadRequestError,
    ConflictError,
    ServiceUnavailableError,
)
from ddproperty.models import (
    Property,
    PropertyStatus,
    Listing,
    PropertyImage,
    FloorPlan,
    UnitPlan,
    Feature,
    Message,
    TAXONOMY_MODELS,
)
from ddproperty.schemas.property import (
    FeatureCreate,
    MediaIn,
    PropertyCreate,
    PropertyQueryParams,
)
from ddproperty.services.media_storage import MediaKind, MediaStorage, RelocationReport
from ddproperty.services.property_code import (
    PROPERTY_CODE_PREFIX,
    generate_next_code,
    is_property_code,
)
from ddproperty.services.query_builder import paginate_properties
from ddproperty.services.taxonomy import (
    NormalizedTaxonomy,
    TaxonomyRecord,
    normalize_taxonomy,
    resolve_type,
)

logger = logging.getLogger(__name__)

# taxonomy kind -> Property relationship holding its rows
TAXONOMY_RELATIONSHIPS = {
    "features": "features",
    "amenities": "amenities",
    "facilities": "facilities",
    "views": "views",
    "highlights": "highlights",
    "labels": "labels",
    "nearby": "nearby_places",
}

MEDIA_RELATIONSHIPS = (
    ("images", PropertyImage, MediaKind.IMAGE),
    ("floor_plans", FloorPlan, MediaKind.FLOOR_PLAN),
    ("unit_plans", UnitPlan, MediaKind.UNIT_PLAN),
)

SUMMARY_OPTIONS = (
    selectinload(Property.listings),
    selectinload(Property.images),
)

DETAIL_OPTIONS = SUMMARY_OPTIONS + (
    selectinload(Property.floor_plans),
    selectinload(Property.unit_plans),
    selectinload(Property.features),
    selectinload(Property.amenities),
    selectinload(Property.facilities),
    selectinload(Property.views),
    selectinload(Property.highlights),
    selectinload(Property.labels),
    selectinload(Property.nearby_places),
    selectinload(Property.user),
    selectinload(Property.zone),
)


def build_taxonomy_row(kind: str, record: TaxonomyRecord):
    model, _ = TAXONOMY_MODELS[kind]
    row = model(type=record.type, active=True)
    if kind == "facilities":
        row.category = record.category
    if kind == "nearby":
        row.distance = record.distance
    return row


def ensure_single_featured(images: list, preferred=None) -> None:
    """Leave exactly one featured image (none when there are no images)."""
    if not images:
        return
    chosen = preferred
    if chosen is None:
        chosen = next((image for image in images if image.is_featured), None)
    if chosen is None:
        chosen = min(images, key=lambda image: image.sort_order or 0)
    for image in images:
        image.is_featured = image is chosen


class PropertyRepository:
    def __init__(self, db: Session, media: Optional[MediaStorage] = None):
        self.db = db
        self.media = media

    # ------------------------------------------------------------------ reads

    def find_by_id(self, property_id: int) -> Optional[Property]:
        stmt = (
            select(Property)
            .where(Property.id == property_id)
            .options(*DETAIL_OPTIONS)
            .execution_options(populate_existing=True)
        )
        return self.db.scalars(stmt).first()

    def get(self, property_id: int) -> Optional[Property]:
        return self.db.get(Property, property_id)

    def find_all(
        self, params: PropertyQueryParams, *, extra_conditions: Sequence = ()
    ) -> tuple[list[Property], dict]:
        return paginate_properties(
            self.db, params, extra_conditions=extra_conditions, options=SUMMARY_OPTIONS
        )

    def find_random(self, count: int) -> list[Property]:
        base = select(Property).options(*SUMMARY_OPTIONS)
        rows = list(
            self.db.scalars(
                base.where(Property.status == PropertyStatus.ACTIVE)
                .order_by(func.random())
                .limit(count)
            ).all()
        )
        if len(rows) < count:
            rows = list(self.db.scalars(base.order_by(func.random()).limit(count)).all())
        return rows

    def inquiry_counts(self, property_ids: Sequence[int]) -> dict[int, int]:
        if not property_ids:
            return {}
        stmt = (
            select(Message.property_id, func.count(Message.id))
            .where(Message.property_id.in_(property_ids))
            .group_by(Message.property_id)
        )
        return {property_id: count for property_id, count in self.db.execute(stmt)}

    def count_by_type(self, status: Optional[PropertyStatus] = PropertyStatus.ACTIVE) -> dict:
        stmt = select(Property.property_type, func.count(Property.id)).group_by(
            Property.property_type
        )
        if status is not None:
            stmt = stmt.where(Property.status == status)
        return {property_type: count for property_type, count in self.db.execute(stmt)}

    def price_stats_by_type(self) -> dict:
        stmt = (
            select(
                Property.property_type,
                func.count(distinct(Property.id)),
                func.min(Listing.price),
                func.max(Listing.price),
                func.avg(Listing.price),
            )
            .join(Listing, Listing.property_id == Property.id)
            .where(Property.status == PropertyStatus.ACTIVE, Listing.price.isnot(None))
            .group_by(Property.property_type)
        )
        return {
            row[0]: {"count": row[1], "min": row[2], "max": row[3], "avg": row[4]}
            for row in self.db.execute(stmt)
        }

    def latest_property_code(self) -> Optional[str]:
        stmt = (
            select(Property.property_code)
            .where(Property.property_code.like(f"{PROPERTY_CODE_PREFIX}%"))
            .order_by(func.length(Property.property_code).desc(), Property.property_code.desc())
        )
        for code in self.db.scalars(stmt):
            if is_property_code(code):
                return code
        return None

    def code_exists(self, code: str) -> bool:
        return (
            self.db.scalar(select(Property.id).where(Property.property_code == code))
            is not None
        )

    def media_urls_in_use(self, urls: Sequence[str]) -> bool:
        if not urls:
            return False
        for _, model, _ in MEDIA_RELATIONSHIPS:
            if self.db.scalar(select(model.id).where(model.url.in_(urls)).limit(1)) is not None:
                return True
        return False

    def increment_view_count(self, property_id: int) -> None:
        self.db.execute(
            update(Property)
            .where(Property.id == property_id)
            .values(view_count=Property.view_count + 1)
        )
        self.db.commit()

    # ------------------------------------------------------------------ create

    def _build_aggregate(
        self,
        payload: PropertyCreate,
        user_id: int,
        taxonomy: NormalizedTaxonomy,
        code: str,
    ) -> Property:
        prop = Property(**payload.column_values(), property_code=code, user_id=user_id)
        prop.listings = [Listing(**listing.model_dump()) for listing in payload.listings]

        for attr, model, _ in MEDIA_RELATIONSHIPS:
            descriptors: list[MediaIn] = getattr(payload, attr)
            rows = []
            for index, media in enumerate(descriptors):
                row = model(
                    url=media.url,
                    title=media.title,
                    sort_order=media.sort_order if media.sort_order is not None else index,
                )
                if model is PropertyImage:
                    row.is_featured = media.is_featured
                rows.append(row)
            setattr(prop, attr, rows)
        ensure_single_featured(prop.images)

        for kind, records in taxonomy.items():
            collection = getattr(prop, TAXONOMY_RELATIONSHIPS[kind])
            collection.extend(build_taxonomy_row(kind, record) for record in records)
        return prop

    def _classify_write_error(
        self, exc: SQLAlchemyError, code: Optional[str] = None
    ) -> ApiError:
        if isinstance(exc, IntegrityError):
            if code is not None and self.code_exists(code):
                return ConflictError(f"Property code {code} is already in use")
            return BadRequestError(
                "Property could not be saved: a referenced record does not exist "
                "or a constraint was violated"
            )
        if isinstance(exc, OperationalError):
            return ServiceUnavailableError("Database is temporarily unavailable")
        if isinstance(exc, StatementError) and isinstance(
            exc.orig, (LookupError, ValueError, TypeError)
        ):
            return BadRequestError(f"Invalid property data: {exc.orig}")
        return ApiError("Error creating property", is_operational=False)

    def _write_aggregate(
        self, payload: PropertyCreate, user_id: int, taxonomy: NormalizedTaxonomy
    ) -> int:
        explicit_code = payload.property_code
        max_attempts = 1 if explicit_code else max(1, settings.PROPERTY_CODE_MAX_RETRIES)

        for attempt in range(1, max_attempts + 1):
            code = explicit_code or generate_next_code(self.latest_property_code())
            try:
                prop = self._build_aggregate(payload, user_id, taxonomy, code)
                self.db.add(prop)
                self.db.commit()
                return prop.id
            except SQLAlchemyError as exc:
                self.db.rollback()
                error = self._classify_write_error(exc, code)
                if (
                    isinstance(error, ConflictError)
                    and not explicit_code
                    and attempt < max_attempts
                ):
                    logger.warning(
                        "Property code %s taken, retrying (%d/%d)",
                        code,
                        attempt,
                        max_attempts,
                    )
                    continue
                if error.status_code >= 500:
                    logger.error("Property create failed: %s", exc, exc_info=True)
                raise error from exc
        raise ConflictError("Could not allocate a property code")

    async def relocate_media(self, prop: Property) -> RelocationReport:
        """Move staged files for ``prop`` and commit the rewritten URLs."""
        report = RelocationReport()
        if self.media is None:
            return report
        for attr, _, kind in MEDIA_RELATIONSHIPS:
            rows = getattr(prop, attr)
            if rows:
                report.merge(await self.media.relocate(prop.id, rows, kind))
        if report.moved:
            try:
                self.db.commit()
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error("Could not save relocated media URLs for property %s: %s", prop.id, e)
                report.failed += report.moved
                report.errors.append(f"url update: {e}")
                report.moved = 0
        return report

    async def create(
        self, payload: PropertyCreate, user_id: int
    ) -> tuple[Property, RelocationReport]:
        if not payload.listings:
            raise BadRequestError("At least one listing is required")

        taxonomy = normalize_taxonomy(payload.taxonomy_input())
        if taxonomy.dropped:
            logger.info("Dropped unrecognized attribute keys: %s", taxonomy.dropped)

        property_id = self._write_aggregate(payload, user_id, taxonomy)

        report = await self.relocate_media(self.find_by_id(property_id))
        return self.find_by_id(property_id), report

    # ------------------------------------------------------------------ update / delete

    def update(self, prop: Property, values: dict) -> Property:
        for key, value in values.items():
            setattr(prop, key, value)
        try:
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise self._classify_write_error(exc) from exc
        return self.find_by_id(prop.id)

    def delete(self, prop: Property) -> None:
        self.db.delete(prop)
        self.db.commit()

    def replace_taxonomy(
        self, prop: Property, taxonomy: NormalizedTaxonomy, kinds: Sequence[str]
    ) -> Property:
        """Replace the rows of each kind in ``kinds`` atomically."""
        try:
            for kind in kinds:
                collection = getattr(prop, TAXONOMY_RELATIONSHIPS[kind])
                collection.clear()
                self.db.flush()
                collection.extend(
                    build_taxonomy_row(kind, record) for record in getattr(taxonomy, kind)
                )
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Taxonomy replace failed for property %s: %s", prop.id, exc)
            raise ApiError("Error updating property attributes") from exc
        return self.find_by_id(prop.id)

    # ------------------------------------------------------------------ images / features

    def add_images(self, prop: Property, descriptors: Sequence[MediaIn]) -> list[PropertyImage]:
        next_order = max((image.sort_order or 0 for image in prop.images), default=-1) + 1
        added = []
        for offset, media in enumerate(descriptors):
            image = PropertyImage(
                url=media.url,
                title=media.title,
                sort_order=media.sort_order if media.sort_order is not None else next_order + offset,
                is_featured=media.is_featured,
            )
            prop.images.append(image)
            added.append(image)
        preferred = next((image for image in added if image.is_featured), None)
        ensure_single_featured(prop.images, preferred)
        self.db.commit()
        for image in added:
            self.db.refresh(image)
        return added

    def get_image(self, image_id: int) -> Optional[PropertyImage]:
        return self.db.get(PropertyImage, image_id)

    def delete_image(self, image: PropertyImage) -> None:
        prop = image.property
        prop.images.remove(image)
        ensure_single_featured(prop.images)
        self.db.commit()

    def add_feature(self, prop: Property, payload: FeatureCreate) -> Feature:
        canonical = resolve_type("features", payload.type)
        if canonical is None:
            raise BadRequestError(f"Unknown feature type: {payload.type}")
        existing = next((f for f in prop.features if f.type == canonical), None)
        if existing is not None:
            existing.active = payload.active
            feature = existing
        else:
            feature = Feature(type=canonical, active=payload.active)
            prop.features.append(feature)
        self.db.commit()
        self.db.refresh(feature)
        return feature

    def get_feature(self, feature_id: int) -> Optional[Feature]:
        return self.db.get(Feature, feature_id)

    def delete_feature(self, feature: Feature) -> None:
        self.db.delete(feature)
        self.db.commit()

    # ------------------------------------------------------------------ reconciliation

    async def reconcile_media(self, property_id: Optional[int] = None) -> RelocationReport:
        """Relocate media rows still pointing at the staging directory."""
        report = RelocationReport()
        if self.media is None:
            return report
        for _, model, kind in MEDIA_RELATIONSHIPS:
            stmt = select(model).where(model.url.contains(self.media.staging_url_prefix))
            if property_id is not None:
                stmt = stmt.where(model.property_id == property_id)
            by_property = defaultdict(list)
            for row in self.db.scalars(stmt):
                by_property[row.property_id].append(row)
            for pid, rows in by_property.items():
                report.merge(await self.media.relocate(pid, rows, kind))
        if report.moved:
            self.db.commit()
        logger.info(
            "Media reconcile: %d moved, %d skipped, %d failed",
            report.moved,
            report.skipped,
            report.failed,
        )
        return report
