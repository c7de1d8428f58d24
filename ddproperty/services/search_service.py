from sqlalchemy.orm import Session

from ddproperty.models import PropertyStatus
from ddproperty.repositories.property_repository import PropertyRepository
from ddproperty.schemas.property import PropertyQueryParams, PropertySummary
from ddproperty.services.property_service import absolute_url


class SearchService:
    def __init__(self, db: Session):
        self.db = db

    async def search_properties(self, params: PropertyQueryParams):
        if params.status is None:
            params = params.model_copy(update={"status": PropertyStatus.ACTIVE})
        rows, meta = PropertyRepository(self.db).find_all(params)
        results = []
        for prop in rows:
            summary = PropertySummary.model_validate(prop)
            for image in summary.images:
                image.url = absolute_url(image.url)
            if summary.featured_image is not None:
                summary.featured_image.url = absolute_url(summary.featured_image.url)
            results.append(summary)
        return results, meta
