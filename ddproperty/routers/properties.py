from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from pydantic import ValidationError
from starlette import status
from starlette.datastructures import UploadFile

from ddproperty.dependencies import (
    Permission,
    db_dependency,
    media_dependency,
    parse_query,
    require_api_key,
    require_permission,
    validation_errors,
)
from ddproperty.authorization import Actor
from ddproperty.exceptions import ApiError, BadRequestError
from ddproperty.schemas.common import envelope, parse_json_value
from ddproperty.schemas.property import (
    FeatureCreate,
    ImageResponse,
    ImagesCreate,
    PropertyCreate,
    PropertyDetail,
    PropertyQueryParams,
    PropertySummary,
    PropertyUpdate,
    TaxonomyResponse,
    TaxonomyUpdate,
)
from ddproperty.services.audit_log_service import AuditLogService, request_context
from ddproperty.services.media_storage import MediaStorage
from ddproperty.services.property_service import PropertyService

router = APIRouter(prefix="/properties", tags=["properties"])

read_dependency = Annotated[Actor, Depends(require_permission(Permission.READ_PROPERTIES))]
create_dependency = Annotated[Actor, Depends(require_permission(Permission.CREATE_PROPERTIES))]
update_dependency = Annotated[Actor, Depends(require_permission(Permission.UPDATE_PROPERTIES))]
delete_dependency = Annotated[Actor, Depends(require_permission(Permission.DELETE_PROPERTIES))]

# multipart field name -> payload list the staged file is appended to
UPLOAD_FIELDS = {
    "images": "images",
    "floorPlans": "floor_plans",
    "floor_plans": "floor_plans",
    "unitPlans": "unit_plans",
    "unit_plans": "unit_plans",
}


def _is_form(request: Request) -> bool:
    content_type = request.headers.get("content-type", "")
    return content_type.startswith(
        ("multipart/form-data", "application/x-www-form-urlencoded")
    )


async def _read_json(request: Request) -> dict:
    try:
        data = await request.json()
    except ValueError:
        raise BadRequestError("Request body must be valid JSON")
    if not isinstance(data, dict):
        raise BadRequestError("Request body must be a JSON object")
    return data


async def _read_submission(request: Request, media: MediaStorage) -> tuple[dict, list[str]]:
    """Collect form fields and stage uploaded files.

    Returns the raw payload and the staged URLs, so they can be removed again
    if validation fails.
    """
    if not _is_form(request):
        return await _read_json(request), []

    form = await request.form()
    data: dict = {}
    staged: dict[str, list[dict]] = {}
    staged_urls: list[str] = []
    try:
        for key, value in form.multi_items():
            if isinstance(value, UploadFile):
                target = UPLOAD_FIELDS.get(key)
                if target is None:
                    raise BadRequestError(f"Unexpected file field: {key}")
                url = await media.stage_upload(value)
                staged_urls.append(url)
                staged.setdefault(target, []).append({"url": url})
            else:
                data[key] = value
    except BadRequestError:
        for url in staged_urls:
            await media.remove_url(url)
        raise

    # Staged files are appended after any URLs sent in the same field
    for target, files in staged.items():
        camel = {"floor_plans": "floorPlans", "unit_plans": "unitPlans"}.get(target, target)
        existing = data.pop(camel, None) or data.pop(target, None)
        try:
            listed = parse_json_value(existing) or []
        except ValueError:
            listed = []
        if not isinstance(listed, list):
            listed = [listed]
        data[target] = listed + files
    return data, staged_urls


# ==================== PUBLIC READS ====================


@router.get("", status_code=status.HTTP_200_OK)
async def get_properties(db: db_dependency, request: Request):
    params = parse_query(PropertyQueryParams, request)
    rows, meta = await PropertyService(db).get_all_properties(params)
    return envelope([PropertySummary.model_validate(p) for p in rows], meta)


@router.get(
    "/random",
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_api_key)],
)
async def get_random_properties(
    db: db_dependency, count: Annotated[int, Query(ge=1, le=50)] = 4
):
    return envelope(await PropertyService(db).get_random_properties(count))


@router.get("/types", status_code=status.HTTP_200_OK)
async def get_property_types(db: db_dependency):
    return envelope(await PropertyService(db).get_property_types())


@router.get("/price-types", status_code=status.HTTP_200_OK)
async def get_property_price_types(db: db_dependency):
    return envelope(await PropertyService(db).get_property_price_types())


@router.get("/backoffice/my-properties", status_code=status.HTTP_200_OK)
async def get_my_properties(db: db_dependency, actor: read_dependency, request: Request):
    params = parse_query(PropertyQueryParams, request)
    items, meta = await PropertyService(db).get_user_properties(actor, params)
    return envelope(items, meta)


@router.get("/{property_id}", status_code=status.HTTP_200_OK)
async def get_property(db: db_dependency, property_id: int):
    prop = await PropertyService(db).get_property_by_id(property_id, count_view=True)
    return envelope(PropertyDetail.model_validate(prop))


# ==================== WRITES ====================


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_property(
    db: db_dependency,
    media: media_dependency,
    actor: create_dependency,
    request: Request,
):
    data, staged_urls = await _read_submission(request, media)
    try:
        payload = PropertyCreate.model_validate(data)
    except ValidationError as e:
        for url in staged_urls:
            await media.remove_url(url)
        raise BadRequestError("Validation error", errors=validation_errors(e))

    try:
        prop = await PropertyService(db, media).create_property(payload, actor, request)
    except ApiError:
        # nothing references the staged files once the write is refused
        for url in staged_urls:
            await media.remove_url(url)
        raise
    result = PropertyDetail.model_validate(prop)
    AuditLogService().create_log(
        db=db,
        action="property.create",
        resource_type="property",
        resource_id=prop.id,
        actor=actor,
        status="success",
        status_code=status.HTTP_201_CREATED,
        **request_context(request),
    )
    return envelope(result)


@router.put("/{property_id}", status_code=status.HTTP_200_OK)
async def update_property(
    db: db_dependency,
    property_id: int,
    payload: PropertyUpdate,
    actor: update_dependency,
    request: Request,
):
    prop = await PropertyService(db).update_property(property_id, payload, actor)
    result = PropertyDetail.model_validate(prop)
    AuditLogService().create_log(
        db=db,
        action="property.update",
        resource_type="property",
        resource_id=property_id,
        actor=actor,
        changes=payload.model_dump(mode="json", exclude_unset=True),
        status="success",
        status_code=status.HTTP_200_OK,
        **request_context(request),
    )
    return envelope(result)


@router.delete("/{property_id}", status_code=status.HTTP_200_OK)
async def delete_property(
    db: db_dependency,
    media: media_dependency,
    property_id: int,
    actor: delete_dependency,
    request: Request,
):
    await PropertyService(db, media).delete_property(property_id, actor)
    AuditLogService().create_log(
        db=db,
        action="property.delete",
        resource_type="property",
        resource_id=property_id,
        actor=actor,
        status="success",
        status_code=status.HTTP_200_OK,
        **request_context(request),
    )
    return {"status": "success", "message": "Property deleted successfully"}


@router.put("/{property_id}/taxonomy", status_code=status.HTTP_200_OK)
async def replace_property_taxonomy(
    db: db_dependency,
    property_id: int,
    payload: TaxonomyUpdate,
    actor: update_dependency,
):
    prop = await PropertyService(db).replace_taxonomy(property_id, payload, actor)
    return envelope(PropertyDetail.model_validate(prop))


@router.post("/{property_id}/images", status_code=status.HTTP_201_CREATED)
async def add_property_images(
    db: db_dependency,
    media: media_dependency,
    property_id: int,
    actor: update_dependency,
    request: Request,
):
    descriptors = []
    uploads = []
    if _is_form(request):
        form = await request.form()
        for key, value in form.multi_items():
            if isinstance(value, UploadFile):
                uploads.append(value)
    else:
        try:
            descriptors = ImagesCreate.model_validate(await _read_json(request)).images
        except ValidationError as e:
            raise BadRequestError("Validation error", errors=validation_errors(e))

    images = await PropertyService(db, media).add_property_images(
        property_id, actor, descriptors=descriptors, uploads=uploads
    )
    return envelope([ImageResponse.model_validate(image) for image in images])


@router.delete("/images/{image_id}", status_code=status.HTTP_200_OK)
async def delete_property_image(
    db: db_dependency,
    media: media_dependency,
    image_id: int,
    actor: update_dependency,
):
    await PropertyService(db, media).delete_property_image(image_id, actor)
    return {"status": "success", "message": "Image deleted successfully"}


@router.post("/{property_id}/features", status_code=status.HTTP_201_CREATED)
async def add_property_feature(
    db: db_dependency,
    property_id: int,
    payload: FeatureCreate,
    actor: update_dependency,
):
    feature = await PropertyService(db).add_property_feature(property_id, payload, actor)
    return envelope(TaxonomyResponse.model_validate(feature))


@router.delete("/features/{feature_id}", status_code=status.HTTP_200_OK)
async def delete_property_feature(
    db: db_dependency,
    feature_id: int,
    actor: update_dependency,
):
    await PropertyService(db).delete_property_feature(feature_id, actor)
    return {"status": "success", "message": "Feature deleted successfully"}
