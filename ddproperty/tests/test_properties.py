import json

from sqlalchemy import func, select

from ddproperty.config import settings
from ddproperty.models import (
    AuditLog,
    Feature,
    Listing,
    ListingType,
    Property,
    PropertyImage,
    PropertyStatus,
    PropertyType,
    Zone,
)
from ddproperty.repositories.property_repository import PropertyRepository

JPEG_BYTES = b"\xff\xd8\xff\xe0front"
PNG_BYTES = b"\x89PNG\r\n\x1a\nside"


def _payload(**overrides):
    payload = {
        "title": "Riverside Condo",
        "projectName": "Riverside Residences",
        "propertyType": "CONDO",
        "address": "99 Charoen Krung Road",
        "city": "Bangkok",
        "bedrooms": 2,
        "bathrooms": 2,
        "usableArea": 68.5,
        "listings": [{"listingType": "SALE", "price": 5_500_000}],
    }
    payload.update(overrides)
    return payload


def _create(client, headers, **overrides):
    return client.post("/api/properties", headers=headers, json=_payload(**overrides))


def _count(db, model) -> int:
    db.expire_all()
    return db.scalar(select(func.count()).select_from(model))


# ==================== CREATE ====================


def test_create_property_normalizes_taxonomy(client, owner, auth_headers):
    res = _create(
        client,
        auth_headers(owner),
        features={"wifi": True, "parking": "true", "gardenGnome": False, "unicornStable": True},
        facilities={"gym": True},
        nearby={"bts": {"distance": 250}},
    )
    assert res.status_code == 201, res.text
    data = res.json()["data"]

    assert data["propertyCode"] == "DP00001"
    assert data["userId"] == owner.id
    assert data["status"] == "ACTIVE"
    assert sorted(f["type"] for f in data["features"]) == ["PARKING", "WIFI"]
    assert data["facilities"][0]["category"] == "FITNESS_SPORTS"
    assert data["nearbyPlaces"] == [
        {"id": data["nearbyPlaces"][0]["id"], "type": "BTS", "active": True, "distance": 250}
    ]
    assert data["listings"][0]["listingType"] == "SALE"
    assert data["user"]["email"] == "owner@example.com"


def test_property_codes_are_sequential(client, owner, auth_headers):
    headers = auth_headers(owner)
    first = _create(client, headers).json()["data"]["propertyCode"]
    second = _create(client, headers).json()["data"]["propertyCode"]
    assert (first, second) == ("DP00001", "DP00002")


def test_explicit_code_conflict_returns_409(client, owner, auth_headers):
    headers = auth_headers(owner)
    assert _create(client, headers, propertyCode="DP00010").status_code == 201

    res = _create(client, headers, propertyCode="DP00010")
    assert res.status_code == 409
    assert res.json()["status"] == "error"

    # generated codes continue after the highest existing one
    assert _create(client, headers).json()["data"]["propertyCode"] == "DP00011"


def test_generated_code_collision_is_retried(
    client, owner, auth_headers, make_property, monkeypatch
):
    make_property(owner)  # DP00001
    real_latest = PropertyRepository.latest_property_code
    calls = []

    def stale_then_real(self):
        calls.append(1)
        # first lookup misses the existing row, as a concurrent writer would
        return None if len(calls) == 1 else real_latest(self)

    monkeypatch.setattr(PropertyRepository, "latest_property_code", stale_then_real)

    res = _create(client, auth_headers(owner))
    assert res.status_code == 201, res.text
    assert res.json()["data"]["propertyCode"] == "DP00002"
    assert len(calls) == 2


def test_code_retries_are_bounded(
    client, owner, auth_headers, make_property, monkeypatch, db_session
):
    make_property(owner)  # DP00001
    calls = []

    def always_stale(self):
        calls.append(1)
        return None

    monkeypatch.setattr(PropertyRepository, "latest_property_code", always_stale)
    monkeypatch.setattr(settings, "PROPERTY_CODE_MAX_RETRIES", 3)

    res = _create(client, auth_headers(owner))
    assert res.status_code == 409
    assert len(calls) == 3
    assert _count(db_session, Property) == 1


def test_create_rejects_parent_segments_in_media_urls(
    client, owner, other_user, auth_headers, make_property, media
):
    victim = make_property(other_user)
    victim_dir = media.property_dir(victim.id)
    victim_dir.mkdir(parents=True)
    (victim_dir / "secret.jpg").write_bytes(JPEG_BYTES)

    res = _create(
        client,
        auth_headers(owner),
        images=[f"/images/properties/temp/../{victim.id}/secret.jpg"],
    )
    assert res.status_code == 400
    assert any(err["field"].startswith("images") for err in res.json()["errors"])
    assert (victim_dir / "secret.jpg").exists()


def test_create_rejects_local_media_outside_staging(
    client, owner, other_user, auth_headers, make_property, media, db_session
):
    victim = make_property(other_user)
    victim_dir = media.property_dir(victim.id)
    victim_dir.mkdir(parents=True)
    (victim_dir / "secret.jpg").write_bytes(JPEG_BYTES)

    res = _create(
        client, auth_headers(owner), images=[f"/images/properties/{victim.id}/secret.jpg"]
    )
    assert res.status_code == 400
    assert (victim_dir / "secret.jpg").exists()
    assert _count(db_session, Property) == 1


def test_create_rejects_staged_media_already_attached(
    client, owner, other_user, auth_headers, make_property, media
):
    staged = media.staging_url("pending.jpg")
    (media.staging_dir / "pending.jpg").write_bytes(JPEG_BYTES)
    make_property(other_user, images=[PropertyImage(url=staged)])

    res = _create(client, auth_headers(owner), images=[staged])
    assert res.status_code == 400
    assert (media.staging_dir / "pending.jpg").exists()


def test_refused_multipart_create_removes_staged_uploads(
    client, owner, auth_headers, make_property, media
):
    make_property(owner)  # DP00001
    res = client.post(
        "/api/properties",
        headers=auth_headers(owner),
        data={
            "title": "Duplicate",
            "propertyType": "CONDO",
            "propertyCode": "DP00001",
            "listings": json.dumps([{"listingType": "SALE", "price": 1_000_000}]),
        },
        files=[("images", ("front.jpg", JPEG_BYTES, "image/jpeg"))],
    )
    assert res.status_code == 409
    assert list(media.staging_dir.iterdir()) == []


def test_failed_create_leaves_nothing_behind(client, owner, auth_headers, db_session):
    res = _create(client, auth_headers(owner), zoneId=999, features={"wifi": True})

    assert res.status_code == 400
    assert _count(db_session, Property) == 0
    assert _count(db_session, Listing) == 0
    assert _count(db_session, Feature) == 0


def test_create_requires_a_listing(client, owner, auth_headers):
    res = _create(client, auth_headers(owner), listings=[])
    assert res.status_code == 400
    assert res.json()["message"] == "At least one listing is required"


def test_single_listing_shorthand(client, owner, auth_headers):
    res = _create(client, auth_headers(owner), listings=[], listingType="RENT", rentalPrice=25000)
    assert res.status_code == 201, res.text
    listings = res.json()["data"]["listings"]
    assert len(listings) == 1
    assert listings[0]["listingType"] == "RENT"
    assert listings[0]["rentalPrice"] == 25000


def test_create_validation_error(client, owner, auth_headers):
    res = _create(client, auth_headers(owner), propertyType="CASTLE")
    assert res.status_code == 400
    body = res.json()
    assert body["message"] == "Validation error"
    assert any(err["field"] == "propertyType" for err in body["errors"])


def test_create_requires_authentication(client):
    res = client.post("/api/properties", json=_payload())
    assert res.status_code == 401
    assert res.json()["statusCode"] == 401


def test_multipart_create_moves_uploads_into_property_dir(
    client, owner, auth_headers, media
):
    res = client.post(
        "/api/properties",
        headers=auth_headers(owner),
        data={
            "title": "Garden Villa",
            "propertyType": "VILLA",
            "listings": json.dumps([{"listingType": "SALE", "price": 12_000_000}]),
            "features": json.dumps({"privatePool": True, "garden": True}),
            "bedrooms": "",
        },
        files=[
            ("images", ("front.jpg", JPEG_BYTES, "image/jpeg")),
            ("images", ("pool.jpg", JPEG_BYTES + b"pool", "image/jpeg")),
            ("floorPlans", ("ground.pdf", b"%PDF-1.4", "application/pdf")),
        ],
    )
    assert res.status_code == 201, res.text
    data = res.json()["data"]
    property_id = data["id"]

    assert data["bedrooms"] is None
    assert sorted(f["type"] for f in data["features"]) == ["GARDEN", "PRIVATE_POOL"]
    assert len(data["images"]) == 2
    for image in data["images"]:
        assert image["url"].startswith(f"/images/properties/{property_id}/")
        assert media.url_to_path(image["url"]).exists()
    assert [image["isFeatured"] for image in data["images"]] == [True, False]
    assert data["floorPlans"][0]["url"].startswith(
        f"/images/properties/{property_id}/floor-plans/"
    )
    assert list(media.staging_dir.iterdir()) == []

    # relocated files are served from the media mount
    served = client.get(data["images"][0]["url"])
    assert served.status_code == 200
    assert served.content == JPEG_BYTES


def test_relocation_failure_keeps_property_and_is_reconciled_later(
    client, owner, admin, auth_headers, media, db_session
):
    # a plain file where property 1's media directory should go
    blocker = media.properties_dir / "1"
    blocker.write_bytes(b"")

    res = client.post(
        "/api/properties",
        headers=auth_headers(owner),
        data={
            "title": "Hillside House",
            "propertyType": "HOUSE",
            "listings": json.dumps([{"listingType": "SALE", "price": 4_000_000}]),
        },
        files=[("images", ("front.jpg", JPEG_BYTES, "image/jpeg"))],
    )
    assert res.status_code == 201, res.text
    data = res.json()["data"]
    assert data["id"] == 1
    assert media.is_staged(data["images"][0]["url"])
    assert media.failure_count == 1

    db_session.expire_all()
    entry = db_session.scalar(
        select(AuditLog).where(AuditLog.action == "property.media_relocation")
    )
    assert entry is not None
    assert entry.resource_id == 1
    assert entry.status == "failure"
    assert entry.changes["failed"] == 1

    blocker.unlink()
    rec = client.post("/api/admin/media/reconcile", headers=auth_headers(admin))
    assert rec.status_code == 200, rec.text
    assert rec.json()["data"] == {"moved": 1, "skipped": 0, "failed": 0}

    detail = client.get("/api/properties/1").json()["data"]
    assert detail["images"][0]["url"].startswith("/images/properties/1/")


def test_invalid_upload_type_is_rejected_and_cleaned_up(client, owner, auth_headers, media):
    res = client.post(
        "/api/properties",
        headers=auth_headers(owner),
        data={"title": "x", "propertyType": "CONDO"},
        files=[
            ("images", ("ok.jpg", JPEG_BYTES, "image/jpeg")),
            ("images", ("bad.exe", b"MZ", "application/octet-stream")),
        ],
    )
    assert res.status_code == 400
    assert list(media.staging_dir.iterdir()) == []


# ==================== READ ====================


def test_list_defaults_to_active_and_paginates(client, owner, make_property):
    for i in range(25):
        make_property(owner, title=f"Unit {i}")
    make_property(owner, status=PropertyStatus.INACTIVE)

    res = client.get("/api/properties", params={"page": 2, "limit": 10})
    assert res.status_code == 200
    body = res.json()
    assert body["status"] == "success"
    assert len(body["data"]) == 10
    assert body["meta"] == {
        "total": 25,
        "page": 2,
        "limit": 10,
        "totalPages": 3,
        "hasNext": True,
        "hasPrev": True,
    }

    inactive = client.get("/api/properties", params={"status": "INACTIVE"}).json()
    assert inactive["meta"]["total"] == 1


def test_listing_filters_apply_to_a_single_listing(client, owner, make_property):
    make_property(owner, title="Cheap sale", listings=[{"listing_type": ListingType.SALE, "price": 3_000_000}])
    make_property(owner, title="Pricey sale", listings=[{"listing_type": ListingType.SALE, "price": 8_000_000}])
    make_property(
        owner,
        title="Rental",
        listings=[{"listing_type": ListingType.RENT, "rental_price": 20_000}],
    )

    res = client.get("/api/properties", params={"minPrice": 5_000_000})
    assert [p["title"] for p in res.json()["data"]] == ["Pricey sale"]

    res = client.get("/api/properties", params={"listingType": "RENT"})
    assert [p["title"] for p in res.json()["data"]] == ["Rental"]

    res = client.get("/api/properties", params={"listingType": "RENT", "maxPrice": 5_000_000})
    assert res.json()["data"] == []


def test_scalar_filters_and_search(client, owner, make_property):
    make_property(owner, title="Sukhumvit loft", city="Bangkok", bedrooms=1, address="Soi 11, Sukhumvit")
    make_property(owner, title="Beach house", city="Phuket", bedrooms=3, property_type=PropertyType.HOUSE)
    make_property(owner, title="100% sea view", city="Phuket", bedrooms=2)

    assert client.get("/api/properties", params={"city": "phuket"}).json()["meta"]["total"] == 2
    assert client.get("/api/properties", params={"bedrooms": 3}).json()["meta"]["total"] == 1
    assert (
        client.get("/api/properties", params={"propertyType": "HOUSE"}).json()["meta"]["total"]
        == 1
    )

    found = client.get("/api/properties", params={"search": "SUKHUMVIT"}).json()["data"]
    assert [p["title"] for p in found] == ["Sukhumvit loft"]

    # wildcard characters are matched literally
    found = client.get("/api/properties", params={"search": "100%"}).json()["data"]
    assert [p["title"] for p in found] == ["100% sea view"]


def test_sorting_and_unknown_sort_field(client, owner, make_property):
    make_property(owner, title="two", bedrooms=2)
    make_property(owner, title="one", bedrooms=1)
    make_property(owner, title="three", bedrooms=3)

    res = client.get("/api/properties", params={"sortBy": "bedrooms", "sortOrder": "asc"})
    assert [p["title"] for p in res.json()["data"]] == ["one", "two", "three"]

    res = client.get("/api/properties", params={"sortBy": "bedrooms", "sortOrder": "DESC"})
    assert res.status_code == 200
    assert [p["title"] for p in res.json()["data"]] == ["three", "two", "one"]

    res = client.get("/api/properties", params={"sortBy": "notAColumn"})
    assert res.status_code == 200
    assert len(res.json()["data"]) == 3

    res = client.get("/api/properties", params={"sortOrder": "sideways"})
    assert res.status_code == 400


def test_invalid_query_is_rejected(client):
    res = client.get("/api/properties", params={"limit": 500})
    assert res.status_code == 400
    assert res.json()["message"] == "Invalid query parameters"


def test_get_property_counts_views(client, owner, make_property):
    prop = make_property(owner)

    first = client.get(f"/api/properties/{prop.id}").json()["data"]
    second = client.get(f"/api/properties/{prop.id}").json()["data"]

    assert first["viewCount"] == 1
    assert second["viewCount"] == 2


def test_get_missing_property_returns_404_envelope(client):
    res = client.get("/api/properties/12345")
    assert res.status_code == 404
    assert res.json() == {
        "status": "error",
        "statusCode": 404,
        "message": "Property with ID 12345 not found",
    }


def test_property_types_and_price_types(client, owner, make_property):
    make_property(owner, listings=[{"listing_type": ListingType.SALE, "price": 2_000_000}])
    make_property(owner, listings=[{"listing_type": ListingType.SALE, "price": 4_000_000}])

    types = client.get("/api/properties/types").json()["data"]
    assert len(types) == len(PropertyType)
    condo = next(t for t in types if t["value"] == "CONDO")
    assert condo["count"] == 2
    assert condo["nameEn"] == "Condo"

    prices = client.get("/api/properties/price-types").json()["data"]
    condo = next(p for p in prices if p["propertyType"] == "CONDO")
    assert (condo["minPrice"], condo["maxPrice"], condo["avgPrice"]) == (
        2_000_000,
        4_000_000,
        3_000_000,
    )
    land = next(p for p in prices if p["propertyType"] == "LAND")
    assert land["count"] == 0 and land["minPrice"] is None


def test_random_properties_require_api_key(client, owner, make_property, db_session):
    prop = make_property(owner)
    db_session.add(PropertyImage(property_id=prop.id, url="/images/properties/1/a.jpg"))
    db_session.commit()

    assert client.get("/api/properties/random").status_code == 401
    assert (
        client.get("/api/properties/random", headers={"X-API-Key": "wrong"}).status_code
        == 401
    )

    res = client.get(
        "/api/properties/random", params={"count": 3}, headers={"X-API-Key": "test-api-key"}
    )
    assert res.status_code == 200
    data = res.json()["data"]
    assert len(data) == 1
    assert data[0]["featuredImage"]["url"] == "http://testserver/images/properties/1/a.jpg"


def test_my_properties_include_inquiry_counts(
    client, owner, other_user, auth_headers, make_property
):
    mine = make_property(owner, title="mine", status=PropertyStatus.PENDING)
    make_property(other_user, title="theirs")
    client.post(
        "/api/messages",
        json={"propertyId": mine.id, "name": "Buyer", "phone": "0812345678"},
    )

    res = client.get("/api/properties/backoffice/my-properties", headers=auth_headers(owner))
    assert res.status_code == 200
    data = res.json()["data"]
    assert [p["title"] for p in data] == ["mine"]
    assert data[0]["inquiryCount"] == 1


# ==================== UPDATE / DELETE ====================


def test_update_requires_ownership(client, owner, other_user, admin, auth_headers, make_property):
    prop = make_property(owner)

    res = client.put(
        f"/api/properties/{prop.id}", headers=auth_headers(other_user), json={"title": "Hijack"}
    )
    assert res.status_code == 403

    res = client.put(
        f"/api/properties/{prop.id}", headers=auth_headers(owner), json={"title": "Renamed"}
    )
    assert res.status_code == 200
    assert res.json()["data"]["title"] == "Renamed"

    res = client.put(
        f"/api/properties/{prop.id}", headers=auth_headers(admin), json={"status": "SOLD"}
    )
    assert res.status_code == 200
    assert res.json()["data"]["status"] == "SOLD"
    assert res.json()["data"]["title"] == "Renamed"


def test_update_rejects_clearing_required_fields(client, owner, auth_headers, make_property):
    prop = make_property(owner)
    res = client.put(
        f"/api/properties/{prop.id}", headers=auth_headers(owner), json={"title": None}
    )
    assert res.status_code == 400


def test_delete_requires_ownership_and_cascades(
    client, owner, other_user, auth_headers, make_property, db_session
):
    prop = make_property(owner)
    property_id = prop.id

    assert (
        client.delete(f"/api/properties/{property_id}", headers=auth_headers(other_user)).status_code
        == 403
    )
    res = client.delete(f"/api/properties/{property_id}", headers=auth_headers(owner))
    assert res.status_code == 200

    assert client.get(f"/api/properties/{property_id}").status_code == 404
    assert _count(db_session, Listing) == 0


# ==================== IMAGES / FEATURES / TAXONOMY ====================


def test_images_keep_a_single_featured(client, owner, auth_headers, make_property):
    prop = make_property(owner)
    headers = auth_headers(owner)

    res = client.post(
        f"/api/properties/{prop.id}/images",
        headers=headers,
        json={"images": ["https://cdn.example.com/a.jpg", "https://cdn.example.com/b.jpg"]},
    )
    assert res.status_code == 201, res.text
    first, second = res.json()["data"]
    assert first["isFeatured"] is True and second["isFeatured"] is False

    res = client.post(
        f"/api/properties/{prop.id}/images",
        headers=headers,
        json={"images": [{"url": "https://cdn.example.com/c.jpg", "isFeatured": True}]},
    )
    assert res.json()["data"][0]["isFeatured"] is True

    images = client.get(f"/api/properties/{prop.id}").json()["data"]["images"]
    assert [i["url"] for i in images if i["isFeatured"]] == ["https://cdn.example.com/c.jpg"]

    featured_id = next(i["id"] for i in images if i["isFeatured"])
    res = client.delete(f"/api/properties/images/{featured_id}", headers=headers)
    assert res.status_code == 200

    images = client.get(f"/api/properties/{prop.id}").json()["data"]["images"]
    assert len(images) == 2
    assert sum(i["isFeatured"] for i in images) == 1


def test_image_upload_to_existing_property(client, owner, auth_headers, make_property, media):
    prop = make_property(owner)
    res = client.post(
        f"/api/properties/{prop.id}/images",
        headers=auth_headers(owner),
        files=[("images", ("side.png", PNG_BYTES, "image/png"))],
    )
    assert res.status_code == 201, res.text
    url = res.json()["data"][0]["url"]
    assert url.startswith(f"/images/properties/{prop.id}/")
    assert media.url_to_path(url).exists()


def test_images_cannot_reference_another_property_files(
    client, owner, other_user, auth_headers, make_property, media
):
    victim = make_property(other_user)
    victim_dir = media.property_dir(victim.id)
    victim_dir.mkdir(parents=True)
    (victim_dir / "secret.jpg").write_bytes(JPEG_BYTES)
    prop = make_property(owner)

    for url in (
        f"/images/properties/{victim.id}/secret.jpg",
        media.staging_url("anything.jpg"),
    ):
        res = client.post(
            f"/api/properties/{prop.id}/images",
            headers=auth_headers(owner),
            json={"images": [url]},
        )
        assert res.status_code == 400, url


def test_deleting_an_image_only_removes_files_of_its_property(
    client, owner, other_user, auth_headers, make_property, media, db_session
):
    victim = make_property(other_user)
    victim_dir = media.property_dir(victim.id)
    victim_dir.mkdir(parents=True)
    (victim_dir / "secret.jpg").write_bytes(JPEG_BYTES)

    # a row written before references were checked
    prop = make_property(
        owner, images=[PropertyImage(url=f"/images/properties/{victim.id}/secret.jpg")]
    )
    image_id = prop.images[0].id

    res = client.delete(f"/api/properties/images/{image_id}", headers=auth_headers(owner))
    assert res.status_code == 200
    assert (victim_dir / "secret.jpg").exists()
    assert _count(db_session, PropertyImage) == 0

    own = client.post(
        f"/api/properties/{prop.id}/images",
        headers=auth_headers(owner),
        files=[("images", ("side.png", PNG_BYTES, "image/png"))],
    ).json()["data"][0]
    client.delete(f"/api/properties/images/{own['id']}", headers=auth_headers(owner))
    assert not media.url_to_path(own["url"]).exists()


def test_images_require_ownership(client, owner, other_user, auth_headers, make_property):
    prop = make_property(owner)
    res = client.post(
        f"/api/properties/{prop.id}/images",
        headers=auth_headers(other_user),
        json={"images": ["https://cdn.example.com/a.jpg"]},
    )
    assert res.status_code == 403


def test_features_add_and_delete(client, owner, auth_headers, make_property):
    prop = make_property(owner)
    headers = auth_headers(owner)

    res = client.post(f"/api/properties/{prop.id}/features", headers=headers, json={"type": "wifi"})
    assert res.status_code == 201
    feature = res.json()["data"]
    assert feature["type"] == "WIFI"

    # same type again updates the existing row
    res = client.post(
        f"/api/properties/{prop.id}/features",
        headers=headers,
        json={"type": "WIFI", "active": False},
    )
    assert res.json()["data"]["id"] == feature["id"]
    assert res.json()["data"]["active"] is False

    res = client.post(
        f"/api/properties/{prop.id}/features", headers=headers, json={"type": "teleporter"}
    )
    assert res.status_code == 400

    res = client.delete(f"/api/properties/features/{feature['id']}", headers=headers)
    assert res.status_code == 200
    assert client.get(f"/api/properties/{prop.id}").json()["data"]["features"] == []


def test_taxonomy_replace_only_touches_given_kinds(client, owner, auth_headers):
    headers = auth_headers(owner)
    created = _create(
        client, headers, features={"wifi": True}, views={"cityView": True}
    ).json()["data"]

    res = client.put(
        f"/api/properties/{created['id']}/taxonomy",
        headers=headers,
        json={"views": {"seaView": True, "mountainView": "true"}, "labels": ["hot"]},
    )
    assert res.status_code == 200, res.text
    data = res.json()["data"]
    assert sorted(v["type"] for v in data["views"]) == ["MOUNTAIN_VIEW", "SEA_VIEW"]
    assert [label["type"] for label in data["labels"]] == ["HOT"]
    assert [f["type"] for f in data["features"]] == ["WIFI"]

    res = client.put(f"/api/properties/{created['id']}/taxonomy", headers=headers, json={})
    assert res.status_code == 400


def test_inactive_amenities_are_hidden_from_detail(client, owner, make_property, db_session):
    from ddproperty.models import Amenity

    prop = make_property(owner)
    db_session.add_all(
        [
            Amenity(property_id=prop.id, type="SAUNA", active=True),
            Amenity(property_id=prop.id, type="LIBRARY", active=False),
        ]
    )
    db_session.commit()

    data = client.get(f"/api/properties/{prop.id}").json()["data"]
    assert [a["type"] for a in data["amenities"]] == ["SAUNA"]


def test_zone_must_exist_on_update(client, owner, auth_headers, make_property, db_session):
    zone = Zone(name="Sathorn", city="Bangkok")
    db_session.add(zone)
    db_session.commit()
    prop = make_property(owner)

    ok = client.put(
        f"/api/properties/{prop.id}", headers=auth_headers(owner), json={"zoneId": zone.id}
    )
    assert ok.status_code == 200
    assert ok.json()["data"]["zone"]["name"] == "Sathorn"

    bad = client.put(
        f"/api/properties/{prop.id}", headers=auth_headers(owner), json={"zoneId": 999}
    )
    assert bad.status_code == 400
