from ddproperty.models import Message, MessageStatus


def _inquiry(client, property_id, **overrides):
    payload = {
        "propertyId": property_id,
        "name": "Somchai",
        "email": "somchai@example.com",
        "phone": "0812345678",
        "message": "Is this still available?",
    }
    payload.update(overrides)
    return client.post("/api/messages", json=payload)


def test_public_inquiry_is_created_as_new(client, owner, make_property):
    prop = make_property(owner)

    res = _inquiry(client, prop.id)

    assert res.status_code == 201, res.text
    data = res.json()["data"]
    assert data["status"] == "NEW"
    assert data["propertyId"] == prop.id
    assert data["property"]["propertyCode"] == prop.property_code


def test_inquiry_email_is_optional(client, owner, make_property):
    prop = make_property(owner)
    res = _inquiry(client, prop.id, email="")
    assert res.status_code == 201
    assert res.json()["data"]["email"] is None


def test_inquiry_validation(client, owner, make_property):
    prop = make_property(owner)

    res = _inquiry(client, prop.id, phone="12-34")
    assert res.status_code == 400
    body = res.json()
    assert body["message"] == "Validation error"
    assert any(err["field"].endswith("phone") for err in body["errors"])

    assert _inquiry(client, prop.id, email="not-an-email").status_code == 400


def test_inquiry_for_missing_property_is_404(client):
    assert _inquiry(client, 999).status_code == 404


def test_owner_sees_only_their_inquiries(
    client, owner, other_user, auth_headers, make_property
):
    mine = make_property(owner)
    theirs = make_property(other_user)
    _inquiry(client, mine.id)
    _inquiry(client, mine.id, name="Second")
    _inquiry(client, theirs.id)

    res = client.get("/api/messages/user", headers=auth_headers(owner))
    assert res.status_code == 200
    body = res.json()
    assert body["meta"]["total"] == 2
    assert [m["name"] for m in body["data"]] == ["Second", "Somchai"]

    res = client.get("/api/messages/user", headers=auth_headers(other_user))
    assert res.json()["meta"]["total"] == 1


def test_all_messages_is_admin_only(client, owner, admin, auth_headers, make_property):
    prop = make_property(owner)
    _inquiry(client, prop.id)

    assert client.get("/api/messages", headers=auth_headers(owner)).status_code == 403

    res = client.get("/api/messages", headers=auth_headers(admin))
    assert res.status_code == 200
    assert res.json()["meta"]["total"] == 1


def test_property_messages_require_ownership(
    client, owner, other_user, auth_headers, make_property
):
    prop = make_property(owner)
    _inquiry(client, prop.id)

    res = client.get(f"/api/messages/property/{prop.id}", headers=auth_headers(other_user))
    assert res.status_code == 403

    res = client.get(f"/api/messages/property/{prop.id}", headers=auth_headers(owner))
    assert res.status_code == 200
    assert len(res.json()["data"]) == 1


def test_status_update_and_filter(
    client, owner, other_user, auth_headers, make_property, db_session
):
    prop = make_property(owner)
    first = _inquiry(client, prop.id).json()["data"]
    _inquiry(client, prop.id, name="Second")

    res = client.patch(
        f"/api/messages/{first['id']}/status",
        headers=auth_headers(other_user),
        json={"status": "CONTACTED"},
    )
    assert res.status_code == 403

    res = client.patch(
        f"/api/messages/{first['id']}/status",
        headers=auth_headers(owner),
        json={"status": "CONTACTED"},
    )
    assert res.status_code == 200
    assert res.json()["data"]["status"] == "CONTACTED"

    db_session.expire_all()
    assert db_session.get(Message, first["id"]).status == MessageStatus.CONTACTED

    res = client.get(
        "/api/messages/user", headers=auth_headers(owner), params={"status": "NEW"}
    )
    assert [m["name"] for m in res.json()["data"]] == ["Second"]

    res = client.patch(
        f"/api/messages/{first['id']}/status",
        headers=auth_headers(owner),
        json={"status": "ARCHIVED"},
    )
    assert res.status_code == 400


def test_message_pagination_meta(client, owner, auth_headers, make_property):
    prop = make_property(owner)
    for i in range(3):
        _inquiry(client, prop.id, name=f"Buyer {i}")

    res = client.get(
        "/api/messages/user", headers=auth_headers(owner), params={"page": 2, "limit": 2}
    )
    assert res.json()["meta"] == {
        "total": 3,
        "page": 2,
        "limit": 2,
        "totalPages": 2,
        "hasNext": False,
        "hasPrev": True,
    }
    assert len(res.json()["data"]) == 1

    res = client.get("/api/messages/user", headers=auth_headers(owner), params={"page": 0})
    assert res.status_code == 400
