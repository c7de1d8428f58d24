from ddproperty.Middleware.audit_middleware import _log_audit_sync
from ddproperty.models import AuditLog


def test_audit_logs_are_admin_only(client, owner, auth_headers):
    assert client.get("/api/admin/audit-logs", headers=auth_headers(owner)).status_code == 403


def test_property_writes_are_audited(client, owner, admin, auth_headers):
    res = client.post(
        "/api/properties",
        headers=auth_headers(owner),
        json={
            "title": "Audited",
            "propertyType": "LAND",
            "listings": [{"listingType": "SALE", "price": 900000}],
        },
    )
    assert res.status_code == 201
    property_id = res.json()["data"]["id"]

    logs = client.get(
        "/api/admin/audit-logs",
        headers=auth_headers(admin),
        params={"action": "property.create"},
    ).json()["data"]

    assert len(logs) == 1
    assert logs[0]["resourceId"] == property_id
    assert logs[0]["userId"] == owner.id
    assert logs[0]["userRole"] == "AGENT"
    assert logs[0]["requestMethod"] == "POST"


def test_audit_log_status_filter(client, admin, auth_headers):
    client.post("/api/auth/login", data={"username": "ghost@example.com", "password": "nope"})

    logs = client.get(
        "/api/admin/audit-logs", headers=auth_headers(admin), params={"status": "failure"}
    ).json()["data"]

    assert [log["action"] for log in logs] == ["auth.login"]


def test_reconcile_is_admin_only(client, owner, auth_headers):
    res = client.post("/api/admin/media/reconcile", headers=auth_headers(owner))
    assert res.status_code == 403


def test_request_audit_drops_unknown_user(database, db_session):
    _log_audit_sync(
        database.session_factory,
        999,
        "USER",
        "success",
        200,
        None,
        "127.0.0.1",
        "pytest",
        "GET",
        "/api/properties",
        12,
    )

    entry = db_session.query(AuditLog).one()
    assert entry.user_id is None
    assert entry.user_role == "USER"
    assert entry.action == "http.request"
    assert entry.request_path == "/api/properties"
