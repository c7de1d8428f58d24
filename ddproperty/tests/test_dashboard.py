from ddproperty.models import Message, MessageStatus, PropertyStatus, PropertyType


def _seed(db_session, make_property, owner, other_user):
    condo = make_property(owner, view_count=10)
    house = make_property(
        owner, property_type=PropertyType.HOUSE, status=PropertyStatus.SOLD, view_count=5
    )
    foreign = make_property(other_user, view_count=100)
    db_session.add_all(
        [
            Message(property_id=condo.id, name="A", phone="0811111111"),
            Message(property_id=condo.id, name="B", phone="0822222222", status=MessageStatus.WON),
            Message(property_id=house.id, name="C", phone="0833333333"),
            Message(property_id=foreign.id, name="D", phone="0844444444"),
        ]
    )
    db_session.commit()


def test_stats_are_scoped_to_the_owner(
    client, owner, other_user, auth_headers, make_property, db_session
):
    _seed(db_session, make_property, owner, other_user)

    res = client.get("/api/dashboard/stats", headers=auth_headers(owner))
    assert res.status_code == 200, res.text
    stats = res.json()["data"]

    assert stats["totalProperties"] == 2
    assert stats["propertiesByType"] == {"CONDO": 1, "HOUSE": 1}
    assert stats["propertiesByStatus"] == {"ACTIVE": 1, "SOLD": 1}
    assert stats["totalViews"] == 15
    assert stats["totalMessages"] == 3
    assert stats["newMessages"] == 2
    assert stats["messagesByStatus"] == {"NEW": 2, "WON": 1}
    assert stats["messagesByPropertyType"] == {"CONDO": 2, "HOUSE": 1}
    assert sorted(m["name"] for m in stats["recentMessages"]) == ["A", "B", "C"]


def test_admin_sees_platform_totals(
    client, owner, other_user, admin, auth_headers, make_property, db_session
):
    _seed(db_session, make_property, owner, other_user)

    stats = client.get("/api/dashboard/stats", headers=auth_headers(admin)).json()["data"]

    assert stats["totalProperties"] == 3
    assert stats["totalViews"] == 115
    assert stats["totalMessages"] == 4


def test_empty_dashboard(client, owner, auth_headers):
    stats = client.get("/api/dashboard/stats", headers=auth_headers(owner)).json()["data"]
    assert stats["totalProperties"] == 0
    assert stats["totalViews"] == 0
    assert stats["recentMessages"] == []


def test_dashboard_requires_login(client):
    assert client.get("/api/dashboard/stats").status_code == 401
