from ddproperty.config import settings
from ddproperty.models import Icon


def _icons(db_session):
    icons = [
        Icon(prefix="facility", name="Gym", key="GYM", icon_path="icons/facility/gym.svg", sub_name="Fitness"),
        Icon(prefix="facility", name="Pool", key="SWIMMING_POOL", icon_path="/icons/facility/pool.svg", sub_name="Fitness"),
        Icon(prefix="facility", name="Lobby", key="LOBBY", icon_path="icons/facility/lobby.svg", sub_name="Common"),
        Icon(prefix="view", name="Sea view", key="SEA_VIEW", icon_path="https://cdn.example.com/sea.svg"),
        Icon(prefix="view", name="Old", key="OLD", icon_path="icons/old.svg", active=False),
    ]
    db_session.add_all(icons)
    db_session.commit()
    return icons


def test_list_icons_skips_inactive(client, db_session):
    _icons(db_session)

    data = client.get("/api/icons").json()["data"]

    assert len(data) == 4
    gym = next(i for i in data if i["key"] == "GYM")
    assert gym["iconUrl"] == f"{settings.ICON_BASE_URL}/icons/facility/gym.svg"
    sea = next(i for i in data if i["key"] == "SEA_VIEW")
    assert sea["iconUrl"] == "https://cdn.example.com/sea.svg"


def test_icons_by_prefix_are_grouped(client, db_session):
    _icons(db_session)

    groups = client.get("/api/icons/prefix/facility").json()["data"]

    assert [(g["subName"], len(g["icons"])) for g in groups] == [("Common", 1), ("Fitness", 2)]
    pool = next(i for i in groups[1]["icons"] if i["key"] == "SWIMMING_POOL")
    assert pool["iconUrl"] == f"{settings.ICON_BASE_URL}/icons/facility/pool.svg"


def test_get_icon(client, db_session):
    icon = _icons(db_session)[0]
    assert client.get(f"/api/icons/{icon.id}").json()["data"]["name"] == "Gym"
    assert client.get("/api/icons/999").status_code == 404
