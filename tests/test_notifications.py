from conftest import query
from noken.notifications.models import NotificationType
from noken.notifications.services import NotificationService


def _notify(user_id, count=1):
    async def create(session):
        service = NotificationService(session)
        for i in range(count):
            service.create(user_id, NotificationType.NEW_OFFRE, f"Info {i}", "Maintenance prévue")
        await session.commit()

    query(create)


def test_list_and_unread_count(client, member):
    _notify(member.id, count=3)

    notifications = client.get("/api/notifications", headers=member.headers).json()
    assert [n["title"] for n in notifications] == ["Info 2", "Info 1", "Info 0"]
    assert client.get("/api/notifications/unread-count", headers=member.headers).json() == {"count": 3}

    limited = client.get("/api/notifications", params={"limit": 2}, headers=member.headers).json()
    assert len(limited) == 2


def test_mark_read_and_read_all(client, member):
    _notify(member.id, count=3)
    first = client.get("/api/notifications", headers=member.headers).json()[0]

    response = client.post(f"/api/notifications/{first['id']}/read", headers=member.headers)
    assert response.json()["isRead"] is True
    assert client.get("/api/notifications/unread-count", headers=member.headers).json() == {"count": 2}

    response = client.post("/api/notifications/read-all", headers=member.headers)
    assert response.json()["count"] == 2
    assert client.get("/api/notifications/unread-count", headers=member.headers).json() == {"count": 0}


def test_cannot_touch_someone_else_notification(client, member, other):
    _notify(member.id)
    notification = client.get("/api/notifications", headers=member.headers).json()[0]

    assert client.post(f"/api/notifications/{notification['id']}/read", headers=other.headers).status_code == 404
    assert client.delete(f"/api/notifications/{notification['id']}", headers=other.headers).status_code == 404

    assert client.delete(f"/api/notifications/{notification['id']}", headers=member.headers).status_code == 200
    assert client.get("/api/notifications", headers=member.headers).json() == []
