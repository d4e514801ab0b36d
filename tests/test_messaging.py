def _start(client, user, other_id):
    return client.post(f"/messaging/conversations/start/{other_id}", headers=user.headers)


def _send(client, user, conversation_id, content):
    return client.post(
        f"/messaging/conversations/{conversation_id}/messages", json={"content": content}, headers=user.headers
    )


def test_start_conversation_is_idempotent_in_both_directions(client, member, admin):
    first = _start(client, member, admin.id)
    assert first.status_code == 200
    assert first.json()["otherUser"]["id"] == admin.id
    assert first.json()["otherUser"]["role"] == "ADMIN"

    again = _start(client, admin, member.id)
    assert again.json()["id"] == first.json()["id"]
    assert again.json()["otherUser"]["id"] == member.id


def test_start_conversation_errors(client, member):
    response = _start(client, member, member.id)
    assert response.status_code == 400
    response = _start(client, member, 999)
    assert response.status_code == 404
    assert response.json()["message"] == "Utilisateur non trouvé"


def test_send_read_and_unread_counts(client, member, admin):
    conversation_id = _start(client, member, admin.id).json()["id"]

    for content in ("Bonjour", "J'ai une question", "Sur mon CV"):
        response = _send(client, member, conversation_id, content)
        assert response.status_code == 201
    assert response.json()["sender"]["id"] == member.id
    assert response.json()["isRead"] is False

    assert client.get("/messaging/unread-count", headers=admin.headers).json() == {"unreadCount": 3}
    assert client.get("/messaging/unread-count", headers=member.headers).json() == {"unreadCount": 0}

    conversations = client.get("/messaging/conversations", headers=admin.headers).json()
    assert conversations[0]["unreadCount"] == 3
    assert conversations[0]["lastMessage"]["content"] == "Sur mon CV"

    notifications = client.get("/api/notifications", headers=admin.headers).json()
    assert [n["type"] for n in notifications].count("NEW_MESSAGE") == 3

    messages = client.get(f"/messaging/conversations/{conversation_id}/messages", headers=admin.headers).json()
    assert [m["content"] for m in messages] == ["Bonjour", "J'ai une question", "Sur mon CV"]
    assert client.get("/messaging/unread-count", headers=admin.headers).json() == {"unreadCount": 0}

    page = client.get(
        f"/messaging/conversations/{conversation_id}/messages",
        params={"page": 1, "limit": 2},
        headers=member.headers,
    ).json()
    assert [m["content"] for m in page] == ["J'ai une question", "Sur mon CV"]


def test_outsider_cannot_access_conversation(client, member, other, admin):
    conversation_id = _start(client, member, admin.id).json()["id"]

    response = client.get(f"/messaging/conversations/{conversation_id}/messages", headers=other.headers)
    assert response.status_code == 403
    assert _send(client, other, conversation_id, "Intrus").status_code == 403
    assert client.delete(f"/messaging/conversations/{conversation_id}", headers=other.headers).status_code == 403
    assert client.get("/messaging/conversations/999/messages", headers=member.headers).status_code == 404


def test_edit_and_delete_own_messages_only(client, member, admin):
    conversation_id = _start(client, member, admin.id).json()["id"]
    message = _send(client, member, conversation_id, "Bonjuor").json()

    response = client.post(f"/messaging/messages/{message['id']}/update", json={"content": "Intrus"}, headers=admin.headers)
    assert response.status_code == 403
    assert response.json()["message"] == "Vous ne pouvez modifier que vos propres messages"

    response = client.post(f"/messaging/messages/{message['id']}/update", json={"content": "Bonjour"}, headers=member.headers)
    assert response.json()["content"] == "Bonjour"

    response = client.delete(f"/messaging/messages/{message['id']}", headers=admin.headers)
    assert response.json()["message"] == "Vous ne pouvez supprimer que vos propres messages"
    assert client.delete(f"/messaging/messages/{message['id']}", headers=member.headers).status_code == 200


def test_delete_conversation_removes_messages(client, member, admin):
    conversation_id = _start(client, member, admin.id).json()["id"]
    _send(client, member, conversation_id, "Bonjour")

    assert client.delete(f"/messaging/conversations/{conversation_id}", headers=member.headers).status_code == 200
    assert client.get("/messaging/conversations", headers=admin.headers).json() == []
    assert client.get("/messaging/unread-count", headers=admin.headers).json() == {"unreadCount": 0}


def test_contacts(client, member, other, admin):
    contacts = client.get("/messaging/contacts", headers=member.headers).json()
    assert [c["id"] for c in contacts] == [admin.id]

    contacts = client.get("/messaging/contacts", headers=admin.headers).json()
    assert sorted(c["id"] for c in contacts) == sorted([member.id, other.id])
