def _send(client, user, sujet="Problème de connexion", contenu="Je n'arrive pas à publier mon offre"):
    return client.post("/api/messages", json={"sujet": sujet, "contenu": contenu}, headers=user.headers)


def test_member_sends_and_admin_replies(client, member, admin):
    response = _send(client, member)
    assert response.status_code == 201
    message = response.json()
    assert message["estLu"] is False
    assert message["expediteur"]["id"] == member.id

    assert client.get("/api/messages/unread-count", headers=admin.headers).json() == {"count": 1}

    response = client.put(f"/api/messages/{message['id']}/reply", json={"contenu": "C'est corrigé"}, headers=admin.headers)
    assert response.status_code == 200
    replied = response.json()
    assert replied["estLu"] is True
    assert replied["reponses"][0]["contenu"] == "C'est corrigé"
    assert client.get("/api/messages/unread-count", headers=admin.headers).json() == {"count": 0}

    mine = client.get(f"/api/messages/{message['id']}", headers=member.headers).json()
    assert mine["reponses"][0]["auteur"]["id"] == admin.id


def test_inbox_visibility(client, member, other, admin):
    mine = _send(client, member).json()
    _send(client, other, sujet="Autre")

    assert [m["id"] for m in client.get("/api/messages", headers=member.headers).json()] == [mine["id"]]
    assert len(client.get("/api/messages", headers=admin.headers).json()) == 2

    response = client.get(f"/api/messages/{mine['id']}", headers=other.headers)
    assert response.status_code == 403
    assert response.json()["message"] == "Accès non autorisé"


def test_admin_only_actions(client, member, admin):
    message = _send(client, member).json()

    assert client.get("/api/messages/unread-count", headers=member.headers).status_code == 403
    assert client.put(f"/api/messages/{message['id']}/mark-read", headers=member.headers).status_code == 403
    assert client.delete(f"/api/messages/{message['id']}", headers=member.headers).status_code == 403

    response = client.put(f"/api/messages/{message['id']}/mark-read", headers=admin.headers)
    assert response.json()["estLu"] is True

    assert client.delete(f"/api/messages/{message['id']}", headers=admin.headers).status_code == 200
    assert client.get(f"/api/messages/{message['id']}", headers=admin.headers).status_code == 404


def test_subject_length_is_validated(client, member):
    assert _send(client, member, sujet="x" * 201).status_code == 400
