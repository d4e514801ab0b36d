import pytest

from conftest import FakeLLM, completion, run
from noken.commentaires.moderation import MODERATED_CONTENT, moderate_content


def test_comment_without_llm_is_published_and_notifies_author(client, member, other, make_offre):
    offre = make_offre(member, titre="Stage comptable")

    response = client.post(
        "/api/commentaires",
        json={"offreId": offre["id"], "contenu": "Est-ce ouvert aux débutants ?"},
        headers=other.headers,
    )
    assert response.status_code == 201
    commentaire = response.json()
    assert commentaire["contenu"] == "Est-ce ouvert aux débutants ?"
    assert commentaire["auteur"]["firstName"] == "Moussa"

    notifications = client.get("/api/notifications", headers=member.headers).json()
    assert notifications[0]["type"] == "NEW_COMMENTAIRE"
    assert "Stage comptable" in notifications[0]["message"]

    detail = client.get(f"/api/offres/{offre['id']}", headers=member.headers).json()
    assert detail["commentairesCount"] == 1
    assert detail["commentaires"][0]["contenu"] == "Est-ce ouvert aux débutants ?"


def test_own_comment_does_not_notify(client, member, make_offre):
    offre = make_offre(member)
    client.post("/api/commentaires", json={"offreId": offre["id"], "contenu": "Précision"}, headers=member.headers)
    assert client.get("/api/notifications/unread-count", headers=member.headers).json() == {"count": 0}


def test_inappropriate_comment_is_replaced(client, member, other, make_offre, use_llm):
    fake = use_llm(FakeLLM(completion('{"appropriate": false}')))
    offre = make_offre(member)

    response = client.post(
        "/api/commentaires",
        json={"offreId": offre["id"], "contenu": "propos injurieux"},
        headers=other.headers,
    )
    assert response.status_code == 201
    assert response.json()["contenu"] == MODERATED_CONTENT
    assert fake.calls[0]["messages"][1]["content"] == "propos injurieux"
    assert fake.calls[0]["temperature"] == 0


def test_comment_on_missing_offre(client, member):
    response = client.post("/api/commentaires", json={"offreId": 404, "contenu": "?"}, headers=member.headers)
    assert response.status_code == 404


def test_update_and_delete_permissions(client, member, other, admin, make_offre):
    offre = make_offre(member)
    commentaire = client.post(
        "/api/commentaires", json={"offreId": offre["id"], "contenu": "Premier"}, headers=other.headers
    ).json()

    response = client.put(f"/api/commentaires/{commentaire['id']}", json={"contenu": "Volé"}, headers=member.headers)
    assert response.status_code == 403

    response = client.put(f"/api/commentaires/{commentaire['id']}", json={"contenu": "Corrigé"}, headers=other.headers)
    assert response.json()["contenu"] == "Corrigé"

    assert client.delete(f"/api/commentaires/{commentaire['id']}", headers=member.headers).status_code == 403
    assert client.delete(f"/api/commentaires/{commentaire['id']}", headers=admin.headers).status_code == 200
    assert client.get(f"/api/commentaires/{commentaire['id']}", headers=other.headers).status_code == 404


def test_list_by_offre_newest_first(client, member, make_offre):
    offre = make_offre(member)
    for contenu in ("un", "deux", "trois"):
        client.post("/api/commentaires", json={"offreId": offre["id"], "contenu": contenu}, headers=member.headers)

    commentaires = client.get(f"/api/commentaires/offre/{offre['id']}", headers=member.headers).json()
    assert [c["contenu"] for c in commentaires] == ["trois", "deux", "un"]

    count = client.get(f"/api/commentaires/offre/{offre['id']}/count", headers=member.headers).json()
    assert count == {"count": 3}


@pytest.mark.parametrize(
    "reply",
    [
        completion("pas du json"),
        completion(""),
        RuntimeError("timeout"),
        completion('{"appropriate": true}'),
    ],
)
def test_moderation_fails_open(reply):
    appropriate, contenu = run(moderate_content(FakeLLM(reply), "Bonjour"))
    assert appropriate is True
    assert contenu == "Bonjour"


def test_moderation_without_client():
    assert run(moderate_content(None, "Bonjour")) == (True, "Bonjour")
