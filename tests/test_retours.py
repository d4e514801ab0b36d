def _post_retour(client, user, offre_id, contenu="J'ai postulé la semaine dernière"):
    return client.post("/api/retours", json={"offreId": offre_id, "contenu": contenu}, headers=user.headers)


def test_create_retour_notifies_admins(client, member, admin, make_offre):
    offre = make_offre(admin, titre="Bourse Erasmus", typeOffre="BOURSE")

    response = _post_retour(client, member, offre["id"])
    assert response.status_code == 201
    retour = response.json()
    assert retour["statut"] == "En attente"
    assert retour["offre"]["titre"] == "Bourse Erasmus"
    assert retour["offre"]["typeOffre"] == "BOURSE"
    assert retour["reponses"] == []

    notifications = client.get("/api/notifications", headers=admin.headers).json()
    assert notifications[0]["type"] == "NEW_RETOUR"
    assert "Awa Diatta" in notifications[0]["message"]


def test_admin_reply_changes_status(client, member, admin, make_offre):
    offre = make_offre(admin)
    retour = _post_retour(client, member, offre["id"]).json()

    response = client.put(f"/api/retours/{retour['id']}/reply", json={"contenu": "Merci !"}, headers=member.headers)
    assert response.status_code == 403

    response = client.put(f"/api/retours/{retour['id']}/reply", json={"contenu": "Merci !"}, headers=admin.headers)
    assert response.status_code == 200
    body = response.json()
    assert body["statut"] == "Répondu"
    assert body["reponses"][0]["contenu"] == "Merci !"
    assert body["reponses"][0]["auteur"]["id"] == admin.id


def test_visibility_rules(client, member, other, admin, make_offre):
    offre = make_offre(admin)
    mine = _post_retour(client, member, offre["id"]).json()
    _post_retour(client, other, offre["id"])

    by_offre = client.get(f"/api/retours/offre/{offre['id']}", headers=member.headers).json()
    assert [r["id"] for r in by_offre] == [mine["id"]]
    assert len(client.get(f"/api/retours/offre/{offre['id']}", headers=admin.headers).json()) == 2

    assert client.get(f"/api/retours/{mine['id']}", headers=other.headers).status_code == 403
    assert client.get(f"/api/retours/{mine['id']}", headers=admin.headers).status_code == 200

    assert client.get("/api/retours", headers=member.headers).status_code == 403
    assert len(client.get("/api/retours", headers=admin.headers).json()) == 2

    mes_retours = client.get("/api/retours/mes-retours", headers=other.headers).json()
    assert len(mes_retours) == 1 and mes_retours[0]["auteurId"] == other.id


def test_update_and_delete(client, member, other, admin, make_offre):
    offre = make_offre(admin)
    retour = _post_retour(client, member, offre["id"]).json()

    response = client.put(f"/api/retours/{retour['id']}", json={"contenu": "Mis à jour"}, headers=other.headers)
    assert response.status_code == 403

    response = client.put(f"/api/retours/{retour['id']}", json={"contenu": "Mis à jour"}, headers=member.headers)
    assert response.json()["contenu"] == "Mis à jour"

    assert client.delete(f"/api/retours/{retour['id']}", headers=other.headers).status_code == 403
    assert client.delete(f"/api/retours/{retour['id']}", headers=member.headers).status_code == 200
    response = client.get(f"/api/retours/{retour['id']}", headers=admin.headers)
    assert response.status_code == 404
    assert response.json()["message"] == "Retour non trouvé"


def test_retour_on_missing_offre(client, member):
    assert _post_retour(client, member, 404).status_code == 404


def test_retour_counts_on_offre(client, member, admin, make_offre):
    offre = make_offre(admin)
    _post_retour(client, member, offre["id"])
    detail = client.get(f"/api/offres/{offre['id']}", headers=member.headers).json()
    assert detail["retoursCount"] == 1
