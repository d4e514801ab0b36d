def test_add_list_check_and_remove(client, member, other, make_offre):
    offre = make_offre(other, titre="Volontaire santé", typeOffre="VOLONTARIAT", hebergement=True)

    response = client.post(f"/api/favorites/{offre['id']}", headers=member.headers)
    assert response.status_code == 201
    favorite = response.json()
    assert favorite["offreId"] == offre["id"]
    assert favorite["userId"] == member.id
    assert favorite["offre"]["titre"] == "Volontaire santé"

    check = client.get(f"/api/favorites/{offre['id']}/check", headers=member.headers).json()
    assert check == {"isFavorite": True}
    check = client.get(f"/api/favorites/{offre['id']}/check", headers=other.headers).json()
    assert check == {"isFavorite": False}

    favorites = client.get("/api/favorites", headers=member.headers).json()
    assert [f["offre"]["id"] for f in favorites] == [offre["id"]]
    assert favorites[0]["offre"]["hebergement"] is True

    response = client.delete(f"/api/favorites/{offre['id']}", headers=member.headers)
    assert response.status_code == 200
    assert client.get("/api/favorites", headers=member.headers).json() == []


def test_add_twice_is_a_conflict(client, member, make_offre):
    offre = make_offre(member)
    assert client.post(f"/api/favorites/{offre['id']}", headers=member.headers).status_code == 201

    response = client.post(f"/api/favorites/{offre['id']}", headers=member.headers)
    assert response.status_code == 409
    assert response.json()["message"] == "Cette offre est déjà dans vos favoris"


def test_missing_offre_or_favorite(client, member):
    assert client.post("/api/favorites/404", headers=member.headers).status_code == 404
    response = client.delete("/api/favorites/404", headers=member.headers)
    assert response.status_code == 404
    assert response.json()["message"] == "Favori non trouvé"


def test_favorites_follow_offre_deletion(client, member, make_offre):
    offre = make_offre(member)
    client.post(f"/api/favorites/{offre['id']}", headers=member.headers)
    client.delete(f"/api/offres/{offre['id']}", headers=member.headers)
    assert client.get("/api/favorites", headers=member.headers).json() == []
