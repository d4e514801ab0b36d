from pathlib import Path

from noken.config import settings

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def test_list_and_get_users(client, member, other):
    users = client.get("/api/users", headers=member.headers).json()
    assert sorted(u["id"] for u in users) == sorted([member.id, other.id])

    assert client.get(f"/api/users/{other.id}", headers=member.headers).json()["firstName"] == "Moussa"
    assert client.get("/api/users/999", headers=member.headers).status_code == 404
    assert client.get("/api/users/me", headers=member.headers).json()["id"] == member.id


def test_update_own_profile_only(client, member, other):
    payload = {"commune": "Bignona", "sexe": "FEMME", "dateNaissance": "1998-04-12", "handicap": False}
    response = client.put(f"/api/users/{member.id}", json=payload, headers=member.headers)
    assert response.status_code == 200
    body = response.json()
    assert body["commune"] == "Bignona"
    assert body["sexe"] == "FEMME"
    assert body["dateNaissance"] == "1998-04-12"
    # Champs absents conservés
    assert body["firstName"] == "Awa"

    response = client.put(f"/api/users/{member.id}", json={"commune": "Dakar"}, headers=other.headers)
    assert response.status_code == 403
    assert response.json()["message"] == "Vous ne pouvez modifier que votre propre profil"


def test_change_statut_professionnel(client, member, other):
    path = f"/api/users/{member.id}/change-statut-professionnel"
    response = client.put(path, json={"statutProfessionnel": "EN_RECHERCHE"}, headers=member.headers)
    assert response.json()["statutProfessionnel"] == "EN_RECHERCHE"

    assert client.put(path, json={"statutProfessionnel": "EN_POSTE"}, headers=other.headers).status_code == 403
    assert client.put(path, json={"statutProfessionnel": "RETRAITE"}, headers=member.headers).status_code == 400


def test_admin_role_and_activation_routes(client, member, admin):
    response = client.put(f"/api/users/{member.id}/change-role", json={"role": "ADMIN"}, headers=member.headers)
    assert response.status_code == 403

    response = client.put(f"/api/users/{member.id}/change-role", json={"role": "PARTENAIRE"}, headers=admin.headers)
    assert response.json()["role"] == "PARTENAIRE"

    response = client.put(f"/api/users/{member.id}/toggle-active", headers=admin.headers)
    assert response.json()["isActive"] is False
    response = client.put(f"/api/users/{member.id}/toggle-active", headers=admin.headers)
    assert response.json()["isActive"] is True

    assert client.delete(f"/api/users/{member.id}", headers=member.headers).status_code == 403
    assert client.delete(f"/api/users/{member.id}", headers=admin.headers).status_code == 200


def test_profile_picture_upload_replaces_old_file(client, member, other):
    path = f"/api/users/{member.id}/upload-profile-picture"
    response = client.post(path, files={"file": ("moi.png", PNG, "image/png")}, headers=member.headers)
    assert response.status_code == 200
    first_url = response.json()["pictureUrl"]
    assert "/uploads/profiles/profile-" in first_url
    first_path = Path(settings.UPLOAD_DIR) / first_url.split("/uploads/", 1)[1]
    assert first_path.read_bytes() == PNG

    served = client.get("/uploads/" + first_url.split("/uploads/", 1)[1])
    assert served.status_code == 200

    response = client.post(
        f"/api/users/{member.id}/photo", files={"file": ("moi2.png", PNG, "image/png")}, headers=member.headers
    )
    assert response.json()["pictureUrl"] != first_url
    assert not first_path.exists()

    response = client.post(path, files={"file": ("moi.png", PNG, "image/png")}, headers=other.headers)
    assert response.status_code == 403


def test_profile_picture_validation(client, member):
    path = f"/api/users/{member.id}/upload-profile-picture"
    response = client.post(path, files={"file": ("cv.pdf", b"%PDF", "application/pdf")}, headers=member.headers)
    assert response.status_code == 400

    big = b"\x00" * (5 * 1024 * 1024 + 1)
    response = client.post(path, files={"file": ("grand.png", big, "image/png")}, headers=member.headers)
    assert response.status_code == 413


def test_dashboard_stats(client, member, other, make_offre):
    first = make_offre(other, titre="Emploi 1")
    make_offre(other, titre="Formation 1", typeOffre="FORMATION")
    client.post(f"/api/favorites/{first['id']}", headers=member.headers)
    client.post("/api/retours", json={"offreId": first["id"], "contenu": "Postulé"}, headers=member.headers)

    stats = client.get("/api/dashboard/stats", headers=member.headers).json()
    assert stats["totalOffres"] == 2
    assert stats["totalFavorites"] == 1
    assert stats["totalRetours"] == 1
    assert stats["offresByType"] == {"EMPLOI": 1, "FORMATION": 1}
    assert [o["titre"] for o in stats["recentOffres"]] == ["Formation 1", "Emploi 1"]
    assert stats["recentOffres"][1]["retoursCount"] == 1
