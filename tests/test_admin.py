from datetime import date

import pytest

from noken.admin.services import age_in_years, age_range, count_age_ranges, page_meta


def test_admin_routes_are_forbidden_to_members(client, member):
    for path in ("/api/admin/statistics", "/api/admin/disaggregation", "/api/admin/users", "/api/admin/offres"):
        assert client.get(path, headers=member.headers).status_code == 403
    assert client.get("/api/admin/statistics").status_code == 401


def test_statistics(client, member, admin, make_offre):
    emploi = make_offre(member, secteur="INFORMATIQUE")
    make_offre(member, typeOffre="FORMATION", secteur="EDUCATION")
    make_offre(admin, typeOffre="FORMATION", secteur="EDUCATION")
    client.post("/api/retours", json={"offreId": emploi["id"], "contenu": "Intéressant"}, headers=member.headers)

    stats = client.get("/api/admin/statistics", headers=admin.headers).json()
    assert stats["totals"] == {"users": 2, "offres": 3, "retours": 1, "publicCvs": 0}
    assert stats["usersByRole"] == {"admins": 1, "membres": 1, "partenaires": 0}
    assert stats["offresByType"] == {"EMPLOI": 1, "FORMATION": 2}
    assert stats["offresBySecteur"][0] == {"secteur": "EDUCATION", "count": 2}
    assert stats["topOffres"][0]["id"] == emploi["id"]
    assert stats["topOffres"][0]["retoursCount"] == 1
    assert stats["thisMonth"]["newOffres"] == 3


def test_disaggregation(client, make_user, admin):
    make_user("h1@example.com", sexe="HOMME", date_naissance=date(1990, 5, 1), pays="Sénégal", handicap=True)
    make_user("f1@example.com", sexe="FEMME", date_naissance=date(2001, 1, 1), pays="Sénégal")
    make_user("f2@example.com", sexe="FEMME", statut_professionnel="ETUDIANT", pays="Gambie")

    data = client.get("/api/admin/disaggregation", headers=admin.headers).json()
    assert data["gender"]["hommes"] == 1
    assert data["gender"]["femmes"] == 2
    assert data["gender"]["nonPrecise"] == 1
    assert data["gender"]["total"] == 4
    assert data["handicap"] == {"avec": 1, "sans": 3, "total": 4}
    assert data["ageRanges"]["Non précisé"] == 2
    assert sum(data["ageRanges"].values()) == 4
    assert data["statutProfessionnel"]["ETUDIANT"] == 1
    assert data["geographic"][0] == {"pays": "Sénégal", "count": 2}
    assert {"pays": "Non précisé", "count": 1} in data["geographic"]


def test_users_listing_and_search(client, member, other, admin, make_offre):
    make_offre(member)

    page = client.get("/api/admin/users", params={"limit": 2}, headers=admin.headers).json()
    assert page["meta"] == {"total": 3, "page": 1, "limit": 2, "totalPages": 2}
    assert len(page["data"]) == 2

    found = client.get("/api/admin/users", params={"search": "awa"}, headers=admin.headers).json()
    assert [u["id"] for u in found["data"]] == [member.id]
    assert found["data"][0]["offresCount"] == 1

    detail = client.get(f"/api/admin/users/{member.id}", headers=admin.headers).json()
    assert detail["email"] == member.email
    assert detail["offresCount"] == 1
    assert len(detail["recentOffres"]) == 1
    assert detail["cv"] is None


def test_role_activation_and_deletion(client, member, admin):
    response = client.post(f"/api/admin/users/{member.id}/role", json={"role": "PARTENAIRE"}, headers=admin.headers)
    assert response.json()["role"] == "PARTENAIRE"

    response = client.post(f"/api/admin/users/{member.id}/toggle-active", json={"isActive": False}, headers=admin.headers)
    assert response.json()["isActive"] is False

    assert client.delete(f"/api/admin/users/{member.id}", headers=admin.headers).status_code == 200
    assert client.get(f"/api/admin/users/{member.id}", headers=admin.headers).status_code == 404


def test_offres_listing_detail_and_delete(client, member, admin, make_offre):
    emploi = make_offre(member, titre="Caissier", entreprise="Auchan Ziguinchor")
    make_offre(member, titre="Formation solaire", typeOffre="FORMATION")
    client.post("/api/retours", json={"offreId": emploi["id"], "contenu": "Postulé"}, headers=member.headers)

    page = client.get("/api/admin/offres", params={"typeOffre": "FORMATION"}, headers=admin.headers).json()
    assert [o["titre"] for o in page["data"]] == ["Formation solaire"]
    assert page["meta"]["total"] == 1

    found = client.get("/api/admin/offres", params={"search": "auchan"}, headers=admin.headers).json()
    assert [o["id"] for o in found["data"]] == [emploi["id"]]

    detail = client.get(f"/api/admin/offres/{emploi['id']}", headers=admin.headers).json()
    assert detail["retoursCount"] == 1
    assert detail["retours"][0]["contenu"] == "Postulé"

    assert client.delete(f"/api/admin/offres/{emploi['id']}", headers=admin.headers).status_code == 200
    assert client.get(f"/api/admin/offres/{emploi['id']}", headers=admin.headers).status_code == 404


@pytest.mark.parametrize(
    "age, expected",
    [(0, "0-17"), (17, "0-17"), (18, "18-25"), (25, "18-25"), (26, "26-35"), (45, "36-45"), (55, "46-55"), (65, "56-65"), (66, "65+")],
)
def test_age_range_boundaries(age, expected):
    assert age_range(age) == expected


def test_age_in_years():
    today = date(2024, 6, 15)
    assert age_in_years(date(2000, 6, 15), today) == 24
    assert age_in_years(date(2000, 6, 16), today) == 23


def test_count_age_ranges():
    today = date(2024, 1, 1)
    ranges = count_age_ranges([date(2010, 1, 1), date(2000, 1, 1), None, date(1950, 1, 1)], today)
    assert ranges["0-17"] == 1
    assert ranges["18-25"] == 1
    assert ranges["65+"] == 1
    assert ranges["Non précisé"] == 1
    assert ranges["26-35"] == 0


def test_page_meta():
    assert page_meta(0, 1, 20) == {"total": 0, "page": 1, "limit": 20, "total_pages": 0}
    assert page_meta(41, 3, 20)["total_pages"] == 3
