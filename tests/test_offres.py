import pytest
from sqlalchemy import select
from sqlalchemy.exc import InvalidRequestError

from conftest import query
from noken.offres.models import Offre


def test_create_offre_returns_detail(client, member, make_offre):
    offre = make_offre(
        member,
        tags=["python", "api", "python", " "],
        secteur="INFORMATIQUE",
        localisation="Ziguinchor",
        salaireMin=150000,
        salaireMax=300000,
        devise="XOF",
    )
    assert offre["id"]
    assert offre["auteurId"] == member.id
    assert offre["auteur"]["firstName"] == "Awa"
    assert offre["tags"] == ["python", "api"]
    assert offre["viewCount"] == 0
    assert offre["commentaires"] == []
    assert offre["salaireMax"] == 300000


def test_category_fields_are_cleared(client, member, make_offre):
    offre = make_offre(member, typeOffre="FORMATION", organisme="ISEP Ziguinchor", salaireMin=100000)
    assert offre["organisme"] == "ISEP Ziguinchor"
    assert offre["salaireMin"] is None

    response = client.put(
        f"/api/offres/{offre['id']}",
        json={"typeOffre": "BOURSE", "paysBourse": "France"},
        headers=member.headers,
    )
    assert response.status_code == 200
    updated = response.json()
    assert updated["typeOffre"] == "BOURSE"
    assert updated["paysBourse"] == "France"
    assert updated["organisme"] is None


def test_invalid_salary_range(client, member):
    response = client.post(
        "/api/offres",
        json={"titre": "Comptable", "description": "Cabinet", "typeOffre": "EMPLOI", "salaireMin": 500, "salaireMax": 100},
        headers=member.headers,
    )
    assert response.status_code == 400


def test_list_offres_pagination(client, member, make_offre):
    for i in range(45):
        make_offre(member, titre=f"Offre {i}")

    response = client.get("/api/offres", params={"page": 3, "limit": 20}, headers=member.headers)
    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 45
    assert body["page"] == 3
    assert body["totalPages"] == 3
    assert body["hasMore"] is False
    assert len(body["data"]) == 5
    # Plus récentes d'abord
    assert body["data"][-1]["titre"] == "Offre 0"

    first = client.get("/api/offres", headers=member.headers).json()
    assert first["hasMore"] is True
    assert first["data"][0]["titre"] == "Offre 44"


def test_list_offres_filters(client, member, make_offre):
    make_offre(member, titre="Stage marketing", typeEmploi="STAGE", secteur="MARKETING", localisation="Kolda")
    make_offre(member, titre="Formation couture", typeOffre="FORMATION", secteur="ARTISANAT", tags=["couture"])
    make_offre(member, titre="Chef de projet", entreprise="Casamance Solaire", localisation="Ziguinchor")

    def titres(**params):
        body = client.get("/api/offres", params=params, headers=member.headers).json()
        return sorted(o["titre"] for o in body["data"])

    assert titres(typeOffre="FORMATION") == ["Formation couture"]
    assert titres(typeEmploi="STAGE") == ["Stage marketing"]
    assert titres(secteur="ARTISANAT") == ["Formation couture"]
    assert titres(localisation="zigui") == ["Chef de projet"]
    assert titres(tag="couture") == ["Formation couture"]
    assert titres(keyword="solaire") == ["Chef de projet"]
    assert titres(typeOffre="EMPLOI", localisation="kolda") == ["Stage marketing"]


def test_filters_match_wildcard_characters_literally(client, member, make_offre):
    make_offre(member, titre="Analyste abc", localisation="Dakar")
    make_offre(member, titre="Remise 100%", localisation="Bignona_Sud")

    def titres(**params):
        body = client.get("/api/offres", params=params, headers=member.headers).json()
        return [o["titre"] for o in body["data"]]

    assert titres(keyword="a_c") == []
    assert titres(localisation="%") == []
    assert titres(keyword="100%") == ["Remise 100%"]
    assert titres(localisation="a_s") == ["Remise 100%"]


def test_admin_search_matches_wildcard_characters_literally(client, member, admin, make_offre):
    make_offre(member, titre="Analyste abc")
    page = client.get("/api/admin/offres", params={"search": "a_c"}, headers=admin.headers).json()
    assert page["data"] == []
    users = client.get("/api/admin/users", params={"search": "%"}, headers=admin.headers).json()
    assert users["data"] == []


def test_list_offres_rejects_unknown_enum(client, member):
    response = client.get("/api/offres", params={"typeOffre": "INCONNU"}, headers=member.headers)
    assert response.status_code == 400


def test_view_increments_counter(client, member, other, make_offre):
    offre = make_offre(member)
    client.get(f"/api/offres/{offre['id']}", headers=other.headers)
    response = client.get(f"/api/offres/{offre['id']}", headers=member.headers)
    assert response.json()["viewCount"] == 2


def test_get_missing_offre(client, member):
    response = client.get("/api/offres/999", headers=member.headers)
    assert response.status_code == 404
    assert response.json()["message"] == "Offre non trouvée"


def test_only_author_or_admin_can_modify(client, member, other, admin, make_offre):
    offre = make_offre(member)

    response = client.put(f"/api/offres/{offre['id']}", json={"titre": "Piraté"}, headers=other.headers)
    assert response.status_code == 403
    assert client.delete(f"/api/offres/{offre['id']}", headers=other.headers).status_code == 403

    response = client.put(f"/api/offres/{offre['id']}", json={"titre": "Modifié"}, headers=member.headers)
    assert response.json()["titre"] == "Modifié"

    response = client.put(f"/api/offres/{offre['id']}", json={"tags": ["admin"]}, headers=admin.headers)
    assert response.json()["tags"] == ["admin"]
    assert response.json()["titre"] == "Modifié"

    response = client.delete(f"/api/offres/{offre['id']}", headers=admin.headers)
    assert response.status_code == 200
    assert client.get(f"/api/offres/{offre['id']}", headers=member.headers).status_code == 404


@pytest.mark.parametrize("field", ["titre", "description", "typeOffre"])
def test_update_rejects_null_required_field(client, member, make_offre, field):
    offre = make_offre(member, titre="Caissier")
    response = client.put(f"/api/offres/{offre['id']}", json={field: None}, headers=member.headers)
    assert response.status_code == 400

    detail = client.get(f"/api/offres/{offre['id']}", headers=member.headers).json()
    assert detail["titre"] == "Caissier"
    assert detail["typeOffre"] == "EMPLOI"


def test_new_offre_notifies_other_users(client, member, other, make_offre):
    make_offre(member, titre="Agent de terrain")

    notifications = client.get("/api/notifications", headers=other.headers).json()
    assert len(notifications) == 1
    assert notifications[0]["type"] == "NEW_OFFRE"
    assert "Agent de terrain" in notifications[0]["message"]

    assert client.get("/api/notifications", headers=member.headers).json() == []


def test_mes_offres_and_types(client, member, other, make_offre):
    make_offre(member, titre="A")
    make_offre(other, titre="B")

    mine = client.get("/api/offres/mes-offres", headers=member.headers).json()
    assert [o["titre"] for o in mine] == ["A"]

    types = client.get("/api/offres/types").json()
    assert types["typeOffre"] == ["EMPLOI", "FORMATION", "BOURSE", "VOLONTARIAT"]
    assert "INFORMATIQUE" in types["secteur"]


def test_create_with_document(client, member):
    response = client.post(
        "/api/offres/with-document",
        data={"data": '{"titre": "Bourse master", "description": "Dakar", "typeOffre": "BOURSE"}'},
        files={"document": ("fiche.pdf", b"%PDF-1.4 fiche", "application/pdf")},
        headers=member.headers,
    )
    assert response.status_code == 201
    offre = response.json()
    assert offre["documentName"] == "fiche.pdf"
    assert offre["documentUrl"].startswith("/api/offres/documents/")

    filename = offre["documentUrl"].rsplit("/", 1)[1]
    document = client.get(f"/api/offres/documents/{filename}")
    assert document.status_code == 200
    assert document.content == b"%PDF-1.4 fiche"


@pytest.mark.parametrize("data", ["pas du json", '{"titre": "Sans type", "description": "x"}'])
def test_create_with_document_invalid_payload(client, member, data):
    response = client.post("/api/offres/with-document", data={"data": data}, headers=member.headers)
    assert response.status_code == 400


def test_commentaires_are_loaded_explicitly(client, member, make_offre):
    offre = make_offre(member)
    client.post("/api/commentaires", json={"offreId": offre["id"], "contenu": "Bonjour"}, headers=member.headers)

    async def load(session):
        loaded = (await session.execute(select(Offre).where(Offre.id == offre["id"]))).scalars().one()
        with pytest.raises(InvalidRequestError):
            loaded.commentaires
        return loaded.titre

    assert query(load) == offre["titre"]
    detail = client.get(f"/api/offres/{offre['id']}", headers=member.headers).json()
    assert [c["contenu"] for c in detail["commentaires"]] == ["Bonjour"]
