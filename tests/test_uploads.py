from pathlib import Path

from noken.config import settings
from noken.utils.files import local_path_from_url


def _upload(client, user, offre_id, name="fiche.pdf", content=b"%PDF-1.4", content_type="application/pdf"):
    return client.post(f"/upload/offre/{offre_id}", files={"file": (name, content, content_type)}, headers=user.headers)


def test_upload_list_rename_and_delete(client, member, make_offre):
    offre = make_offre(member)

    response = _upload(client, member, offre["id"])
    assert response.status_code == 201
    fichier = response.json()
    assert fichier["nom"] == "fiche.pdf"
    assert fichier["taille"] == len(b"%PDF-1.4")
    assert fichier["offreId"] == offre["id"]
    path = local_path_from_url(fichier["url"])
    assert path.is_file()
    assert Path(settings.UPLOAD_DIR) in path.parents

    detail = client.get(f"/api/offres/{offre['id']}", headers=member.headers).json()
    assert [f["id"] for f in detail["fichiers"]] == [fichier["id"]]

    response = client.patch(f"/upload/{fichier['id']}", json={"nom": "Fiche de poste.pdf"}, headers=member.headers)
    assert response.json()["nom"] == "Fiche de poste.pdf"

    listed = client.get(f"/upload/offre/{offre['id']}", headers=member.headers).json()
    assert [f["nom"] for f in listed] == ["Fiche de poste.pdf"]

    assert client.delete(f"/upload/{fichier['id']}", headers=member.headers).status_code == 200
    assert not path.exists()
    assert client.get(f"/upload/offre/{offre['id']}", headers=member.headers).json() == []


def test_upload_multiple(client, member, make_offre):
    offre = make_offre(member)
    files = [
        ("files", ("a.png", b"\x89PNG", "image/png")),
        ("files", ("b.txt", b"notes", "text/plain")),
    ]
    response = client.post(f"/upload/offre/{offre['id']}/multiple", files=files, headers=member.headers)
    assert response.status_code == 201
    assert sorted(f["nom"] for f in response.json()) == ["a.png", "b.txt"]


def test_upload_rejects_forbidden_type(client, member, make_offre):
    offre = make_offre(member)
    response = _upload(client, member, offre["id"], name="script.exe", content=b"MZ", content_type="application/x-msdownload")
    assert response.status_code == 400
    assert response.json()["message"].startswith("Type de fichier non autorisé")


def test_upload_permissions(client, member, other, admin, make_offre):
    offre = make_offre(member)
    assert _upload(client, other, offre["id"]).status_code == 403
    assert _upload(client, member, 999).status_code == 404

    fichier = _upload(client, admin, offre["id"]).json()
    assert client.patch(f"/upload/{fichier['id']}", json={"nom": "x"}, headers=other.headers).status_code == 403
    assert client.delete(f"/upload/{fichier['id']}", headers=other.headers).status_code == 403


def test_offre_deletion_removes_files(client, member, make_offre):
    offre = make_offre(member)
    fichier = _upload(client, member, offre["id"]).json()
    path = local_path_from_url(fichier["url"])

    client.delete(f"/api/offres/{offre['id']}", headers=member.headers)
    assert not path.exists()
