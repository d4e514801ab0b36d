import logging
from typing import List, Optional

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from noken.auth.models import User
from noken.auth.permissions import ensure_owner_or_admin
from noken.commentaires.models import Commentaire
from noken.exceptions import NotFoundError
from noken.notifications.services import NotificationService
from noken.offres.models import (
    CATEGORY_FIELDS,
    NiveauExperience,
    Offre,
    OffreTag,
    Secteur,
    TypeEmploi,
    TypeOffre,
)
from noken.offres.schemas import OffreCreate, OffreDetail, OffreFilters, OffreOut, OffreUpdate
from noken.retours.models import Retour
from noken.schemas import paginate_meta
from noken.utils.files import StoredFile, local_path_from_url, remove_file, upload_root

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 20
DOCUMENTS_URL_PREFIX = "/api/offres/documents/"
DOCUMENTS_SUBDIR = "documents"


def document_path(document_url: Optional[str]):
    if not document_url or not document_url.startswith(DOCUMENTS_URL_PREFIX):
        return None
    return upload_root() / DOCUMENTS_SUBDIR / document_url[len(DOCUMENTS_URL_PREFIX):]


def apply_category_fields(data: dict, type_offre) -> dict:
    """Vide les champs spécifiques aux autres types d'offre."""
    type_offre = TypeOffre(type_offre)
    for other_type, fields in CATEGORY_FIELDS.items():
        if other_type is type_offre:
            continue
        for field in fields:
            data[field] = None
    return data


def _enum_values(data: dict) -> dict:
    return {key: value.value if hasattr(value, "value") else value for key, value in data.items()}


def filter_conditions(filters: Optional[OffreFilters]) -> list:
    """Prédicats SQL combinés en ET ; `keyword` devient un OU sur titre/description/entreprise."""
    if filters is None:
        return []
    conditions = []
    if filters.type_offre:
        conditions.append(Offre.type_offre == filters.type_offre.value)
    if filters.type_emploi:
        conditions.append(Offre.type_emploi == filters.type_emploi.value)
    if filters.secteur:
        conditions.append(Offre.secteur == filters.secteur.value)
    if filters.niveau_experience:
        conditions.append(Offre.niveau_experience == filters.niveau_experience.value)
    if filters.localisation:
        conditions.append(Offre.localisation.icontains(filters.localisation, autoescape=True))
    if filters.tag:
        conditions.append(Offre.tag_links.any(OffreTag.label == filters.tag))
    if filters.keyword:
        conditions.append(
            or_(
                Offre.titre.icontains(filters.keyword, autoescape=True),
                Offre.description.icontains(filters.keyword, autoescape=True),
                Offre.entreprise.icontains(filters.keyword, autoescape=True),
            )
        )
    return conditions


def term_conditions(terms: List[str], with_tags: bool = True) -> list:
    conditions = []
    for term in terms:
        conditions.append(Offre.titre.icontains(term, autoescape=True))
        conditions.append(Offre.description.icontains(term, autoescape=True))
        if with_tags:
            conditions.append(Offre.tag_links.any(OffreTag.label == term))
    return conditions


class OffreService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.notifications = NotificationService(db)

    # ==================== LECTURE ====================

    async def get_offre(self, offre_id: int, with_commentaires: bool = False) -> Offre:
        query = select(Offre).where(Offre.id == offre_id).execution_options(populate_existing=True)
        if with_commentaires:
            query = query.options(selectinload(Offre.commentaires))
        result = await self.db.execute(query)
        offre = result.scalars().first()
        if not offre:
            raise NotFoundError("Offre non trouvée")
        return offre

    async def _counts(self, offre_ids: List[int]) -> dict:
        counts = {offre_id: [0, 0] for offre_id in offre_ids}
        if not offre_ids:
            return counts
        rows = await self.db.execute(
            select(Commentaire.offre_id, func.count(Commentaire.id))
            .where(Commentaire.offre_id.in_(offre_ids))
            .group_by(Commentaire.offre_id)
        )
        for offre_id, count in rows.all():
            counts[offre_id][0] = count
        rows = await self.db.execute(
            select(Retour.offre_id, func.count(Retour.id))
            .where(Retour.offre_id.in_(offre_ids))
            .group_by(Retour.offre_id)
        )
        for offre_id, count in rows.all():
            counts[offre_id][1] = count
        return counts

    async def serialize_many(self, offres: List[Offre]) -> List[OffreOut]:
        counts = await self._counts([offre.id for offre in offres])
        return [
            OffreOut.model_validate(offre).model_copy(
                update={"commentaires_count": counts[offre.id][0], "retours_count": counts[offre.id][1]}
            )
            for offre in offres
        ]

    async def serialize_detail(self, offre: Offre) -> OffreDetail:
        counts = await self._counts([offre.id])
        return OffreDetail.model_validate(offre).model_copy(
            update={"commentaires_count": counts[offre.id][0], "retours_count": counts[offre.id][1]}
        )

    async def find_all(self, filters: Optional[OffreFilters] = None, page: int = 1, limit: int = DEFAULT_LIMIT) -> dict:
        offset = (page - 1) * limit
        conditions = filter_conditions(filters)

        count_query = select(func.count(Offre.id)).where(*conditions)
        total = (await self.db.execute(count_query)).scalar_one()

        query = (
            select(Offre)
            .where(*conditions)
            .order_by(Offre.date_publication.desc(), Offre.id.desc())
            .offset(offset)
            .limit(limit)
        )
        offres = (await self.db.execute(query)).scalars().all()

        return {"data": await self.serialize_many(offres), **paginate_meta(total, page, limit, len(offres))}

    async def view(self, offre_id: int) -> OffreDetail:
        """Détail d'une offre ; chaque consultation incrémente le compteur de vues de 1."""
        await self.get_offre(offre_id)
        await self.db.execute(
            update(Offre).where(Offre.id == offre_id).values(view_count=Offre.view_count + 1)
        )
        await self.db.commit()
        offre = await self.get_offre(offre_id, with_commentaires=True)
        return await self.serialize_detail(offre)

    async def find_by_auteur(self, auteur_id: int) -> List[OffreOut]:
        result = await self.db.execute(
            select(Offre)
            .where(Offre.auteur_id == auteur_id)
            .order_by(Offre.date_publication.desc(), Offre.id.desc())
        )
        return await self.serialize_many(result.scalars().all())

    async def find_matching_terms(self, terms: List[str], limit: int = 10, with_tags: bool = True) -> List[Offre]:
        if not terms:
            return []
        result = await self.db.execute(
            select(Offre)
            .where(or_(*term_conditions(terms, with_tags)))
            .order_by(Offre.date_publication.desc(), Offre.id.desc())
            .limit(limit)
        )
        return result.scalars().all()

    async def recent(self, limit: int = 5, **equals) -> List[Offre]:
        query = select(Offre).order_by(Offre.date_publication.desc(), Offre.id.desc()).limit(limit)
        for column, value in equals.items():
            query = query.where(getattr(Offre, column) == value)
        return (await self.db.execute(query)).scalars().all()

    @staticmethod
    def get_types() -> dict:
        return {
            "typeOffre": [t.value for t in TypeOffre],
            "typeEmploi": [t.value for t in TypeEmploi],
            "secteur": [s.value for s in Secteur],
            "niveauExperience": [n.value for n in NiveauExperience],
        }

    # ==================== STATISTIQUES ====================

    async def count(self) -> int:
        return (await self.db.execute(select(func.count(Offre.id)))).scalar_one()

    async def count_by_type(self) -> dict:
        rows = await self.db.execute(select(Offre.type_offre, func.count(Offre.id)).group_by(Offre.type_offre))
        return {type_offre: count for type_offre, count in rows.all()}

    async def count_by_secteur(self, limit: Optional[int] = None) -> List[dict]:
        query = (
            select(Offre.secteur, func.count(Offre.id).label("total"))
            .group_by(Offre.secteur)
            .order_by(func.count(Offre.id).desc())
        )
        if limit:
            query = query.limit(limit)
        rows = await self.db.execute(query)
        return [{"secteur": secteur, "count": count} for secteur, count in rows.all()]

    async def count_by_localisation(self, limit: int = 10) -> List[dict]:
        rows = await self.db.execute(
            select(Offre.localisation, func.count(Offre.id))
            .group_by(Offre.localisation)
            .order_by(func.count(Offre.id).desc())
            .limit(limit)
        )
        return [{"localisation": localisation, "count": count} for localisation, count in rows.all()]

    async def get_top_offres(self, limit: int = 5) -> List[dict]:
        retours_count = func.count(Retour.id)
        rows = await self.db.execute(
            select(Offre, retours_count)
            .outerjoin(Retour, Retour.offre_id == Offre.id)
            .group_by(Offre.id)
            .order_by(retours_count.desc(), Offre.id.desc())
            .limit(limit)
        )
        return [
            {
                "id": offre.id,
                "titre": offre.titre,
                "auteur": offre.auteur.username if offre.auteur else None,
                "retoursCount": count,
            }
            for offre, count in rows.all()
        ]

    # ==================== ÉCRITURE ====================

    async def create(self, data: OffreCreate, auteur: User, document: Optional[StoredFile] = None) -> OffreDetail:
        values = data.model_dump(exclude={"tags"})
        values = _enum_values(apply_category_fields(values, data.type_offre))
        offre = Offre(**values, auteur_id=auteur.id)
        offre.set_tags(data.tags)
        if document is not None:
            self._attach_document(offre, document)

        try:
            self.db.add(offre)
            await self.db.flush()
            await self.notifications.notify_new_offre(offre.id, offre.titre, auteur.id)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            if document is not None:
                remove_file(document.path)
            raise

        logger.info(f"Offre créée: id={offre.id}, titre={offre.titre}, par auteur_id={auteur.id}")
        return await self.serialize_detail(await self.get_offre(offre.id, with_commentaires=True))

    async def get_editable(self, offre_id: int, actor: User) -> Offre:
        offre = await self.get_offre(offre_id)
        ensure_owner_or_admin(actor, offre.auteur_id, "Vous ne pouvez pas modifier cette offre")
        return offre

    async def update(self, offre_id: int, data: OffreUpdate, actor: User, document: Optional[StoredFile] = None) -> OffreDetail:
        offre = await self.get_editable(offre_id, actor)

        values = data.model_dump(exclude_unset=True)
        tags = values.pop("tags", None)
        for field, value in _enum_values(values).items():
            setattr(offre, field, value)

        # Les champs des autres catégories sont remis à zéro
        for field, value in apply_category_fields({}, offre.type_offre).items():
            setattr(offre, field, value)

        if tags is not None:
            offre.set_tags(tags)

        old_document = None
        if document is not None:
            old_document = document_path(offre.document_url)
            self._attach_document(offre, document)

        await self.db.commit()
        if old_document is not None:
            remove_file(old_document)
        logger.info(f"Offre mise à jour: id={offre.id} par user_id={actor.id}")
        return await self.serialize_detail(await self.get_offre(offre.id, with_commentaires=True))

    async def delete(self, offre_id: int, actor: User) -> dict:
        offre = await self.get_offre(offre_id)
        ensure_owner_or_admin(actor, offre.auteur_id, "Vous ne pouvez pas supprimer cette offre")
        await self._delete_with_files(offre)
        logger.info(f"Offre supprimée: id={offre_id} par user_id={actor.id}")
        return {"message": "Offre supprimée avec succès"}

    async def _delete_with_files(self, offre: Offre) -> None:
        paths = [local_path_from_url(fichier.url) for fichier in offre.fichiers]
        paths.append(document_path(offre.document_url))
        await self.db.execute(delete(Offre).where(Offre.id == offre.id))
        await self.db.commit()
        for path in paths:
            remove_file(path)

    @staticmethod
    def _attach_document(offre: Offre, document: StoredFile) -> None:
        offre.document_url = f"{DOCUMENTS_URL_PREFIX}{document.filename}"
        offre.document_name = document.original_name
        offre.document_type = document.content_type
