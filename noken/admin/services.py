import logging
from datetime import date, datetime
from typing import Dict, List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from noken.auth.models import Role, Sexe, User
from noken.cv.services import CVService
from noken.favorites.models import Favorite
from noken.offres.models import Offre, TypeOffre
from noken.offres.services import OffreService
from noken.retours.models import Retour
from noken.retours.services import RetourService
from noken.users.services import UserService
from noken.utils.dates import utcnow

logger = logging.getLogger(__name__)

NON_PRECISE = "Non précisé"
AGE_RANGES = ["0-17", "18-25", "26-35", "36-45", "46-55", "56-65", "65+"]
DAYS_PER_YEAR = 365.25


def age_in_years(birth_date: date, today: date) -> int:
    return int((today - birth_date).days // DAYS_PER_YEAR)


def age_range(age: int) -> str:
    if age < 18:
        return "0-17"
    if age <= 25:
        return "18-25"
    if age <= 35:
        return "26-35"
    if age <= 45:
        return "36-45"
    if age <= 55:
        return "46-55"
    if age <= 65:
        return "56-65"
    return "65+"


def count_age_ranges(birth_dates: List[Optional[date]], today: date) -> Dict[str, int]:
    ranges = {label: 0 for label in AGE_RANGES}
    ranges[NON_PRECISE] = 0
    for birth_date in birth_dates:
        if birth_date is None:
            ranges[NON_PRECISE] += 1
        else:
            ranges[age_range(age_in_years(birth_date, today))] += 1
    return ranges


def start_of_month(now: datetime) -> datetime:
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def page_meta(total: int, page: int, limit: int) -> dict:
    return {"total": total, "page": page, "limit": limit, "total_pages": (total + limit - 1) // limit}


class AdminService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.users = UserService(db)
        self.offres = OffreService(db)

    async def _count(self, column, *conditions) -> int:
        return (await self.db.execute(select(func.count(column)).where(*conditions))).scalar_one()

    async def _grouped_counts(self, column, key, ids: List[int]) -> Dict[int, int]:
        if not ids:
            return {}
        rows = await self.db.execute(select(key, func.count(column)).where(key.in_(ids)).group_by(key))
        return dict(rows.all())

    # ==================== STATISTIQUES ====================

    async def get_statistics(self) -> dict:
        month_start = start_of_month(utcnow())
        return {
            "totals": {
                "users": await self.users.count(),
                "offres": await self.offres.count(),
                "retours": await RetourService(self.db).count(),
                "publicCvs": await CVService(self.db).count_public(),
            },
            "usersByRole": await self.users.count_by_role(),
            "offresByType": await self.offres.count_by_type(),
            "offresBySecteur": await self.offres.count_by_secteur(limit=10),
            "topOffres": await self.offres.get_top_offres(limit=5),
            "thisMonth": {
                "newUsers": await self._count(User.id, User.created_at >= month_start),
                "newOffres": await self._count(Offre.id, Offre.date_publication >= month_start),
                "newRetours": await self._count(Retour.id, Retour.date_publication >= month_start),
            },
        }

    async def get_disaggregation(self) -> dict:
        sexe_rows = dict((await self.db.execute(select(User.sexe, func.count(User.id)).group_by(User.sexe))).all())
        gender = {
            "hommes": sexe_rows.get(Sexe.HOMME.value, 0),
            "femmes": sexe_rows.get(Sexe.FEMME.value, 0),
            "autres": sexe_rows.get(Sexe.AUTRE.value, 0),
            "nonPrecise": sexe_rows.get(Sexe.NON_PRECISE.value, 0),
        }
        gender["total"] = sum(gender.values())

        avec = await self._count(User.id, User.handicap.is_(True))
        sans = await self._count(User.id, User.handicap.is_(False))

        birth_dates = (await self.db.execute(select(User.date_naissance))).scalars().all()

        statut_rows = await self.db.execute(
            select(User.statut_professionnel, func.count(User.id)).group_by(User.statut_professionnel)
        )
        pays_rows = await self.db.execute(
            select(User.pays, func.count(User.id))
            .group_by(User.pays)
            .order_by(func.count(User.id).desc())
            .limit(10)
        )

        return {
            "gender": gender,
            "handicap": {"avec": avec, "sans": sans, "total": avec + sans},
            "ageRanges": count_age_ranges(birth_dates, utcnow().date()),
            "statutProfessionnel": dict(statut_rows.all()),
            "geographic": [{"pays": pays or NON_PRECISE, "count": count} for pays, count in pays_rows.all()],
        }

    # ==================== UTILISATEURS ====================

    async def get_users(self, page: int = 1, limit: int = 20, search: Optional[str] = None) -> dict:
        conditions = []
        if search:
            conditions.append(
                or_(
                    User.email.icontains(search, autoescape=True),
                    User.username.icontains(search, autoescape=True),
                    User.first_name.icontains(search, autoescape=True),
                    User.last_name.icontains(search, autoescape=True),
                )
            )

        total = await self._count(User.id, *conditions)
        result = await self.db.execute(
            select(User)
            .where(*conditions)
            .order_by(User.created_at.desc(), User.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        users = result.scalars().all()
        ids = [user.id for user in users]
        retours = await self._grouped_counts(Retour.id, Retour.auteur_id, ids)
        offres = await self._grouped_counts(Offre.id, Offre.auteur_id, ids)

        data = []
        for user in users:
            data.append({
                "id": user.id,
                "email": user.email,
                "username": user.username,
                "first_name": user.first_name,
                "last_name": user.last_name,
                "role": user.role,
                "is_active": user.is_active,
                "statut_professionnel": user.statut_professionnel,
                "picture_url": user.picture_url,
                "created_at": user.created_at,
                "retours_count": retours.get(user.id, 0),
                "offres_count": offres.get(user.id, 0),
            })
        return {"data": data, "meta": page_meta(total, page, limit)}

    async def get_user(self, user_id: int) -> dict:
        user = await self.users.get_user(user_id)
        recent_retours = (
            await self.db.execute(
                select(Retour)
                .where(Retour.auteur_id == user_id)
                .order_by(Retour.date_publication.desc(), Retour.id.desc())
                .limit(5)
            )
        ).scalars().all()
        recent_offres = await self.offres.recent(5, auteur_id=user_id)

        return {
            **{column.key: getattr(user, column.key) for column in User.__table__.columns},
            "cv": await CVService(self.db).find_by_user_id(user_id),
            "recent_retours": recent_retours,
            "recent_offres": await self.offres.serialize_many(recent_offres),
            "retours_count": await self._count(Retour.id, Retour.auteur_id == user_id),
            "offres_count": await self._count(Offre.id, Offre.auteur_id == user_id),
            "favorites_count": await self._count(Favorite.id, Favorite.user_id == user_id),
        }

    async def set_role(self, user_id: int, role: Role) -> User:
        return await self.users.change_role(user_id, role)

    async def set_active(self, user_id: int, is_active: bool) -> User:
        user = await self.users.get_user(user_id)
        return await self.users.set_active(user, is_active)

    async def delete_user(self, user_id: int) -> dict:
        return await self.users.delete(user_id)

    # ==================== OFFRES ====================

    async def get_offres(
        self,
        page: int = 1,
        limit: int = 20,
        search: Optional[str] = None,
        type_offre: Optional[TypeOffre] = None,
    ) -> dict:
        conditions = []
        if search:
            conditions.append(
                or_(
                    Offre.titre.icontains(search, autoescape=True),
                    Offre.entreprise.icontains(search, autoescape=True),
                    Offre.description.icontains(search, autoescape=True),
                )
            )
        if type_offre:
            conditions.append(Offre.type_offre == type_offre.value)

        total = await self._count(Offre.id, *conditions)
        result = await self.db.execute(
            select(Offre)
            .where(*conditions)
            .order_by(Offre.date_publication.desc(), Offre.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        offres = result.scalars().all()
        return {"data": await self.offres.serialize_many(offres), "meta": page_meta(total, page, limit)}

    async def get_offre(self, offre_id: int) -> dict:
        offre = await self.offres.get_offre(offre_id)
        retours = (
            await self.db.execute(
                select(Retour)
                .where(Retour.offre_id == offre_id)
                .order_by(Retour.date_publication.desc(), Retour.id.desc())
                .limit(10)
            )
        ).scalars().all()
        detail = (await self.offres.serialize_many([offre]))[0]
        return {**detail.model_dump(), "retours": retours}

    async def delete_offre(self, offre_id: int, admin: User) -> dict:
        return await self.offres.delete(offre_id, admin)
