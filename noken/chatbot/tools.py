"""
Outils exposés au modèle du chatbot.

Chaque outil lit la base pour l'utilisateur connecté et renvoie un dict sérialisable ;
`ChatbotTools.execute` l'encode en JSON pour le message `tool`.
"""
import json
import logging
from typing import List, Optional

from pydantic.alias_generators import to_camel
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from noken.auth.models import User
from noken.cv.models import CV
from noken.favorites.models import Favorite
from noken.offres.models import Offre, TypeOffre
from noken.offres.recommendations import build_search_terms, rank_offres
from noken.offres.services import OffreService
from noken.retours.models import Retour

logger = logging.getLogger(__name__)

NON_RENSEIGNE = "Non renseigné"
NO_CV = "L'utilisateur n'a pas de CV"
LIST_LIMIT = 15

SALAIRE = ("salaire_min", "salaire_max", "devise")


def _no_args(name: str, description: str) -> dict:
    return {"type": "function", "function": {"name": name, "description": description}}


def _one_arg(name: str, description: str, arg: str, arg_description: str, enum: Optional[list] = None) -> dict:
    prop = {"type": "string", "description": arg_description}
    if enum:
        prop["enum"] = enum
    return {
        "type": "function",
        "function": {
            "name": name,
            "description": description,
            "parameters": {"type": "object", "properties": {arg: prop}, "required": [arg]},
        },
    }


TOOL_DEFINITIONS = [
    _no_args("get_user_profile", "Récupère les informations du profil de l'utilisateur connecté (nom, prénom, email, localisation, statut professionnel)"),
    _no_args("get_user_cv", "Récupère le CV complet de l'utilisateur (titre professionnel, résumé, compétences, langues, certifications)"),
    _no_args("get_user_experiences", "Récupère les expériences professionnelles de l'utilisateur (postes, entreprises, dates, descriptions)"),
    _no_args("get_user_formations", "Récupère les formations et diplômes de l'utilisateur"),
    _no_args("get_user_competences", "Récupère la liste des compétences de l'utilisateur"),
    _no_args("get_offres_matching_competences", "Trouve les offres d'emploi qui correspondent aux compétences de l'utilisateur"),
    _no_args("get_offres_matching_experience", "Trouve les offres qui correspondent aux expériences professionnelles de l'utilisateur"),
    _no_args("get_recommandations_personnalisees", "Génère des recommandations d'offres personnalisées basées sur le profil complet de l'utilisateur"),
    _no_args("analyser_cv", "Analyse le CV de l'utilisateur et donne des conseils d'amélioration (complétude, points forts, points à améliorer)"),
    _no_args("get_user_favoris", "Récupère les offres que l'utilisateur a mis en favoris"),
    _no_args("get_user_candidatures", "Récupère les candidatures/retours de l'utilisateur sur les offres"),
    _one_arg("search_offres", "Recherche des offres par mots-clés (titre, description, entreprise, localisation)", "query", "Mots-clés de recherche"),
    _one_arg(
        "get_offres_par_localisation",
        "Récupère les offres disponibles dans une localisation spécifique",
        "localisation",
        "Nom de la ville ou région (ex: Ziguinchor, Dakar, Casamance)",
    ),
    _one_arg(
        "get_offres_par_type",
        "Récupère les offres par type (EMPLOI, FORMATION, BOURSE, VOLONTARIAT)",
        "typeOffre",
        "Type d'offre",
        enum=[t.value for t in TypeOffre],
    ),
    _one_arg(
        "get_offres_par_secteur",
        "Récupère les offres par secteur d'activité",
        "secteur",
        "Secteur d'activité (ex: INFORMATIQUE, FINANCE, SANTE, TOURISME, AGRICULTURE)",
    ),
    _no_args("get_formations_disponibles", "Récupère toutes les formations disponibles sur la plateforme"),
    _no_args("get_bourses_disponibles", "Récupère toutes les bourses d'études disponibles"),
    _no_args("get_volontariats_disponibles", "Récupère toutes les offres de volontariat disponibles (service civique, missions humanitaires, bénévolat)"),
    _no_args("get_statistiques_offres", "Récupère les statistiques globales des offres (total, par type, par secteur, par localisation)"),
]


def offre_summary(offre: Offre, *fields: str) -> dict:
    """Sous-ensemble des champs d'une offre, clés en camelCase."""
    data = {"id": offre.id, "titre": offre.titre}
    for field in fields:
        data[to_camel(field)] = getattr(offre, field)
    return data


def analyse_cv(cv: CV) -> dict:
    """Complétude du CV sur 10 critères, points forts et axes d'amélioration."""
    points_forts, points_ameliorer, conseils = [], [], []
    remplis = 0
    total = 10

    competences = cv.competences or []
    langues = cv.langues or []
    certifications = cv.certifications or []
    interets = cv.interets or []

    if cv.titre_professionnel:
        remplis += 1
        points_forts.append("Titre professionnel renseigné")
    else:
        points_ameliorer.append("Ajouter un titre professionnel")

    if cv.resume:
        remplis += 1
        points_forts.append("Résumé présent")
    else:
        points_ameliorer.append("Ajouter un résumé de votre profil")

    if cv.telephone:
        remplis += 1
    else:
        points_ameliorer.append("Ajouter votre numéro de téléphone")

    if len(competences) >= 3:
        remplis += 1
        points_forts.append(f"{len(competences)} compétences listées")
    else:
        points_ameliorer.append("Ajouter plus de compétences (minimum 3)")

    if langues:
        remplis += 1
        points_forts.append(f"{len(langues)} langue(s) renseignée(s)")
    else:
        points_ameliorer.append("Ajouter vos langues parlées")

    if cv.experiences:
        remplis += 1
        points_forts.append(f"{len(cv.experiences)} expérience(s) professionnelle(s)")
    else:
        points_ameliorer.append("Ajouter au moins une expérience professionnelle")

    if cv.formations:
        remplis += 1
        points_forts.append(f"{len(cv.formations)} formation(s)")
    else:
        points_ameliorer.append("Ajouter votre parcours de formation")

    if cv.linkedin:
        remplis += 1
        points_forts.append("Profil LinkedIn lié")
    else:
        conseils.append("Ajouter votre profil LinkedIn pour plus de visibilité")

    if certifications:
        remplis += 1
        points_forts.append(f"{len(certifications)} certification(s)")
    else:
        conseils.append("Les certifications valorisent votre profil")

    if interets:
        remplis += 1

    completude = round(remplis / total * 100)
    if completude < 50:
        conseils.append("Votre CV est incomplet. Prenez le temps de le compléter pour maximiser vos chances.")
    elif completude < 80:
        conseils.append("Bon début ! Quelques ajouts rendront votre CV plus attractif.")
    else:
        conseils.append("Excellent ! Votre CV est bien rempli. Pensez à le mettre à jour régulièrement.")

    return {
        "completude": completude,
        "pointsForts": points_forts,
        "pointsAmeliorer": points_ameliorer,
        "conseils": conseils,
    }


class ChatbotTools:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.offres = OffreService(db)

    async def execute(self, name: str, args: dict, user_id: int) -> str:
        handlers = {
            "get_user_profile": lambda: self.get_user_profile(user_id),
            "get_user_cv": lambda: self.get_user_cv(user_id),
            "get_user_experiences": lambda: self.get_user_experiences(user_id),
            "get_user_formations": lambda: self.get_user_formations(user_id),
            "get_user_competences": lambda: self.get_user_competences(user_id),
            "get_offres_matching_competences": lambda: self.get_offres_matching_competences(user_id),
            "get_offres_matching_experience": lambda: self.get_offres_matching_experience(user_id),
            "get_recommandations_personnalisees": lambda: self.get_recommandations_personnalisees(user_id),
            "analyser_cv": lambda: self.analyser_cv(user_id),
            "get_user_favoris": lambda: self.get_user_favoris(user_id),
            "get_user_candidatures": lambda: self.get_user_candidatures(user_id),
            "search_offres": lambda: self.search_offres(args.get("query", "")),
            "get_offres_par_localisation": lambda: self.get_offres_par_localisation(args.get("localisation", "")),
            "get_offres_par_type": lambda: self.get_offres_par_type(args.get("typeOffre", "")),
            "get_offres_par_secteur": lambda: self.get_offres_par_secteur(args.get("secteur", "")),
            "get_formations_disponibles": self.get_formations_disponibles,
            "get_bourses_disponibles": self.get_bourses_disponibles,
            "get_volontariats_disponibles": self.get_volontariats_disponibles,
            "get_statistiques_offres": self.get_statistiques_offres,
        }
        handler = handlers.get(name)
        if handler is None:
            logger.warning(f"⚠️ Outil inconnu demandé par le modèle: {name}")
            result = {"error": f"Outil inconnu: {name}"}
        else:
            logger.info(f"🔧 Outil {name} exécuté pour user_id={user_id}")
            result = await handler()
        return json.dumps(result, ensure_ascii=False, indent=2, default=str)

    async def _get_cv(self, user_id: int) -> Optional[CV]:
        result = await self.db.execute(select(CV).where(CV.user_id == user_id))
        return result.scalars().first()

    async def _offres(self, *conditions, limit: int = LIST_LIMIT) -> List[Offre]:
        result = await self.db.execute(
            select(Offre)
            .where(*conditions)
            .order_by(Offre.date_publication.desc(), Offre.id.desc())
            .limit(limit)
        )
        return result.scalars().all()

    # ==================== PROFIL ET CV ====================

    async def get_user_profile(self, user_id: int) -> dict:
        user = (await self.db.execute(select(User).where(User.id == user_id))).scalars().first()
        if not user:
            return {"error": "Utilisateur non trouvé"}
        return {
            "nom": user.last_name,
            "prenom": user.first_name,
            "email": user.email,
            "username": user.username,
            "statutProfessionnel": user.statut_professionnel or NON_RENSEIGNE,
            "localisation": {
                "pays": user.pays or NON_RENSEIGNE,
                "commune": user.commune or NON_RENSEIGNE,
                "quartier": user.quartier or NON_RENSEIGNE,
            },
            "membreDepuis": user.created_at,
        }

    async def get_user_cv(self, user_id: int) -> dict:
        cv = await self._get_cv(user_id)
        if not cv:
            return {"hasCV": False, "message": "L'utilisateur n'a pas encore créé de CV"}
        return {
            "hasCV": True,
            "titreProfessionnel": cv.titre_professionnel or NON_RENSEIGNE,
            "resume": cv.resume or NON_RENSEIGNE,
            "contact": {
                "telephone": cv.telephone or NON_RENSEIGNE,
                "adresse": cv.adresse or NON_RENSEIGNE,
                "ville": cv.ville or NON_RENSEIGNE,
                "pays": cv.pays or NON_RENSEIGNE,
            },
            "reseaux": {
                "linkedin": cv.linkedin or None,
                "github": cv.github or None,
                "siteWeb": cv.site_web or None,
            },
            "competences": cv.competences or [],
            "langues": cv.langues or [],
            "certifications": cv.certifications or [],
            "interets": cv.interets or [],
            "nombreExperiences": len(cv.experiences),
            "nombreFormations": len(cv.formations),
        }

    async def get_user_experiences(self, user_id: int):
        cv = await self._get_cv(user_id)
        if not cv:
            return {"error": NO_CV}
        return [
            {
                "poste": exp.poste,
                "entreprise": exp.entreprise,
                "ville": exp.ville or NON_RENSEIGNE,
                "dateDebut": exp.date_debut,
                "dateFin": exp.date_fin or "En cours",
                "enCours": exp.en_cours,
                "description": exp.description or NON_RENSEIGNE,
            }
            for exp in cv.experiences
        ]

    async def get_user_formations(self, user_id: int):
        cv = await self._get_cv(user_id)
        if not cv:
            return {"error": NO_CV}
        return [
            {
                "diplome": form.diplome,
                "etablissement": form.etablissement,
                "ville": form.ville or NON_RENSEIGNE,
                "dateDebut": form.date_debut,
                "dateFin": form.date_fin or "En cours",
                "enCours": form.en_cours,
                "description": form.description or NON_RENSEIGNE,
            }
            for form in cv.formations
        ]

    async def get_user_competences(self, user_id: int) -> dict:
        cv = await self._get_cv(user_id)
        if not cv:
            return {"error": NO_CV}
        competences = cv.competences or []
        return {"competences": competences, "nombreCompetences": len(competences)}

    async def analyser_cv(self, user_id: int) -> dict:
        cv = await self._get_cv(user_id)
        if not cv:
            return {"error": NO_CV}
        return analyse_cv(cv)

    # ==================== CORRESPONDANCES ====================

    async def get_offres_matching_competences(self, user_id: int) -> dict:
        cv = await self._get_cv(user_id)
        if not cv or not cv.competences:
            return {"error": "Aucune compétence trouvée dans le CV pour faire la correspondance"}
        offres = await self.offres.find_matching_terms(cv.competences, limit=10)
        return {
            "competencesUtilisees": cv.competences,
            "offresCorrespondantes": [
                {**offre_summary(o, "type_offre", "entreprise", "localisation", *SALAIRE), "tags": o.tags}
                for o in offres
            ],
            "nombreOffres": len(offres),
        }

    async def get_offres_matching_experience(self, user_id: int) -> dict:
        cv = await self._get_cv(user_id)
        if not cv or not cv.experiences:
            return {"error": "Aucune expérience trouvée dans le CV"}
        postes = [exp.poste for exp in cv.experiences]
        offres = await self.offres.find_matching_terms(postes, limit=10, with_tags=False)
        return {
            "postesExperience": postes,
            "offresCorrespondantes": [
                offre_summary(o, "type_offre", "entreprise", "localisation", "niveau_experience", *SALAIRE)
                for o in offres
            ],
            "nombreOffres": len(offres),
        }

    async def get_recommandations_personnalisees(self, user_id: int) -> dict:
        cv = await self._get_cv(user_id)
        user = (await self.db.execute(select(User).where(User.id == user_id))).scalars().first()
        if not cv:
            return {
                "message": "Créez votre CV pour recevoir des recommandations personnalisées",
                "recommandations": [],
            }

        terms = build_search_terms(
            cv.competences or [],
            [exp.poste for exp in cv.experiences],
            [form.diplome for form in cv.formations],
        )
        if not terms:
            return {
                "message": "Complétez votre CV avec vos compétences et expériences pour des recommandations",
                "recommandations": [],
            }

        commune = user.commune if user else None
        candidates = await self.offres.find_matching_terms(terms, limit=10)
        ranked = rank_offres(candidates, terms, commune)
        return {
            "criteresUtilises": terms,
            "localisationUtilisateur": commune or "Non renseignée",
            "recommandations": [
                {
                    **offre_summary(
                        offre, "type_offre", "entreprise", "localisation", "secteur", "niveau_experience", *SALAIRE
                    ),
                    "scoreRelevance": score,
                }
                for offre, score in ranked
            ],
            "nombreRecommandations": len(ranked),
        }

    # ==================== FAVORIS ET CANDIDATURES ====================

    async def get_user_favoris(self, user_id: int) -> dict:
        result = await self.db.execute(
            select(Favorite)
            .where(Favorite.user_id == user_id)
            .order_by(Favorite.created_at.desc(), Favorite.id.desc())
        )
        favoris = result.scalars().all()
        return {
            "favoris": [offre_summary(f.offre, "type_offre", "entreprise", "localisation") for f in favoris],
            "nombreFavoris": len(favoris),
        }

    async def get_user_candidatures(self, user_id: int) -> dict:
        result = await self.db.execute(
            select(Retour)
            .where(Retour.auteur_id == user_id)
            .order_by(Retour.date_publication.desc(), Retour.id.desc())
        )
        retours = result.scalars().all()
        return {
            "candidatures": [
                {
                    "offre": offre_summary(r.offre, "type_offre", "entreprise"),
                    "statut": r.statut,
                    "datePostulation": r.date_publication,
                    "message": r.contenu[:100] + "...",
                }
                for r in retours
            ],
            "nombreCandidatures": len(retours),
        }

    # ==================== RECHERCHE ====================

    async def search_offres(self, query: str) -> dict:
        offres = await self._offres(
            or_(
                Offre.titre.icontains(query, autoescape=True),
                Offre.description.icontains(query, autoescape=True),
                Offre.entreprise.icontains(query, autoescape=True),
                Offre.localisation.icontains(query, autoescape=True),
            )
        )
        return {
            "recherche": query,
            "offres": [
                offre_summary(o, "type_offre", "entreprise", "localisation", "secteur", "description")
                for o in offres
            ],
            "nombreOffres": len(offres),
        }

    async def get_offres_par_localisation(self, localisation: str) -> dict:
        offres = await self._offres(Offre.localisation.icontains(localisation, autoescape=True))
        return {
            "localisation": localisation,
            "offres": [offre_summary(o, "type_offre", "entreprise", "localisation", *SALAIRE) for o in offres],
            "nombreOffres": len(offres),
        }

    async def get_offres_par_type(self, type_offre: str) -> dict:
        offres = await self._offres(Offre.type_offre == type_offre)
        return {
            "typeOffre": type_offre,
            "offres": [
                offre_summary(o, "type_offre", "entreprise", "localisation", "secteur", *SALAIRE) for o in offres
            ],
            "nombreOffres": len(offres),
        }

    async def get_offres_par_secteur(self, secteur: str) -> dict:
        offres = await self._offres(Offre.secteur == secteur)
        return {
            "secteur": secteur,
            "offres": [
                offre_summary(o, "type_offre", "entreprise", "localisation", "niveau_experience", *SALAIRE)
                for o in offres
            ],
            "nombreOffres": len(offres),
        }

    async def get_formations_disponibles(self) -> dict:
        offres = await self._offres(Offre.type_offre == TypeOffre.FORMATION.value)
        return {
            "formations": [
                offre_summary(o, "organisme", "duree_formation", "certification", "localisation", "description")
                for o in offres
            ],
            "nombreFormations": len(offres),
        }

    async def get_bourses_disponibles(self) -> dict:
        offres = await self._offres(Offre.type_offre == TypeOffre.BOURSE.value)
        return {
            "bourses": [
                offre_summary(
                    o, "pays_bourse", "niveau_etude", "montant_bourse", "est_remboursable", "localisation", "description"
                )
                for o in offres
            ],
            "nombreBourses": len(offres),
        }

    async def get_volontariats_disponibles(self) -> dict:
        offres = await self._offres(Offre.type_offre == TypeOffre.VOLONTARIAT.value)
        return {
            "volontariats": [
                offre_summary(
                    o,
                    "type_volontariat",
                    "duree_volontariat",
                    "hebergement",
                    "indemnite",
                    "organisme",
                    "localisation",
                    "description",
                )
                for o in offres
            ],
            "nombreVolontariats": len(offres),
        }

    async def get_statistiques_offres(self) -> dict:
        par_type = await self.offres.count_by_type()
        return {
            "totalOffres": await self.offres.count(),
            "parType": [{"type": t, "count": c} for t, c in par_type.items()],
            "topSecteurs": await self.offres.count_by_secteur(limit=10),
            "topLocalisations": await self.offres.count_by_localisation(limit=10),
        }
