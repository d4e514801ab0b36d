"""
Recommandations d'offres par mots-clés.

Les termes de recherche viennent du CV (5 compétences, 3 postes, 2 diplômes). Chaque offre
candidate reçoit +2 par terme présent dans "titre secteur" et +3 si la commune de l'utilisateur
apparaît dans sa localisation.
"""
from typing import Iterable, List, Optional, Sequence

MAX_COMPETENCES = 5
MAX_POSTES = 3
MAX_DIPLOMES = 2
TERM_SCORE = 2
COMMUNE_BONUS = 3
MAX_RECOMMANDATIONS = 8


def build_search_terms(competences: Sequence[str], postes: Sequence[str], diplomes: Sequence[str]) -> List[str]:
    terms = []
    terms.extend(t for t in list(competences or [])[:MAX_COMPETENCES] if t)
    terms.extend(t for t in list(postes or [])[:MAX_POSTES] if t)
    terms.extend(t for t in list(diplomes or [])[:MAX_DIPLOMES] if t)
    return terms


def score_offre(titre: str, secteur: Optional[str], localisation: Optional[str], terms: Iterable[str], commune: Optional[str]) -> int:
    haystack = f"{titre} {secteur or ''}".lower()
    score = sum(TERM_SCORE for term in terms if term.lower() in haystack)
    if commune and localisation and commune.lower() in localisation.lower():
        score += COMMUNE_BONUS
    return score


def rank_offres(offres: Sequence, terms: Sequence[str], commune: Optional[str], limit: int = MAX_RECOMMANDATIONS) -> List[tuple]:
    """Retourne [(offre, score)] trié par score décroissant ; l'ordre d'entrée départage les égalités."""
    scored = [
        (offre, score_offre(offre.titre, offre.secteur, offre.localisation, terms, commune))
        for offre in offres
    ]
    scored.sort(key=lambda pair: pair[1], reverse=True)
    return scored[:limit]
