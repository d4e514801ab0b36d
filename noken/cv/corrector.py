import json
import logging

from noken.config import settings
from noken.utils.llm import complete, extract_json

logger = logging.getLogger(__name__)

CORRECTION_PROMPT = """Tu es un expert en rédaction de CV professionnels en français.
Ton rôle est d'analyser et corriger un CV pour le rendre impeccable et professionnel.

Tu dois:
1. Corriger toutes les fautes d'orthographe et de grammaire
2. Améliorer le style pour qu'il soit professionnel et adapté à un CV
3. Reformuler les phrases maladroites
4. Utiliser un vocabulaire professionnel et percutant
5. Garder le sens original tout en améliorant la qualité

IMPORTANT:
- Retourne UNIQUEMENT du JSON valide
- Conserve la structure exacte des données d'entrée
- Pour chaque modification, ajoute une entrée dans le tableau "corrections"
- Si aucune correction n'est nécessaire pour un champ, garde la valeur originale
- Les tableaux (competences, langues, etc.) doivent rester des tableaux
- Ne modifie PAS les noms d'entreprises, d'établissements ou de villes
- Les dates ne doivent pas être modifiées

Format de sortie attendu:
{
  "titreProfessionnel": "...",
  "resume": "...",
  "competences": [...],
  "langues": [...],
  "certifications": [...],
  "interets": [...],
  "experiences": [...],
  "formations": [...],
  "corrections": [
    {
      "field": "nom du champ",
      "original": "texte original",
      "corrected": "texte corrigé",
      "reason": "raison de la correction"
    }
  ]
}"""


async def correct_cv(client, cv_data: dict) -> dict:
    """Version corrigée du CV ; en cas d'échec, les données d'origine sans corrections."""
    try:
        content = await complete(
            client,
            settings.OPENAI_CV_MODEL,
            [
                {"role": "system", "content": CORRECTION_PROMPT},
                {
                    "role": "user",
                    "content": "Voici les données du CV à corriger et améliorer:\n\n"
                    + json.dumps(cv_data, ensure_ascii=False, indent=2, default=str),
                },
            ],
            temperature=0.3,
            max_tokens=4000,
        )
        corrected = extract_json(content)
        if corrected is None:
            raise ValueError("Impossible de parser la réponse JSON")
    except Exception as e:
        logger.error(f"❌ Erreur lors de la correction du CV: {e}")
        return {**cv_data, "corrections": []}

    corrected.setdefault("corrections", [])
    logger.info(f"CV corrigé avec {len(corrected['corrections'])} correction(s)")
    return corrected
