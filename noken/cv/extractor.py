import logging

from noken.config import settings
from noken.cv.schemas import LIST_FIELDS
from noken.exceptions import BadRequestError
from noken.utils.llm import complete, extract_json
from noken.utils.pdf import extract_text_from_pdf

logger = logging.getLogger(__name__)

MIN_TEXT_LENGTH = 50

EXTRACTION_PROMPT = """Tu es un expert en extraction d'informations de CV.
Ton rôle est d'analyser le texte d'un CV et d'extraire toutes les informations pertinentes de manière structurée.

Tu dois extraire les informations suivantes et les retourner en JSON valide:
- titreProfessionnel: Le titre ou poste actuel/recherché
- telephone: Numéro de téléphone
- adresse: Adresse complète
- ville: Ville
- codePostal: Code postal
- pays: Pays
- linkedin: URL LinkedIn
- siteWeb: Site web personnel
- github: URL GitHub
- resume: Résumé professionnel ou objectif de carrière
- competences: Liste des compétences techniques et soft skills (tableau de strings)
- langues: Liste des langues parlées avec niveau si disponible (tableau de strings, ex: "Français (Natif)", "Anglais (B2)")
- certifications: Liste des certifications (tableau de strings)
- interets: Centres d'intérêt (tableau de strings)
- experiences: Liste des expériences professionnelles avec:
  - poste: Intitulé du poste
  - entreprise: Nom de l'entreprise
  - ville: Ville (optionnel)
  - dateDebut: Date de début au format YYYY-MM-DD (utilise le premier jour du mois si seul le mois est donné)
  - dateFin: Date de fin au format YYYY-MM-DD (null si en cours)
  - enCours: true si c'est le poste actuel
  - description: Description des missions/responsabilités
- formations: Liste des formations avec:
  - diplome: Nom du diplôme
  - etablissement: Nom de l'école/université
  - ville: Ville (optionnel)
  - dateDebut: Date de début au format YYYY-MM-DD
  - dateFin: Date de fin au format YYYY-MM-DD (null si en cours)
  - enCours: true si formation en cours
  - description: Description ou spécialisation

IMPORTANT:
- Retourne UNIQUEMENT du JSON valide, sans texte avant ou après
- Si une information n'est pas trouvée, utilise null pour les strings et [] pour les tableaux
- Les dates doivent être au format YYYY-MM-DD. Si seule l'année est donnée, utilise YYYY-01-01
- Trie les expériences et formations par date de début décroissante (plus récent en premier)"""


async def extract_cv_data(client, pdf_text: str) -> dict:
    content = await complete(
        client,
        settings.OPENAI_CV_MODEL,
        [
            {"role": "system", "content": EXTRACTION_PROMPT},
            {"role": "user", "content": f"Voici le contenu du CV à analyser:\n\n{pdf_text}"},
        ],
        temperature=0.1,
        max_tokens=4000,
    )
    data = extract_json(content)
    if data is None:
        raise ValueError("Impossible de parser la réponse JSON")

    for field in LIST_FIELDS + ("experiences", "formations"):
        if not data.get(field):
            data[field] = []
    return data


async def process_pdf(client, content: bytes) -> dict:
    """Texte du PDF puis extraction structurée par le modèle."""
    pdf_text = extract_text_from_pdf(content)
    if len(pdf_text) < MIN_TEXT_LENGTH:
        raise BadRequestError("Le PDF ne contient pas assez de texte exploitable")

    logger.info(f"📄 {len(pdf_text)} caractères extraits du PDF")
    data = await extract_cv_data(client, pdf_text)
    logger.info(f"✅ Extraction: {len(data['experiences'])} expérience(s), {len(data['formations'])} formation(s)")
    return data


def keep_dated_entries(data: dict) -> dict:
    """Écarte les expériences et formations sans date de début avant sauvegarde."""
    for field in ("experiences", "formations"):
        entries = data.get(field) or []
        kept = [entry for entry in entries if isinstance(entry, dict) and entry.get("dateDebut")]
        if len(kept) < len(entries):
            logger.warning(f"⚠️ {len(entries) - len(kept)} entrée(s) '{field}' sans date de début ignorée(s)")
        data[field] = kept
    return data
