"""Prompts sent to the vision model."""


COVER_EXTRACTION_PROMPT = """Analyse cette page de bande dessinée (couverture ou page de titre) et extrais les informations bibliographiques au format JSON, exactement selon ce schéma :
{
  "title": {
    "main": "titre principal",
    "subtitle": "sous-titre éventuel",
    "series": "nom de la série",
    "volume": "numéro du tome"
  },
  "creators": {
    "authors": [
      {"name": "Nom de l'auteur", "role": "scénario | dessin | couleurs | auteur"}
    ],
    "publisher": "éditeur"
  },
  "metadata": {
    "language": "langue",
    "isbn": "ISBN si visible",
    "price": "prix si visible"
  },
  "confidence": {
    "title": 0,
    "authors": 0,
    "overall": 0
  },
  "notes": "remarques éventuelles"
}

Les valeurs de confiance sont des entiers entre 0 et 100.
Si tu ne peux pas identifier clairement une information, mets null pour ce champ.
Réponds uniquement avec l'objet JSON."""


def get_cover_extraction_prompt() -> str:
    """Return the fixed structured-extraction prompt for a cover page."""
    return COVER_EXTRACTION_PROMPT
