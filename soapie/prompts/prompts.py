import json

from soapie.config.settings import settings
from soapie.llm.base import StructuringRequest
from soapie.models.record import empty_record
from soapie.pipeline.errors import InvalidInput


def _schema_template() -> str:
    return json.dumps(empty_record().model_dump(mode="json"), ensure_ascii=False, indent=2)


SOAPIE_SYSTEM_PROMPT = """Tu es un modèle spécialisé en structuration de données cliniques pour les soins infirmiers.
Tu transformes une transcription vocale infirmière en un rapport au format SOAPIE.

RÈGLES :
1. NE JAMAIS inventer de données : aucun signe vital, valeur, symptôme, traitement ou information patient qui n'est pas prononcé explicitement.
2. Si une information n'est pas mentionnée, laisse le champ vide ("" pour une chaîne, [] pour une liste). Ne devine pas, n'écris pas de valeur de remplacement.
3. Corrige les fautes évidentes de transcription (ex : "tensio" -> "tension artérielle", "spo" -> "SpO2") sans jamais changer le sens clinique.
4. Ne déduis jamais le sexe à partir du prénom. N'ajoute ni conseil ni diagnostic non mentionné.
5. full_name est le nom du patient, jamais celui du médecin ou de l'infirmière.
6. I (interventions) et O.medications sont des tableaux JSON ; un médicament peut être une chaîne ou un objet {{"name": "", "dose": "", "route": ""}}.
7. Réponds UNIQUEMENT avec un objet JSON valide, sans texte autour, sans bloc de code, sans autre clé que celles du schéma.

SCHÉMA EXACT :
{schema}"""

TRANSCRIPTION_PROMPT = """Transcription à structurer :

{transcription}"""


def build_system_prompt() -> str:
    return SOAPIE_SYSTEM_PROMPT.format(schema=_schema_template())


def build_structuring_prompt(transcription: str) -> StructuringRequest:
    """Assemble the fixed rule set, the target schema and the transcription."""
    text = (transcription or "").strip() if isinstance(transcription, str) else ""
    if not text:
        raise InvalidInput("transcription is empty")
    return StructuringRequest(
        system_prompt=build_system_prompt(),
        user_prompt=TRANSCRIPTION_PROMPT.format(transcription=text),
        temperature=settings.STRUCTURING_TEMPERATURE,
        max_output_tokens=settings.STRUCTURING_MAX_OUTPUT_TOKENS,
        json_mode=True,
    )
