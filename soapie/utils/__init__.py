from soapie.utils.note_render import build_clean_note
from soapie.utils.text_cleaning import clean_transcription

__all__ = [
    "build_clean_note",
    "clean_transcription",
]
