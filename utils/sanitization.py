# utils/sanitization.py
from typing import Optional
import re

CONTROL_CHARS = r"[\x00-\x08\x0b-\x0c\x0e-\x1f\x7f-\x9f]"


def clean_text(value: Optional[str]) -> str:
    if value is None:
        return ""

    text = re.sub(CONTROL_CHARS, "", value)
    text = text.strip()
    text = re.sub(r"\s+", " ", text)

    return text


def normalize_title(title: Optional[str]) -> str:
    """
    Key used to match a theory document title against paper metadata.
    Only case and surrounding whitespace are ignored; inner spacing must match.
    """
    if not title:
        return ""
    return title.lower().strip()


def normalize_theory_name(name: Optional[str]) -> str:
    """
    Fallback key for matching subtopic theory names against the theory pool:
    "Mental Schema Theories" -> "schema theory".
    """
    if not name:
        return ""
    text = name.lower()
    text = re.sub(r"theories$", "theory", text)
    text = re.sub(r"^mental\s+", "", text)
    return text.strip()
