"""
Response interpretation. Format compliance is only requested of the model,
never enforced: the text is kept as-is and a missing confidence line is
just missing metadata.
"""
import re

from app.errors import EmptyModelResponse
from app.models.domain import Confidence, Interpretation

CONFIDENCE_PATTERN = re.compile(r"confidence:\s*(low|medium|high)\b", re.IGNORECASE)


def parse_confidence(text: str | None) -> Confidence | None:
    if not text:
        return None
    match = CONFIDENCE_PATTERN.search(text)
    if not match:
        return None
    return Confidence(match.group(1).title())


def interpret(result_text: str | None) -> Interpretation:
    text = (result_text or "").strip()
    if not text:
        raise EmptyModelResponse()
    return Interpretation(text=text, confidence=parse_confidence(text))
