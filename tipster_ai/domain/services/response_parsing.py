"""
Response Parsing Module

Turns generation service output into usable values:
- the text payload out of a response envelope
- the structured pick fields out of free model text

Parsing never touches the network, so it is tested on its own.
"""

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Optional

from tipster_ai.config import MAX_STAKE
from tipster_ai.domain.entities.prediction import ConfidenceLevel, PickFields
from tipster_ai.domain.exceptions import MalformedResponseException

logger = logging.getLogger(__name__)

# Pick stored when the model recommends not betting or cannot be parsed
PASS_PICK = "PASS / NO VALUE"
ABSTAIN_MARKERS = ("PASS", "PASAR", "NO BET", "NO VALUE", "NO VALOR")
# Markers only count at the start of the label: "Draw No Bet" is a real market
_ABSTAIN_RE = re.compile(r"^\W*(?:" + "|".join(ABSTAIN_MARKERS) + r")\b", re.I)

# Accepted aliases for each structured field
FIELD_ALIASES = {
    "pick": ("pick",),
    "confidence": ("confidence", "confianza"),
    "stake": ("stake",),
    "analysis": ("analysis", "analisis", "análisis"),
    "predicted_score": ("predicted_score", "score", "marcador"),
    "advice": ("advice", "consejo"),
}

_NUMBER_RE = re.compile(r"[-+]?\d+(?:[.,]\d+)?")


@dataclass
class PickParseResult:
    """
    Outcome of parse_structured_pick.

    Attributes:
        fields: Extracted fields (default sentinel values when nothing parsed)
        source: "json", "fields" or "default", the fallback step that succeeded
        error: Why strict JSON parsing failed, if it did
    """
    fields: PickFields
    source: str
    error: Optional[str] = None

    @property
    def is_default(self) -> bool:
        return self.source == "default"


def extract_response_text(envelope: Any) -> str:
    """
    Get the text payload out of a generation response envelope.

    Supported shapes:
        {"text": "..."} or an object with a ``text`` attribute (or method)
        {"candidates": [{"content": {"parts": [{"text": "..."}]}}]}

    Raises:
        MalformedResponseException: if neither shape is present
    """
    text = envelope.get("text") if isinstance(envelope, dict) else getattr(envelope, "text", None)
    if callable(text):
        text = text()
    if isinstance(text, str):
        return text

    candidates = envelope.get("candidates") if isinstance(envelope, dict) else getattr(envelope, "candidates", None)
    if isinstance(candidates, list):
        for candidate in candidates:
            content = candidate.get("content") if isinstance(candidate, dict) else None
            parts = content.get("parts") if isinstance(content, dict) else None
            if not isinstance(parts, list):
                continue
            texts = [p["text"] for p in parts if isinstance(p, dict) and isinstance(p.get("text"), str)]
            if texts:
                return "".join(texts)

    raise MalformedResponseException(
        f"No text payload in response envelope ({type(envelope).__name__})"
    )


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences (```json ... ```) around model output."""
    t = (text or "").strip()
    if len(t) >= 6 and t.startswith("```") and t.endswith("```"):
        inner = t[3:-3].strip()
        m = re.match(r"^[A-Za-z0-9_+-]+\n(.*)$", inner, flags=re.S)
        return (m.group(1) if m else inner).strip()
    return t.replace("```json", "").replace("```", "").strip()


def is_pass_pick(pick: Optional[str]) -> bool:
    """Check whether a pick label signals an abstain / no-value recommendation."""
    if not pick or not pick.strip():
        return True
    return _ABSTAIN_RE.match(pick) is not None


def coerce_stake(value: Any) -> float:
    """Read a stake from a number or text like "7/10" and clamp it to 0..MAX_STAKE."""
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        stake = float(value)
    else:
        m = _NUMBER_RE.search(str(value or ""))
        if not m:
            return 0.0
        stake = float(m.group(0).replace(",", "."))
    return max(0.0, min(stake, MAX_STAKE))


def _lookup(data: dict, name: str) -> Any:
    for alias in FIELD_ALIASES[name]:
        if alias in data and data[alias] is not None:
            return data[alias]
    return None


def _fields_from_mapping(data: dict) -> Optional[PickFields]:
    pick = _lookup(data, "pick")
    if not isinstance(pick, str) or not pick.strip():
        return None

    confidence = ConfidenceLevel.from_label(_lookup(data, "confidence"))
    return PickFields(
        pick=pick.strip(),
        confidence=confidence,
        stake=coerce_stake(_lookup(data, "stake")),
        analysis=str(_lookup(data, "analysis") or "").strip(),
        predicted_score=str(_lookup(data, "predicted_score") or "?").strip(),
        advice=str(_lookup(data, "advice") or "").strip(),
    )


def _parse_json(text: str) -> dict:
    cleaned = strip_code_fences(text)
    first_open = cleaned.find("{")
    last_close = cleaned.rfind("}")
    if first_open == -1 or last_close < first_open:
        raise ValueError("no JSON object found")
    data = json.loads(cleaned[first_open:last_close + 1])
    if not isinstance(data, dict):
        raise ValueError("JSON payload is not an object")
    return data


def _extract_fields(text: str) -> dict:
    """Best-effort `"key": value` scan for truncated or invalid JSON."""
    found = {}
    for aliases in FIELD_ALIASES.values():
        for alias in aliases:
            pattern = r'"?' + re.escape(alias) + r'"?\s*:\s*(?:"((?:[^"\\]|\\.)*)"|([-+]?\d+(?:[.,]\d+)?))'
            m = re.search(pattern, text, flags=re.I)
            if m:
                found[alias] = m.group(1) if m.group(1) is not None else m.group(2)
                break
    return found


def parse_structured_pick(text: str) -> PickParseResult:
    """
    Extract pick fields from model output.

    Fallback chain: strict JSON -> field-by-field extraction -> default
    sentinel (pass pick, stake 0, LOW confidence, raw text as analysis).
    """
    raw = text or ""
    error = None

    try:
        fields = _fields_from_mapping(_parse_json(raw))
        if fields:
            return PickParseResult(fields=fields, source="json")
        error = "JSON object has no pick"
    except ValueError as e:
        # json.JSONDecodeError is a ValueError
        error = str(e)
        logger.debug(f"Strict JSON parse failed: {e}")

    fields = _fields_from_mapping(_extract_fields(raw))
    if fields:
        return PickParseResult(fields=fields, source="fields", error=error)

    logger.info("Could not read a pick from model output, storing it as a pass")
    return PickParseResult(
        fields=PickFields(
            pick=PASS_PICK,
            confidence=ConfidenceLevel.LOW,
            stake=0.0,
            analysis=raw.strip(),
        ),
        source="default",
        error=error,
    )
