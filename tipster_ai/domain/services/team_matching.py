"""
Team Name Matching

The results API and the data captured when a pick was created do not
always format club names the same way ("Real Madrid CF" vs "Real Madrid").
This is a heuristic, not a guaranteed join: two different clubs whose
names contain one another ("Inter" / "Inter Miami") will match.
"""

import re
import unicodedata


def normalize_team_name(name: str) -> str:
    """Lowercase, strip accents and collapse whitespace and punctuation."""
    text = unicodedata.normalize("NFKD", name or "")
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    text = re.sub(r"[^\w\s]", " ", text.casefold())
    return " ".join(text.split())


def names_likely_match(a: str, b: str) -> bool:
    """True when one normalized name contains the other. Empty names never match."""
    na, nb = normalize_team_name(a), normalize_team_name(b)
    if not na or not nb:
        return False
    return na in nb or nb in na
