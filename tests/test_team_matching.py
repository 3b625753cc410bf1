import pytest

from tipster_ai.domain.services.team_matching import names_likely_match, normalize_team_name


def test_normalize_team_name():
    assert normalize_team_name("  Club Atlético de Madrid ") == "club atletico de madrid"
    assert normalize_team_name("Brighton & Hove Albion FC") == "brighton hove albion fc"


@pytest.mark.parametrize("a,b", [
    ("Real Madrid CF", "Real Madrid"),
    ("Real Madrid", "Real Madrid CF"),
    ("Atlético Madrid", "Atletico Madrid"),
    ("ARSENAL FC", "arsenal"),
])
def test_names_that_match(a, b):
    assert names_likely_match(a, b) is True


@pytest.mark.parametrize("a,b", [
    ("Arsenal", "Chelsea"),
    ("", "Arsenal"),
    ("Arsenal", ""),
    ("Real Madrid", "Real Sociedad"),
])
def test_names_that_do_not_match(a, b):
    assert names_likely_match(a, b) is False


def test_heuristic_accepts_contained_names():
    """Known weakness: a name contained in another club's name matches."""
    assert names_likely_match("Inter", "Inter Miami") is True
