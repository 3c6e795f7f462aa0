import pytest

from threat_relay.classifier import classify, decide_threat, is_threat_description, parse_boolean_like
from threat_relay.schemas import FlaggedResult, TextResult


def test_negation_beats_strong_keyword():
    assert classify("I see no weapon here") is False


def test_strong_keyword():
    assert classify("There is a gun in the photo") is True


def test_weak_keyword_with_certainty():
    assert classify("This looks suspicious and a threat was detected") is True


def test_weak_keyword_alone():
    assert classify("This is a suspicious pattern") is False


@pytest.mark.parametrize("text", ["", None])
def test_empty_input(text):
    assert classify(text) is False


def test_negation_outside_window_does_not_suppress():
    # nine words sit between "no" and "gun"
    text = "There is no doubt that the man in the corner holds a gun"
    assert classify(text) is True


def test_negation_inside_window_suppresses():
    # five words between "not" and "weapon"
    assert classify("I could not find anything resembling a real weapon") is False


def test_negation_window_boundary():
    assert classify("no one in the room holds a gun") is False
    assert classify("no one in the room is holding a gun") is True


def test_contracted_negation():
    assert classify("There isn't any weapon visible") is False


def test_contracted_negation_typographic_apostrophe():
    assert classify("There isn’t any weapon visible") is False
    assert classify("The man doesn’t hold a gun") is False


@pytest.mark.parametrize("text", [
    "NO THREAT DETECTED",
    "Without any danger to people nearby",
    "It is unlikely that this is a bomb",
    "There is none, the bag has never held a knife",
])
def test_negation_words(text):
    assert classify(text) is False


def test_case_insensitive():
    assert classify("A man holding a RIFLE") is True


def test_whole_word_matching():
    # "gunther", "shotgunner" and "risky" are not keywords
    assert classify("Gunther is smiling at the shotgunner sign") is False
    assert classify("A risky climb that seems fun") is False


def test_strong_keyword_list():
    for word in ["pistol", "explosion", "grenade", "shooter", "hostage", "stabbing"]:
        assert classify(f"the image shows a {word}") is True


def test_weak_keyword_with_hedge():
    assert classify("The ledge appears unsafe for children") is True
    assert classify("Smoke indicating a possible hazard") is True


def test_idempotent():
    text = "There might be a risk near the door"
    assert classify(text) == classify(text) is True


def test_alias():
    assert is_threat_description is classify


@pytest.mark.parametrize("value, expected", [
    (True, True),
    (False, False),
    (1, True),
    (0, False),
    (0.5, True),
    (0.0, False),
    ("true", True),
    (" YES ", True),
    ("1", True),
    ("y", True),
    ("no", False),
    ("false", False),
    ("", False),
    (None, False),
    ([], False),
])
def test_parse_boolean_like(value, expected):
    assert parse_boolean_like(value) is expected


def test_decide_threat_text_result():
    assert decide_threat(TextResult(text="A knife on the table")) is True
    assert decide_threat(TextResult(text="Could not analyse image")) is False


def test_decide_threat_flag_wins():
    result = FlaggedResult.from_mapping({"alert": "yes", "description": "A calm street"})
    assert decide_threat(result) is True


def test_decide_threat_false_flags_fall_back_to_description():
    result = FlaggedResult.from_mapping({"hasThreat": False, "description": "A gun on the seat"})
    assert decide_threat(result) is True


def test_decide_threat_description_only():
    result = FlaggedResult.from_mapping({"description": "explosive device identified"})
    assert decide_threat(result) is True


def test_decide_threat_no_flags_no_description():
    assert decide_threat(FlaggedResult()) is False


def test_decide_threat_errors_are_not_alarms(monkeypatch):
    def boom(text):
        raise RuntimeError("bad regex day")

    monkeypatch.setattr("threat_relay.classifier.classify", boom)
    assert decide_threat(TextResult(text="A gun")) is False
