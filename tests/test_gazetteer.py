# tests/test_gazetteer.py

from annotator.detect_gazetteer import GazetteerAnnotator
from annotator.models import Span


TERMS = {
    "New York": "ny",
    "New York City": "nyc",
    "Berlin": "berlin",
    "C++": "cpp",
}


def test_finds_whole_words_only():
    annotate = GazetteerAnnotator(TERMS)
    text = "Berlin, not Berliner."
    assert annotate(text) == [Span(0, 6, "berlin")]


def test_longest_term_wins():
    annotate = GazetteerAnnotator(TERMS)
    text = "From New York City to New York."
    spans = annotate(text)
    assert spans == [Span(5, 13, "nyc"), Span(22, 8, "ny")]
    assert text[5:18] == "New York City"


def test_case_insensitive_by_default():
    annotate = GazetteerAnnotator(TERMS)
    assert annotate("berlin") == [Span(0, 6, "berlin")]


def test_case_sensitive():
    annotate = GazetteerAnnotator(TERMS, case_sensitive=True)
    assert annotate("berlin Berlin") == [Span(7, 6, "berlin")]


def test_special_characters_are_escaped():
    annotate = GazetteerAnnotator(TERMS)
    assert annotate("I write C++ daily") == [Span(8, 3, "cpp")]


def test_no_terms():
    assert GazetteerAnnotator({})("anything at all") == []
