"""Unit tests for mint spec validation."""

import pytest

from versemint.models.mint_config import MintConfig
from versemint.services.commitments import format_bytes32
from versemint.services.exceptions import (
    BadPhraseRef,
    ConfigError,
    EmptyVerse,
    ForwardOrSelfVerseRef,
    PhraseEmpty,
    PhraseTooLong,
    SingleElementVerse,
)
from versemint.services.validator import validate_config


def new_phrase(index):
    return {"kind": "newPhraseIndex", "value": index}


def new_verse(index):
    return {"kind": "newVerseIndex", "value": index}


def config(phrases=(), verses=()):
    return MintConfig.parse_data({"phrases": list(phrases), "verses": list(verses)})


def verse(*elements, bases=(), expected=""):
    return {"elements": list(elements), "bases": list(bases), "expectedContent": expected}


class TestPhraseRules:
    """Test phrase checks."""

    def test_valid_phrases_encoded_in_order(self):
        result = validate_config(config(["hello", "world"]))
        assert result.phrases_bytes32 == [format_bytes32("hello"), format_bytes32("world")]

    def test_empty_phrase_rejected(self):
        with pytest.raises(PhraseEmpty) as exc_info:
            validate_config(config(["ok", ""]))
        assert exc_info.value.item_index == 1

    def test_too_long_phrase_rejected(self):
        with pytest.raises(PhraseTooLong) as exc_info:
            validate_config(config(["x" * 40]))
        assert exc_info.value.item_index == 0
        assert exc_info.value.byte_length == 40


class TestVerseRules:
    """Test verse checks."""

    def test_empty_verse_rejected(self):
        with pytest.raises(EmptyVerse) as exc_info:
            validate_config(config(["a"], [verse()]))
        assert exc_info.value.item_index == 0

    def test_single_element_verse_rejected(self):
        with pytest.raises(SingleElementVerse):
            validate_config(config(["a"], [verse(new_phrase(0))]))

    def test_two_element_verse_accepted(self):
        result = validate_config(config(["a"], [verse(new_phrase(0), new_phrase(0))]))
        assert len(result.phrases_bytes32) == 1

    def test_phrase_ref_out_of_range(self):
        with pytest.raises(BadPhraseRef) as exc_info:
            validate_config(config(["a"], [verse(new_phrase(0), new_phrase(1))]))
        assert exc_info.value.element_index == 1
        assert exc_info.value.value == 1

    def test_negative_phrase_ref(self):
        with pytest.raises(BadPhraseRef):
            validate_config(config(["a"], [verse(new_phrase(-1), new_phrase(0))]))

    def test_self_reference_rejected(self):
        with pytest.raises(ForwardOrSelfVerseRef) as exc_info:
            validate_config(config(["a"], [
                verse(new_phrase(0), new_phrase(0)),
                verse(new_phrase(0), new_verse(1)),
            ]))
        assert exc_info.value.item_index == 1

    def test_forward_reference_rejected(self):
        with pytest.raises(ForwardOrSelfVerseRef):
            validate_config(config(["a"], [
                verse(new_phrase(0), new_verse(1)),
                verse(new_phrase(0), new_phrase(0)),
            ]))

    def test_backward_reference_accepted(self):
        validate_config(config(["a"], [
            verse(new_phrase(0), new_phrase(0)),
            verse(new_verse(0), new_phrase(0)),
        ]))

    def test_forward_base_rejected(self):
        with pytest.raises(ForwardOrSelfVerseRef) as exc_info:
            validate_config(config(["a"], [
                verse(new_phrase(0), new_phrase(0), bases=[new_verse(0)]),
            ]))
        assert exc_info.value.field == "base"

    def test_existing_ids_are_not_range_checked(self):
        validate_config(config([], [verse(
            {"kind": "phraseId", "value": "999"},
            {"kind": "verseId", "value": "999"},
        )]))

    def test_every_rule_is_a_config_error(self):
        for error in (PhraseEmpty, PhraseTooLong, EmptyVerse, SingleElementVerse,
                      BadPhraseRef, ForwardOrSelfVerseRef):
            assert issubclass(error, ConfigError)
