"""Unit tests for mint spec models."""

import json

import pytest

from versemint.models.mint_config import (
    MintConfig,
    NewPhraseIndexRef,
    NewVerseIndexRef,
    PhraseIdRef,
    VerseIdRef,
)
from versemint.services.exceptions import ConfigError, InvalidMintConfig


class TestMintConfig:
    """Test parsing of mint spec files."""

    def test_parse_all_element_kinds(self):
        config = MintConfig.parse_data({
            "phrases": ["a"],
            "verses": [{
                "elements": [
                    {"kind": "phraseId", "value": "12"},
                    {"kind": "verseId", "value": "3"},
                    {"kind": "newPhraseIndex", "value": 0},
                ],
                "bases": [{"kind": "verseId", "value": "3"}],
                "expectedContent": "whatever",
            }, {
                "elements": [
                    {"kind": "newVerseIndex", "value": 0},
                    {"kind": "newPhraseIndex", "value": 0},
                ],
                "bases": [{"kind": "newVerseIndex", "value": 0}],
                "expectedContent": "x",
            }],
        })

        first, second = config.verses
        assert first.elements == [PhraseIdRef(value=12), VerseIdRef(value=3), NewPhraseIndexRef(value=0)]
        assert first.bases == [VerseIdRef(value=3)]
        assert first.expected_content == "whatever"
        assert isinstance(second.elements[0], NewVerseIndexRef)
        assert isinstance(second.bases[0], NewVerseIndexRef)

    def test_missing_bases_rejected(self):
        with pytest.raises(InvalidMintConfig):
            MintConfig.parse_data({
                "phrases": [],
                "verses": [{"elements": [], "expectedContent": ""}],
            })

    def test_missing_top_level_lists_rejected(self):
        with pytest.raises(InvalidMintConfig):
            MintConfig.parse_data({})
        with pytest.raises(InvalidMintConfig):
            MintConfig.parse_data({"phrases": ["a"]})

    def test_unknown_element_kind_rejected(self):
        with pytest.raises(InvalidMintConfig):
            MintConfig.parse_data({
                "phrases": [],
                "verses": [{"elements": [{"kind": "bogus", "value": 1}], "bases": [], "expectedContent": ""}],
            })

    def test_phrase_kinds_not_allowed_as_bases(self):
        with pytest.raises(InvalidMintConfig):
            MintConfig.parse_data({
                "phrases": [],
                "verses": [{
                    "elements": [],
                    "bases": [{"kind": "phraseId", "value": "1"}],
                    "expectedContent": "",
                }],
            })

    def test_index_must_be_a_number(self):
        with pytest.raises(InvalidMintConfig):
            MintConfig.parse_data({
                "phrases": ["a"],
                "verses": [{
                    "elements": [{"kind": "newPhraseIndex", "value": "0"}],
                    "bases": [],
                    "expectedContent": "",
                }],
            })

    def test_missing_expected_content_rejected(self):
        with pytest.raises(InvalidMintConfig):
            MintConfig.parse_data({"phrases": [], "verses": [{"elements": [], "bases": []}]})

    def test_phrases_must_be_strings(self):
        with pytest.raises(InvalidMintConfig):
            MintConfig.parse_data({"phrases": [1, 2], "verses": []})

    def test_invalid_mint_config_is_a_config_error(self):
        assert issubclass(InvalidMintConfig, ConfigError)

    def test_load_from_file(self, tmp_path):
        path = tmp_path / "mint.json"
        path.write_text(json.dumps({"phrases": ["hello"], "verses": []}))

        config = MintConfig.load(path)

        assert config.phrases == ["hello"]
        assert config.verses == []

    def test_load_malformed_json(self, tmp_path):
        path = tmp_path / "mint.json"
        path.write_text("{not json")

        with pytest.raises(InvalidMintConfig, match="not valid JSON"):
            MintConfig.load(path)
