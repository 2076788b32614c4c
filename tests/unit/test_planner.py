"""Unit tests for BatchPlanner."""

import pytest

from versemint.models.mint_config import NewPhraseIndexRef, PhraseIdRef, VerseIdRef
from versemint.models.prepared import ExistingResolvedPhrase, NewResolvedPhrase
from versemint.services.commitments import (
    NEW_PHRASE_IDX_EL_KIND,
    NEW_VERSE_IDX_EL_KIND,
    PHRASE_ID_EL_KIND,
    VERSE_ID_EL_KIND,
    format_bytes32,
)
from versemint.services.exceptions import ContentMismatch, SingleElementVerse
from versemint.services.planner import prepare_element


def ref(kind, value):
    return {"kind": kind, "value": value}


class TestPhraseDedupe:
    """Test classification of requested phrases."""

    @pytest.mark.asyncio
    async def test_all_new_phrases(self, plan):
        batch = await plan({"phrases": ["hello", "world"], "verses": []})

        assert batch.resolved_phrases == [
            NewResolvedPhrase(value=format_bytes32("hello"), orig="hello"),
            NewResolvedPhrase(value=format_bytes32("world"), orig="world"),
        ]
        assert batch.prepared_phrases == [format_bytes32("hello"), format_bytes32("world")]
        assert batch.new_phrases == ["hello", "world"]
        assert batch.existing_phrases == []

    @pytest.mark.asyncio
    async def test_existing_phrase_not_prepared(self, ledger, plan):
        hello = await ledger.seed_phrase("hello")
        batch = await plan({"phrases": ["hello", "world"], "verses": []})

        assert batch.resolved_phrases[0] == ExistingResolvedPhrase(value=hello, orig="hello")
        assert batch.prepared_phrases == [format_bytes32("world")]
        assert batch.existing_phrases == ["hello"]

    @pytest.mark.asyncio
    async def test_duplicate_texts_classified_identically(self, ledger, plan):
        await ledger.seed_phrase("old")
        batch = await plan({"phrases": ["new", "old", "new", "old"], "verses": []})

        assert batch.resolved_phrases[0] == batch.resolved_phrases[2]
        assert batch.resolved_phrases[1] == batch.resolved_phrases[3]

    @pytest.mark.asyncio
    async def test_duplicates_within_batch_not_collapsed(self, plan):
        batch = await plan({"phrases": ["same", "same"], "verses": []})
        assert batch.prepared_phrases == [format_bytes32("same")] * 2

    @pytest.mark.asyncio
    async def test_all_existing_makes_empty_batch(self, ledger, plan):
        await ledger.seed_phrase("hello")
        batch = await plan({"phrases": ["hello"], "verses": []})
        assert batch.is_empty


class TestReferenceRewriting:
    """Test rewriting of new-phrase references."""

    @pytest.mark.asyncio
    async def test_existing_phrase_becomes_phrase_id(self, ledger, plan):
        hello = await ledger.seed_phrase("hello")
        batch = await plan({
            "phrases": ["hello", "world"],
            "verses": [{
                "elements": [ref("newPhraseIndex", 0), ref("newPhraseIndex", 1)],
                "bases": [],
                "expectedContent": "helloworld",
            }],
        })

        assert batch.verses[0].elements == [PhraseIdRef(value=hello), NewPhraseIndexRef(value=0)]
        assert batch.prepared_verses[0].element_pairs() == [
            (PHRASE_ID_EL_KIND, hello),
            (NEW_PHRASE_IDX_EL_KIND, 0),
        ]

    @pytest.mark.asyncio
    async def test_new_phrase_renumbered_to_prepared_position(self, ledger, plan):
        await ledger.seed_phrase("a")
        batch = await plan({
            "phrases": ["a", "b", "c"],
            "verses": [{
                "elements": [ref("newPhraseIndex", 2), ref("newPhraseIndex", 1)],
                "bases": [],
                "expectedContent": "cb",
            }],
        })

        assert batch.verses[0].elements == [NewPhraseIndexRef(value=1), NewPhraseIndexRef(value=0)]

    @pytest.mark.asyncio
    async def test_bases_and_verse_refs_prepared(self, ledger, plan):
        a = await ledger.seed_phrase("a")
        existing = await ledger.seed_verse([(PHRASE_ID_EL_KIND, a), (PHRASE_ID_EL_KIND, a)])
        batch = await plan({
            "phrases": ["b"],
            "verses": [
                {
                    "elements": [ref("verseId", str(existing)), ref("newPhraseIndex", 0)],
                    "bases": [ref("verseId", str(existing))],
                    "expectedContent": "aab",
                },
                {
                    "elements": [ref("newVerseIndex", 0), ref("phraseId", str(a))],
                    "bases": [ref("newVerseIndex", 0)],
                    "expectedContent": "aaba",
                },
            ],
        })

        first, second = batch.prepared_verses
        assert first.bases[0].kind == VERSE_ID_EL_KIND
        assert second.element_pairs() == [(NEW_VERSE_IDX_EL_KIND, 0), (PHRASE_ID_EL_KIND, a)]
        assert second.bases[0].kind == NEW_VERSE_IDX_EL_KIND

    def test_prepare_element_covers_every_kind(self):
        assert prepare_element(PhraseIdRef(value=3)).kind == PHRASE_ID_EL_KIND
        assert prepare_element(VerseIdRef(value=3)).kind == VERSE_ID_EL_KIND

    def test_prepare_element_rejects_unknown_reference(self):
        with pytest.raises(AssertionError, match="Unreachable"):
            prepare_element("phraseId")


class TestContentVerification:
    """Test local derivation and the content gate."""

    @pytest.mark.asyncio
    async def test_new_phrases_concatenate(self, plan):
        batch = await plan({
            "phrases": ["a", "b"],
            "verses": [{
                "elements": [ref("newPhraseIndex", 0), ref("newPhraseIndex", 1)],
                "bases": [],
                "expectedContent": "ab",
            }],
        })
        assert batch.verse_contents == ["ab"]

    @pytest.mark.asyncio
    async def test_mismatch_aborts(self, ledger, plan):
        with pytest.raises(ContentMismatch) as exc_info:
            await plan({
                "phrases": ["a", "b"],
                "verses": [{
                    "elements": [ref("newPhraseIndex", 0), ref("newPhraseIndex", 1)],
                    "bases": [],
                    "expectedContent": "ba",
                }],
            })

        assert exc_info.value.verse_index == 0
        assert exc_info.value.expected == "ba"
        assert exc_info.value.actual == "ab"
        assert ledger.transactions == []

    @pytest.mark.asyncio
    async def test_later_verse_uses_earlier_derived_content(self, plan):
        batch = await plan({
            "phrases": ["a", "b", "c"],
            "verses": [
                {
                    "elements": [ref("newPhraseIndex", 0), ref("newPhraseIndex", 1)],
                    "bases": [],
                    "expectedContent": "ab",
                },
                {
                    "elements": [ref("newVerseIndex", 0), ref("newPhraseIndex", 2), ref("newVerseIndex", 0)],
                    "bases": [],
                    "expectedContent": "abcab",
                },
            ],
        })
        assert batch.verse_contents == ["ab", "abcab"]

    @pytest.mark.asyncio
    async def test_mismatch_in_later_verse_reports_its_index(self, plan):
        with pytest.raises(ContentMismatch) as exc_info:
            await plan({
                "phrases": ["a", "b"],
                "verses": [
                    {
                        "elements": [ref("newPhraseIndex", 0), ref("newPhraseIndex", 1)],
                        "bases": [],
                        "expectedContent": "ab",
                    },
                    {
                        "elements": [ref("newVerseIndex", 0), ref("newVerseIndex", 0)],
                        "bases": [],
                        "expectedContent": "ab",
                    },
                ],
            })
        assert exc_info.value.verse_index == 1
        assert exc_info.value.actual == "abab"

    @pytest.mark.asyncio
    async def test_existing_verse_resolved_from_ledger(self, ledger, plan):
        x = await ledger.seed_phrase("x")
        existing = await ledger.seed_verse([(PHRASE_ID_EL_KIND, x), (PHRASE_ID_EL_KIND, x)])
        batch = await plan({
            "phrases": ["y"],
            "verses": [{
                "elements": [ref("verseId", str(existing)), ref("newPhraseIndex", 0)],
                "bases": [],
                "expectedContent": "xxy",
            }],
        })
        assert batch.verse_contents == ["xxy"]

    @pytest.mark.asyncio
    async def test_existing_phrase_text_used_after_dedupe(self, ledger, plan):
        await ledger.seed_phrase("hi")
        batch = await plan({
            "phrases": ["hi", "!"],
            "verses": [{
                "elements": [ref("newPhraseIndex", 0), ref("newPhraseIndex", 1)],
                "bases": [],
                "expectedContent": "hi!",
            }],
        })
        assert batch.verse_contents == ["hi!"]

    @pytest.mark.asyncio
    async def test_placeholder_phrase_contributes_nothing(self, plan):
        batch = await plan({
            "phrases": ["x"],
            "verses": [{
                "elements": [ref("phraseId", "0"), ref("newPhraseIndex", 0)],
                "bases": [],
                "expectedContent": "x",
            }],
        })
        assert batch.verse_contents == ["x"]

    @pytest.mark.asyncio
    async def test_validation_runs_before_any_read(self, ledger, plan):
        ledger.block_number = None  # any ledger read would fail loudly
        with pytest.raises(SingleElementVerse):
            await plan({
                "phrases": ["a"],
                "verses": [{"elements": [ref("newPhraseIndex", 0)], "bases": [], "expectedContent": "a"}],
            })

    @pytest.mark.asyncio
    async def test_snapshot_height_recorded(self, ledger, plan):
        await ledger.seed_phrase("a")
        batch = await plan({"phrases": ["b"], "verses": []})
        assert batch.snapshot_height == await ledger.block_number()
