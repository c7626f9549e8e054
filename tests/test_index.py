"""
Tests for the Tokenizer and TF-IDF Index
"""

import math

import pytest

from fieldmedic.rag.chunker import Chunk, chunk_document
from fieldmedic.rag.index import build_index, smoothed_idf
from fieldmedic.rag.tokenizer import tokenize


class TestTokenize:
    """Tests for tokenization."""

    @pytest.mark.unit
    def test_lowercases_and_splits(self):
        assert tokenize("Give Aspirin, then WAIT!") == ["give", "aspirin", "then", "wait"]

    @pytest.mark.unit
    def test_keeps_clinical_notation(self):
        tokens = tokenize("BP 128/82, epi 1:1000 0.5 mg, sats 94%, 12-lead")
        assert "128/82" in tokens
        assert "1:1000" in tokens
        assert "0.5" in tokens
        assert "94%" in tokens
        assert "12-lead" in tokens

    @pytest.mark.unit
    @pytest.mark.parametrize("text", ["", "   ", ",;!?()"])
    def test_no_empty_tokens(self, text):
        assert tokenize(text) == []


class TestBuildIndex:
    """Tests for TF-IDF statistics."""

    @pytest.mark.unit
    def test_raw_term_counts_per_chunk(self):
        chunks = [Chunk(id="c0", text="epi epi amiodarone"), Chunk(id="c1", text="aspirin")]
        index = build_index(chunks)
        assert dict(index.term_frequency["c0"]) == {"epi": 2, "amiodarone": 1}
        assert dict(index.term_frequency["c1"]) == {"aspirin": 1}

    @pytest.mark.unit
    def test_idf_formula(self):
        chunks = [
            Chunk(id="c0", text="epi cpr"),
            Chunk(id="c1", text="epi aspirin"),
            Chunk(id="c2", text="epi"),
        ]
        index = build_index(chunks)
        assert index.idf("epi") == pytest.approx(math.log(4 / 3.5) + 1)
        assert index.idf("cpr") == pytest.approx(math.log(4 / 1.5) + 1)

    @pytest.mark.unit
    def test_term_in_every_chunk_still_positive(self):
        index = build_index([Chunk(id="c0", text="common")])
        assert index.idf("common") > 0
        assert math.isfinite(index.idf("common"))

    @pytest.mark.unit
    def test_rare_terms_weigh_more(self):
        assert smoothed_idf(10, 1) > smoothed_idf(10, 9)

    @pytest.mark.unit
    def test_unknown_token_weighs_zero(self):
        index = build_index([Chunk(id="c0", text="epi")])
        assert index.idf("naloxone") == 0.0

    @pytest.mark.unit
    def test_empty_chunk_set(self):
        index = build_index([])
        assert index.chunk_count == 0
        assert dict(index.inverse_document_frequency) == {}

    @pytest.mark.unit
    def test_rebuild_is_deterministic(self, sample_protocol):
        first = build_index(chunk_document(sample_protocol, target_size=200))
        second = build_index(chunk_document(sample_protocol, target_size=200))
        assert dict(first.inverse_document_frequency) == dict(
            second.inverse_document_frequency
        )

    @pytest.mark.unit
    def test_no_carryover_between_documents(self):
        build_index([Chunk(id="c0", text="ketamine")])
        index = build_index([Chunk(id="c0", text="fentanyl")])
        assert "ketamine" not in index.inverse_document_frequency

    @pytest.mark.unit
    def test_index_is_read_only(self):
        index = build_index([Chunk(id="c0", text="epi")])
        with pytest.raises(TypeError):
            index.inverse_document_frequency["epi"] = 0.0
