"""Tests for loading the historical proposal corpus."""

import json

import pytest

from proposal_engine.core.config import DEFAULT_CORPUS_PATH
from proposal_engine.core.corpus import load_historical_corpus
from proposal_engine.core.errors import ConfigurationError
from proposal_engine.core.schemas_proposals import HistoricalProposal, ProposalOutcome


def test_loads_packaged_corpus():
    corpus = load_historical_corpus(DEFAULT_CORPUS_PATH)

    assert isinstance(corpus, tuple)
    assert len(corpus) > 0
    assert all(isinstance(p, HistoricalProposal) for p in corpus)
    assert {p.outcome for p in corpus} >= {ProposalOutcome.WIN, ProposalOutcome.LOSS}


def test_outcome_labels(tmp_path):
    path = tmp_path / "corpus.json"
    path.write_text(
        json.dumps(
            [
                {"executive_summary": "a", "metadata": {"outcome": "win"}},
                {"executive_summary": "b", "metadata": {"outcome": "LOSS"}},
                {"executive_summary": "c", "metadata": {"outcome": "pending"}},
                {"executive_summary": "d"},
                {"executive_summary": None, "project_scope": "e", "metadata": None},
            ]
        )
    )

    corpus = load_historical_corpus(path)

    assert [p.outcome for p in corpus] == [ProposalOutcome.WIN, ProposalOutcome.LOSS, None, None, None]
    assert corpus[0].is_win
    assert corpus[3].project_scope == ""
    assert corpus[4].executive_summary == ""


def test_records_are_immutable(tmp_path):
    path = tmp_path / "corpus.json"
    path.write_text(json.dumps([{"executive_summary": "a"}]))

    corpus = load_historical_corpus(path)

    with pytest.raises(Exception):
        corpus[0].executive_summary = "changed"


def test_missing_file(tmp_path):
    with pytest.raises(ConfigurationError, match="not found"):
        load_historical_corpus(tmp_path / "missing.json")


def test_invalid_json(tmp_path):
    path = tmp_path / "corpus.json"
    path.write_text("{not json")

    with pytest.raises(ConfigurationError, match="Failed to read"):
        load_historical_corpus(path)


def test_not_a_list(tmp_path):
    path = tmp_path / "corpus.json"
    path.write_text(json.dumps({"executive_summary": "a"}))

    with pytest.raises(ConfigurationError, match="must be a JSON list"):
        load_historical_corpus(path)
