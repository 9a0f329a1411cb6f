"""
End-to-end pipeline tests.
"""

import logging
from datetime import date, datetime

import pandas as pd
import pytest

from sentiment_trends.corpus import Document
from sentiment_trends.errors import EmptyCorpusError, UnknownGroupingKeyError
from sentiment_trends.lexicon import load_flat, load_phrases
from sentiment_trends.pipeline import PipelineConfig, run

FILLER = "alpha beta gamma delta epsilon zeta eta theta"


@pytest.fixture
def two_day_corpus():
    # day one: 5 posts, 40 words, no lexicon words; day two: 3 posts, 20 words, 2 hits
    day_one = [("2020-01-01", FILLER)] * 5
    day_two = [
        ("2020-01-02", "good iota kappa lambda mu nu xi"),
        ("2020-01-02", "bad omicron pi rho sigma tau upsilon"),
        ("2020-01-02", "phi chi psi omega one two"),
    ]
    rows = day_one + day_two
    return pd.DataFrame({
        "id": range(len(rows)),
        "screen_name": ["alice"] * 4 + ["bob"] * 4,
        "created_at": [d for d, _ in rows],
        "text": [t for _, t in rows],
    })


class TestRun:
    """Full runs over small corpora."""

    def test_day_without_matches_keeps_its_row(self, two_day_corpus, polarity):
        scored = run(two_day_corpus, polarity)
        assert scored["date"].tolist() == [date(2020, 1, 1), date(2020, 1, 2)]
        assert scored["total_tokens"].tolist() == [40, 20]
        assert scored["positive"].tolist() == [0, 1]
        assert scored["negative"].tolist() == [0, 1]
        assert scored["positive_ratio"].tolist() == [0.0, pytest.approx(0.05)]
        assert scored["net_sentiment"].tolist() == [0, 0]

    def test_idempotent(self, two_day_corpus, polarity):
        config = PipelineConfig(group_by="source_x_date")
        first = run(two_day_corpus, polarity, config)
        second = run(two_day_corpus, polarity, config)
        pd.testing.assert_frame_equal(first, second)
        assert first.to_csv(index=False) == second.to_csv(index=False)

    def test_source_grouping(self, two_day_corpus, polarity):
        scored = run(two_day_corpus, polarity, PipelineConfig(group_by="source"))
        assert scored["source_id"].tolist() == ["alice", "bob"]
        assert scored["total_tokens"].tolist() == [32, 28]

    def test_index_windows(self, two_day_corpus, polarity):
        scored = run(two_day_corpus, polarity, PipelineConfig(group_by="index", index_width=25))
        assert list(zip(scored["date"], scored["index"], scored["total_tokens"])) == [
            (date(2020, 1, 1), 0, 25),
            (date(2020, 1, 1), 1, 15),
            (date(2020, 1, 2), 1, 10),
            (date(2020, 1, 2), 2, 10),
        ]

    def test_flat_lexicon_adds_score_sum(self, corpus):
        lexicon = load_flat({"love": 3, "great": 3, "terrible": -3})
        scored = run(corpus, lexicon)
        assert scored["score"].tolist() == [3, 0]
        assert scored["score_sum"].tolist() == [3.0, 0.0]
        assert "net_sentiment" not in scored.columns

    def test_phrase_lexicon(self, corpus):
        lexicon = load_phrases({"mood": ["great day"], "news": ["terrible news"]})
        scored = run(corpus, lexicon)
        assert scored["mood"].tolist() == [1, 0]
        assert scored["news"].tolist() == [1, 0]
        assert scored["total_tokens"].tolist() == [7, 2]

    def test_phrase_mode_with_word_lexicon(self, corpus, polarity):
        scored = run(corpus, polarity, PipelineConfig(phrase_mode=True))
        assert scored["positive"].tolist() == [2, 0]
        assert scored["negative"].tolist() == [1, 0]

    def test_stop_words_shrink_totals(self, corpus, polarity):
        scored = run(corpus, polarity, PipelineConfig(stop_words={"I", "this"}))
        assert scored["total_tokens"].tolist() == [5, 2]

    def test_documents_as_input(self, polarity):
        docs = [
            Document(1, "alice", datetime(2021, 5, 1, 9), "Good stuff"),
            Document(2, "bob", datetime(2021, 5, 1, 17), "Bad stuff", metrics={"likes": 3}),
        ]
        scored = run(docs, polarity, PipelineConfig(group_by="source_x_date"))
        assert scored["source_id"].tolist() == ["alice", "bob"]
        assert scored["net_sentiment"].tolist() == [1, -1]

    def test_undated_documents_dropped(self, corpus, polarity, caplog):
        corpus.loc[2, "created_at"] = pd.NaT
        with caplog.at_level(logging.WARNING):
            scored = run(corpus, polarity)
        assert scored["date"].tolist() == [date(2020, 1, 1)]
        assert "without a usable timestamp" in caplog.text

    def test_phrase_mode_index_windows_split_documents(self, polarity):
        corpus = pd.DataFrame({
            "created_at": ["2020-01-01"] * 2,
            "text": ["x y z", "q good good good good good"],
        })
        config = PipelineConfig(group_by="index", index_width=4, phrase_mode=True)
        scored = run(corpus, polarity, config)
        assert scored["index"].tolist() == [0, 1, 2]
        assert scored["total_tokens"].tolist() == [4, 4, 1]
        assert scored["positive"].tolist() == [0, 4, 1]
        assert (scored["positive_ratio"] <= 1).all()

    def test_phrase_mode_windows_match_token_mode(self, polarity):
        corpus = pd.DataFrame({"created_at": ["2020-01-01"], "text": ["q good r good"]})
        by_phrase = run(corpus, polarity, PipelineConfig(group_by="index", index_width=2, phrase_mode=True))
        by_token = run(corpus, polarity, PipelineConfig(group_by="index", index_width=2))
        assert by_phrase["positive"].tolist() == by_token["positive"].tolist() == [1, 1]

    def test_documents_without_source_dropped(self, polarity, caplog):
        corpus = pd.DataFrame({
            "source_id": ["alice", None],
            "created_at": ["2020-01-01"] * 2,
            "text": ["good day", "bad bad day"],
        })
        with caplog.at_level(logging.WARNING):
            scored = run(corpus, polarity, PipelineConfig(group_by="source"))
        assert scored["source_id"].tolist() == ["alice"]
        assert scored["total_tokens"].tolist() == [2]
        assert "without a source" in caplog.text

    def test_clean_text(self, polarity):
        corpus = pd.DataFrame({
            "created_at": ["2020-01-01"],
            "text": ["RT great thread https://t.co/xyz"],
        })
        scored = run(corpus, polarity, PipelineConfig(clean_text=True))
        assert scored["total_tokens"].tolist() == [2]


class TestRunErrors:
    """Fail fast on bad input and configuration."""

    def test_empty_corpus(self, polarity):
        with pytest.raises(EmptyCorpusError):
            run(pd.DataFrame(columns=["text", "created_at"]), polarity)

    def test_empty_document_list(self, polarity):
        with pytest.raises(EmptyCorpusError):
            run([], polarity)

    def test_source_grouping_without_source(self, polarity):
        corpus = pd.DataFrame({"created_at": ["2020-01-01"], "text": ["good"]})
        with pytest.raises(UnknownGroupingKeyError):
            run(corpus, polarity, PipelineConfig(group_by="source"))

    def test_date_grouping_with_no_dates(self, polarity):
        corpus = pd.DataFrame({"created_at": ["not a date"], "text": ["good"]})
        with pytest.raises(UnknownGroupingKeyError):
            run(corpus, polarity)

    def test_all_empty_text(self, polarity):
        corpus = pd.DataFrame({"created_at": ["2020-01-01"], "text": [""]})
        with pytest.raises(EmptyCorpusError):
            run(corpus, polarity)


class TestPipelineConfig:
    """Option validation."""

    def test_defaults(self):
        config = PipelineConfig()
        assert config.index_width == 1000
        assert config.group_by == "date"
        assert config.phrase_mode is False

    def test_unknown_group_by(self):
        with pytest.raises(UnknownGroupingKeyError):
            PipelineConfig(group_by="week")

    @pytest.mark.parametrize("width", [0, -5, 2.5, True])
    def test_bad_index_width(self, width):
        with pytest.raises(ValueError):
            PipelineConfig(index_width=width)

    def test_bad_net_basis(self):
        with pytest.raises(ValueError):
            PipelineConfig(net_basis="median")

    def test_bad_date_freq(self):
        with pytest.raises(ValueError):
            PipelineConfig(date_freq="fortnight")

    def test_stop_words_lowercased(self):
        assert PipelineConfig(stop_words=["The"]).stop_words == frozenset({"the"})

    def test_from_dict(self):
        config = PipelineConfig.from_dict({"group_by": "index", "index_width": 500})
        assert config.index_width == 500

    def test_from_dict_rejects_unknown(self):
        with pytest.raises(ValueError):
            PipelineConfig.from_dict({"window": 500})
