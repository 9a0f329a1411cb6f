import pandas as pd
import pytest

from sentiment_trends.corpus import normalize_corpus
from sentiment_trends.lexicon import keyword_lexicon


@pytest.fixture
def raw_corpus():
    return pd.DataFrame({
        "id": [1, 2, 3],
        "source_id": ["alice", "bob", "alice"],
        "created_at": ["2020-01-01", "2020-01-01", "2020-01-02"],
        "text": ["I love this, great day!", "Terrible news. 2020", "nothing here"],
    })


@pytest.fixture
def corpus(raw_corpus):
    return normalize_corpus(raw_corpus)


@pytest.fixture
def polarity():
    return keyword_lexicon(
        {"positive": ["love", "great", "good"], "negative": ["terrible", "bad", "abandon"]},
        name="polarity",
    )


def token_frame(n, created_at="2020-01-01", source_id="alice"):
    """A bare token table of ``n`` filler words on one date."""
    return pd.DataFrame({
        "word": ["w"] * n,
        "document_id": [0] * n,
        "source_id": [source_id] * n,
        "created_at": pd.to_datetime([created_at] * n),
        "position": range(n),
    })
