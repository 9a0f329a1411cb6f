# sentiment_trends/tokenize.py
import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, Optional

import numpy as np
import pandas as pd
from nltk.tokenize import RegexpTokenizer

from sentiment_trends import utils

logger = logging.getLogger(__name__)

# words with optional inner apostrophes: don't, o'clock
WORD_PATTERN = r"\w+(?:'\w+)*"
TOKEN_COLUMNS = ["word", "document_id", "source_id", "created_at", "position"]

_splitter = RegexpTokenizer(WORD_PATTERN)
_has_alpha = re.compile(r"[^\W\d_]")


@dataclass(frozen=True)
class Token:
    text: str
    document_id: Any
    created_at: Optional[datetime]
    source_id: Optional[str]
    position: int


def _stop_set(stop_words) -> frozenset:
    if not stop_words:
        return frozenset()
    return frozenset(w.lower() for w in stop_words)


def split_words(text, stop_words: Optional[Iterable[str]] = None) -> list:
    """Lowercase, split, keep words with a letter in them, drop stop words."""
    if text is None or (isinstance(text, float) and pd.isna(text)):
        return []
    text = str(text).lower().replace("’", "'")
    words = [w for w in _splitter.tokenize(text) if _has_alpha.search(w)]
    stops = stop_words if isinstance(stop_words, frozenset) else _stop_set(stop_words)
    if stops:
        words = [w for w in words if w not in stops]
    return words


def tokenize(document, stop_words: Optional[Iterable[str]] = None, start: int = 0) -> list:
    """
    Tokens for a single document, numbered from ``start``.

    ``document`` is a Document or anything with ``id``/``text`` keys.
    """
    get = document.get if hasattr(document, "get") else lambda k, d=None: getattr(document, k, d)
    words = split_words(get("text", ""), stop_words)
    return [
        Token(w, get("id"), get("created_at"), get("source_id"), start + i)
        for i, w in enumerate(words)
    ]


def tokenize_corpus(corpus: pd.DataFrame, stop_words: Optional[Iterable[str]] = None,
                    clean: bool = False) -> pd.DataFrame:
    """
    One row per word across the whole corpus.

    Columns are ``word, document_id, source_id, created_at, position`` (the
    metadata columns only when the corpus has them). Documents with empty
    or missing text contribute no rows.
    """
    stops = _stop_set(stop_words)
    texts = corpus["text"]
    if clean:
        texts = texts.map(utils.clean_text)

    meta = [c for c in ("id", "source_id", "created_at") if c in corpus.columns]
    frame = corpus[meta].rename(columns={"id": "document_id"})
    frame = frame.assign(word=texts.map(lambda t: split_words(t, stops)).values)
    frame = frame.explode("word")
    frame = frame[frame["word"].notna()].reset_index(drop=True)
    frame["word"] = frame["word"].astype(str)
    frame["position"] = np.arange(len(frame), dtype="int64")

    columns = [c for c in TOKEN_COLUMNS if c in frame.columns]
    logger.debug("tokenized %d documents into %d tokens", len(corpus), len(frame))
    return frame[columns]


def iter_tokens(tokens: pd.DataFrame):
    for row in tokens.itertuples(index=False):
        yield Token(
            row.word,
            row.document_id,
            getattr(row, "created_at", None),
            getattr(row, "source_id", None),
            int(row.position),
        )


def english_stop_words() -> frozenset:
    import nltk
    nltk.download("stopwords", quiet=True)
    from nltk.corpus import stopwords
    return frozenset(stopwords.words("english"))
