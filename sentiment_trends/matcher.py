# sentiment_trends/matcher.py
import logging
from typing import Iterable, Optional

import numpy as np
import pandas as pd

from sentiment_trends.lexicon import Lexicon, PhraseLexicon, fold_text, normalize_key
from sentiment_trends.tokenize import split_words

logger = logging.getLogger(__name__)

HIT_COLUMNS = ["word", "document_id", "source_id", "created_at", "position",
               "category", "contribution", "span"]


def match(tokens: pd.DataFrame, lexicon: Lexicon) -> pd.DataFrame:
    """
    Join tokens against a word-level lexicon.

    Unmatched tokens are dropped, not zero-scored: totals have to come from
    the token table itself. A word carrying several labels yields one row
    per label.
    """
    if isinstance(lexicon, PhraseLexicon):
        raise TypeError("phrase lexicons need match_phrases over the raw documents")
    matched = tokens.merge(lexicon.frame, on="word", how="inner")
    matched = matched.sort_values(["position", "category"], kind="mergesort").reset_index(drop=True)
    logger.debug("%d of %d tokens matched %s", matched["position"].nunique(), len(tokens), lexicon.name)
    return matched


def _document_starts(documents: pd.DataFrame, stop_words) -> tuple:
    # token count and first-token position per row, in row order, so that
    # repeated or missing ids cannot shift anyone's positions
    texts = documents["text"] if "text" in documents.columns else pd.Series([""] * len(documents))
    counts = texts.map(lambda t: len(split_words(t, stop_words))).to_numpy(dtype="int64")
    return counts, np.cumsum(counts) - counts


def match_phrases(documents: pd.DataFrame, lexicon: Lexicon,
                  stop_words: Optional[Iterable[str]] = None) -> pd.DataFrame:
    """
    Scan raw document text for lexicon keys, multi-word phrases included.

    One row per (document, category, span) hit. Splitting into tokens first
    would lose every phrase that spans a word boundary, so this works on the
    text itself. Each hit is placed at the corpus position of its span's
    first token, counted the way ``tokenize_corpus`` counts with the same
    ``stop_words``.
    """
    stops = frozenset(w.lower() for w in stop_words or ())
    counts, starts = _document_starts(documents, stops)
    rows = []
    for count, start, doc in zip(counts, starts, documents.to_dict("records")):
        text = doc.get("text", "")
        folded = None
        for category, contribution, span, offset in lexicon.phrase_hits(text):
            if folded is None:
                folded = fold_text(text)
            before = len(split_words(folded[:offset], stops))
            rows.append({
                "word": normalize_key(span),
                "document_id": doc.get("id"),
                "source_id": doc.get("source_id"),
                "created_at": doc.get("created_at"),
                # a span whose leading word is not a token sits on the next
                # token, never past the document's last one
                "position": int(start + min(before, max(count - 1, 0))),
                "category": category,
                "contribution": float(contribution),
                "span": span,
            })
    hits = pd.DataFrame(rows, columns=HIT_COLUMNS)
    # metadata the corpus never had stays absent, same as in the token table
    hits = hits[[c for c in HIT_COLUMNS if c not in ("source_id", "created_at") or c in documents.columns]].copy()
    hits["position"] = hits["position"].astype("int64")
    hits["contribution"] = hits["contribution"].astype(float)
    if "source_id" in hits.columns:
        hits["source_id"] = hits["source_id"].astype(documents["source_id"].dtype)
    if "created_at" in hits.columns:
        hits["created_at"] = pd.to_datetime(hits["created_at"])
    logger.debug("%d phrase hits in %d documents", len(hits), len(documents))
    return hits


def phrase_counts(documents: pd.DataFrame, lexicon: Lexicon) -> pd.DataFrame:
    """Per-document hit counts, one column per lexicon category, zero-filled."""
    hits = match_phrases(documents, lexicon)
    categories = list(lexicon.categories)
    if hits.empty:
        counts = pd.DataFrame(0, index=pd.Index(documents["id"], name="document_id"), columns=categories)
    else:
        counts = (hits.groupby(["document_id", "category"]).size()
                  .unstack("category", fill_value=0)
                  .reindex(index=documents["id"], columns=categories, fill_value=0))
        counts.index.name = "document_id"
    counts.columns.name = None
    return counts.astype("int64").reset_index()
