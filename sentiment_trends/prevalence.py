# sentiment_trends/prevalence.py
from typing import Optional, Sequence, Union

import pandas as pd

from sentiment_trends.aggregate import GROUPINGS, group_columns, with_group_keys
from sentiment_trends.errors import UnknownGroupingKeyError


def _resolve_by(frame: pd.DataFrame, by, index_width: int, date_freq: str):
    if by is None:
        return frame, []
    if isinstance(by, str) and by in GROUPINGS:
        return with_group_keys(frame, by, index_width, date_freq), group_columns(by)
    cols = [by] if isinstance(by, str) else list(by)
    missing = [c for c in cols if c not in frame.columns]
    if missing:
        raise UnknownGroupingKeyError(f"tokens have no {missing[0]!r} column", key=missing[0])
    return frame, cols


def word_frequencies(tokens: pd.DataFrame, by: Union[str, Sequence[str], None] = None,
                     n: Optional[int] = None, index_width: int = 1000,
                     date_freq: str = "D") -> pd.DataFrame:
    """
    Term counts and their share of the group's tokens.

    ``by`` is a grouping name (``source``, ``date``...) or explicit columns.
    With ``n`` only the n most frequent words of each group are kept.
    """
    frame, keys = _resolve_by(tokens, by, index_width, date_freq)
    counts = frame.groupby(keys + ["word"]).size().rename("n").reset_index()
    if keys:
        counts["proportion"] = counts["n"] / counts.groupby(keys)["n"].transform("sum")
    else:
        counts["proportion"] = counts["n"] / counts["n"].sum()
    counts = counts.sort_values(keys + ["n", "word"], ascending=[True] * len(keys) + [False, True],
                                kind="mergesort")
    if n is not None:
        counts = counts.groupby(keys).head(n) if keys else counts.head(n)
    return counts.reset_index(drop=True)


def top_words(matched: pd.DataFrame, n: int = 10, by: Union[str, Sequence[str]] = "category") -> pd.DataFrame:
    """Most frequent matched words per category, i.e. what is driving each score."""
    keys = [by] if isinstance(by, str) else list(by)
    grouped = matched.groupby(keys + ["word"])["contribution"]
    counts = pd.DataFrame({"n": grouped.size(), "contribution": grouped.sum()}).reset_index()
    counts = counts.sort_values(keys + ["n", "word"], ascending=[True] * len(keys) + [False, True],
                                kind="mergesort")
    return counts.groupby(keys).head(n).reset_index(drop=True)
