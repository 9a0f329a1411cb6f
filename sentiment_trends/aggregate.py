# sentiment_trends/aggregate.py
import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

import pandas as pd

from sentiment_trends import utils
from sentiment_trends.errors import DivisionUndefinedError, EmptyCorpusError, UnknownGroupingKeyError
from sentiment_trends.lexicon import NEGATIVE, POSITIVE

logger = logging.getLogger(__name__)

GROUPINGS = {
    "date": ["date"],
    "index": ["date", "index"],
    "source": ["source_id"],
    "source_x_date": ["source_id", "date"],
}

# document metadata each grouping reads
REQUIRED_COLUMNS = {
    "date": ["created_at"],
    "index": ["created_at"],
    "source": ["source_id"],
    "source_x_date": ["source_id", "created_at"],
}

KEY_COLUMNS = ["source_id", "date", "index"]
RATIO_SUFFIX = "_ratio"


@dataclass(frozen=True)
class ScoredGroup:
    key: tuple
    counts: dict
    total_tokens: int
    ratios: dict
    net_sentiment: Optional[float] = None
    score_sum: Optional[float] = field(default=None)


def group_columns(group_by: str) -> list:
    try:
        return list(GROUPINGS[group_by])
    except KeyError:
        raise UnknownGroupingKeyError(
            f"unknown grouping {group_by!r}, expected one of {sorted(GROUPINGS)}", key=str(group_by)
        ) from None


def check_grouping(columns: Iterable[str], group_by: str) -> None:
    group_columns(group_by)
    columns = set(columns)
    for col in REQUIRED_COLUMNS[group_by]:
        if col not in columns:
            raise UnknownGroupingKeyError(f"grouping {group_by!r} needs a {col!r} column", key=col)


def with_group_keys(frame: pd.DataFrame, group_by: str, index_width: int = 1000,
                    date_freq: str = "D") -> pd.DataFrame:
    check_grouping(frame.columns, group_by)
    keys = group_columns(group_by)
    out = frame.copy()
    if "date" in keys:
        out["date"] = utils.date_bucket(out["created_at"], date_freq)
    if "index" in keys:
        out["index"] = (out["position"] // index_width).astype("int64")
    return out


def _category_counts(matched: pd.DataFrame, keys: list, template: pd.DataFrame) -> pd.DataFrame:
    if matched.empty:
        # keep the key dtypes of the totals so the outer join lines up
        return template[keys].iloc[0:0].copy()
    counts = (matched.groupby(keys + ["category"]).size()
              .unstack("category", fill_value=0)
              .reset_index())
    counts.columns.name = None
    return counts


def aggregate(matched: pd.DataFrame, tokens: pd.DataFrame, group_by: str = "date",
              index_width: int = 1000, categories: Optional[Iterable[str]] = None,
              date_freq: str = "D", net_sentiment: Optional[bool] = None,
              net_basis: str = "counts", on_zero_total: str = "raise",
              score_sum: bool = False) -> pd.DataFrame:
    """
    Score every group of the token stream.

    Args:
        matched: matched-token (or phrase hit) table with a ``category`` column
        tokens: every token of the corpus, matched or not
        group_by: one of ``date``, ``index``, ``source``, ``source_x_date``
        index_width: window size in tokens for ``index`` grouping
        categories: categories to report; defaults to those seen in ``matched``
        date_freq: pandas offset alias for the date bucket
        net_sentiment: None computes it when the categories are exactly
            positive/negative, True forces it
        net_basis: ``counts`` or ``ratios``
        on_zero_total: ``raise`` or ``null`` for groups with no tokens
        score_sum: add the per-group sum of contributions (flat lexicons)

    Returns:
        One row per group: key columns, ``total_tokens``, a count column and
        a ``<category>_ratio`` column per category, then ``score_sum`` and
        ``net_sentiment`` when requested. Sorted by key.
    """
    if tokens is None or tokens.empty:
        raise EmptyCorpusError("corpus produced no tokens, nothing to aggregate")
    keys = group_columns(group_by)
    tokens = with_group_keys(tokens, group_by, index_width, date_freq)
    matched = with_group_keys(matched, group_by, index_width, date_freq)
    if categories is None:
        categories = sorted(matched["category"].unique())
    categories = list(categories)

    keyless = tokens[keys].isna().any(axis=1)
    if keyless.any():
        logger.warning("%d tokens have no %s key and are left out of every group", int(keyless.sum()), group_by)

    totals = tokens.groupby(keys).size().rename("total_tokens").reset_index()
    counts = _category_counts(matched, keys, totals)
    table = totals.merge(counts, on=keys, how="outer")

    table["total_tokens"] = table["total_tokens"].fillna(0).astype("int64")
    for cat in categories:
        if cat not in table.columns:
            table[cat] = 0
        table[cat] = table[cat].fillna(0).astype("int64")

    zero = table["total_tokens"] == 0
    if zero.any():
        groups = table.loc[zero, keys].to_dict("records")
        if on_zero_total == "raise":
            raise DivisionUndefinedError(f"{len(groups)} group(s) have matches but no tokens", groups=groups)
        logger.warning("%d group(s) have no tokens, their ratios are null", len(groups))
    denominator = table["total_tokens"].where(~zero)

    columns = keys + ["total_tokens"] + categories
    if score_sum:
        sums = matched.groupby(keys)["contribution"].sum().rename("score_sum").reset_index()
        table = table.merge(sums, on=keys, how="left") if not sums.empty else table.assign(score_sum=0.0)
        table["score_sum"] = table["score_sum"].fillna(0.0)
        columns.append("score_sum")

    for cat in categories:
        table[cat + RATIO_SUFFIX] = table[cat] / denominator
        columns.append(cat + RATIO_SUFFIX)

    wanted = net_sentiment
    if wanted is None:
        wanted = set(categories) == {POSITIVE, NEGATIVE}
    if wanted:
        if not {POSITIVE, NEGATIVE} <= set(categories):
            raise ValueError("net sentiment needs both positive and negative categories")
        if net_basis == "ratios":
            table["net_sentiment"] = table[POSITIVE + RATIO_SUFFIX] - table[NEGATIVE + RATIO_SUFFIX]
        else:
            table["net_sentiment"] = table[POSITIVE] - table[NEGATIVE]
        columns.append("net_sentiment")

    table = table[columns].sort_values(keys, kind="mergesort").reset_index(drop=True)
    logger.debug("aggregated %d tokens into %d %s groups", len(tokens), len(table), group_by)
    return table


def _key_columns(table: pd.DataFrame) -> list:
    return [c for c in table.columns if c in KEY_COLUMNS]


def _table_categories(table: pd.DataFrame) -> list:
    return [c[:-len(RATIO_SUFFIX)] for c in table.columns if c.endswith(RATIO_SUFFIX)]


def to_scored_groups(table: pd.DataFrame) -> list:
    keys = _key_columns(table)
    categories = _table_categories(table)
    groups = []
    for row in table.to_dict("records"):
        groups.append(ScoredGroup(
            key=tuple(row[k] for k in keys),
            counts={c: int(row[c]) for c in categories},
            total_tokens=int(row["total_tokens"]),
            ratios={c: row[c + RATIO_SUFFIX] for c in categories},
            net_sentiment=row.get("net_sentiment"),
            score_sum=row.get("score_sum"),
        ))
    return groups


def to_long(table: pd.DataFrame) -> pd.DataFrame:
    """Melt a scored table into ``(keys..., total_tokens, category, count, ratio)`` rows."""
    keys = _key_columns(table)
    categories = _table_categories(table)
    counts = table.melt(id_vars=keys + ["total_tokens"], value_vars=categories,
                        var_name="category", value_name="count")
    ratios = table.melt(id_vars=keys, value_vars=[c + RATIO_SUFFIX for c in categories],
                        var_name="category", value_name="ratio")
    ratios["category"] = ratios["category"].str[:-len(RATIO_SUFFIX)]
    return counts.merge(ratios, on=keys + ["category"], how="left")
