# sentiment_trends/corpus.py
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Optional, Union

import pandas as pd

from sentiment_trends import utils
from sentiment_trends.errors import EmptyCorpusError

logger = logging.getLogger(__name__)

CORPUS_COLUMNS = ["id", "source_id", "created_at", "text"]

# first match wins, mirrors the raw exports we get from different scrapers
TEXT_ALIASES = ["full_text", "tweet", "content", "body", "review_text", "comment"]
SOURCE_ALIASES = ["screen_name", "user", "username", "author", "account", "source"]
DATE_ALIASES = ["date", "timestamp", "created", "published_at", "time"]
ID_ALIASES = ["status_id", "tweet_id", "document_id", "doc_id"]


@dataclass(frozen=True)
class Document:
    id: Any
    source_id: Optional[str]
    created_at: Optional[datetime]
    text: str
    metrics: dict = field(default_factory=dict, compare=False)


def _rename_first(df: pd.DataFrame, target: str, candidates) -> pd.DataFrame:
    if target in df.columns:
        return df
    for cand in candidates:
        if cand in df.columns:
            return df.rename(columns={cand: target})
    return df


def normalize_corpus(df: pd.DataFrame) -> pd.DataFrame:
    """
    Bring a document table onto the corpus schema.

    Known column aliases are renamed to ``id, source_id, created_at, text``;
    a missing id is generated from row order, ``created_at`` is parsed with
    coercion (unparseable stamps become NaT) and missing text becomes "".
    Extra columns (engagement metrics and the like) are carried along
    untouched. Raises EmptyCorpusError for a table with no rows.
    """
    if df is None or len(df) == 0:
        raise EmptyCorpusError("corpus has no documents")

    df = df.copy()
    df = _rename_first(df, "text", TEXT_ALIASES)
    df = _rename_first(df, "source_id", SOURCE_ALIASES)
    df = _rename_first(df, "created_at", DATE_ALIASES)
    df = _rename_first(df, "id", ID_ALIASES)

    if "text" not in df.columns:
        logger.warning("corpus has no text column, every document will be empty")
        df["text"] = ""
    df["text"] = df["text"].fillna("").astype(str)

    if "id" not in df.columns:
        df["id"] = range(len(df))
    if "created_at" in df.columns:
        df["created_at"] = pd.to_datetime(df["created_at"], errors="coerce")
    if "source_id" in df.columns:
        df["source_id"] = df["source_id"].astype("string")

    leading = [c for c in CORPUS_COLUMNS if c in df.columns]
    rest = [c for c in df.columns if c not in leading]
    return df[leading + rest].reset_index(drop=True)


def documents_frame(documents: Iterable[Document]) -> pd.DataFrame:
    rows = []
    for doc in documents:
        row = {
            "id": doc.id,
            "source_id": doc.source_id,
            "created_at": doc.created_at,
            "text": doc.text,
        }
        row.update(doc.metrics)
        rows.append(row)
    if not rows:
        raise EmptyCorpusError("corpus has no documents")
    return normalize_corpus(pd.DataFrame(rows))


def as_corpus(corpus: Union[pd.DataFrame, Iterable[Document]]) -> pd.DataFrame:
    if isinstance(corpus, pd.DataFrame):
        return normalize_corpus(corpus)
    return documents_frame(corpus)


def load_corpus(path) -> pd.DataFrame:
    df = utils.safe_read_csv(path)
    logger.info("loaded %d documents from %s", len(df), path)
    return normalize_corpus(df)


def merge_raw_csvs(raw_files=None) -> pd.DataFrame:
    """Concatenate per-account exports, tagging each with its file stem when it has no source column."""
    raw_files = utils.list_raw_csvs() if raw_files is None else raw_files
    dfs = []
    for p in raw_files:
        try:
            df = pd.read_csv(p, low_memory=False)
        except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
            logger.warning("failed to read %s: %s", p, e)
            continue
        df = _rename_first(df, "source_id", SOURCE_ALIASES)
        if "source_id" not in df.columns:
            df["source_id"] = p.stem
        dfs.append(df)

    if not dfs:
        raise EmptyCorpusError("no readable CSVs found", details={"files": [str(p) for p in raw_files]})

    combined = pd.concat(dfs, ignore_index=True, sort=False)
    return normalize_corpus(combined)


def main():
    raw_files = utils.list_raw_csvs()
    print("Found raw files:", [p.name for p in raw_files])
    if not raw_files:
        print("No CSVs found in data/raw. Put one export per account there and re-run.")
        return

    combined = merge_raw_csvs(raw_files)
    out = utils.processed_dir() / "corpus.csv"
    out.parent.mkdir(parents=True, exist_ok=True)
    combined.to_csv(out, index=False)
    print("Saved corpus.csv at", out, "rows:", len(combined))

if __name__ == "__main__":
    main()
