# sentiment_trends/pipeline.py
import logging
from dataclasses import dataclass, fields
from typing import Iterable, Mapping, Optional

import pandas as pd

from sentiment_trends import utils
from sentiment_trends.aggregate import REQUIRED_COLUMNS, aggregate, check_grouping, group_columns
from sentiment_trends.corpus import as_corpus, load_corpus
from sentiment_trends.errors import EmptyCorpusError, UnknownGroupingKeyError
from sentiment_trends.lexicon import Lexicon, load, load_bing
from sentiment_trends.matcher import match, match_phrases
from sentiment_trends.tokenize import tokenize_corpus

logger = logging.getLogger(__name__)


@dataclass
class PipelineConfig:
    index_width: int = 1000
    group_by: str = "date"
    stop_words: Optional[Iterable[str]] = None
    phrase_mode: bool = False
    date_freq: str = "D"
    clean_text: bool = False
    net_sentiment: Optional[bool] = None
    net_basis: str = "counts"
    on_zero_total: str = "raise"

    def __post_init__(self):
        group_columns(self.group_by)
        if isinstance(self.index_width, bool) or not isinstance(self.index_width, int) or self.index_width <= 0:
            raise ValueError(f"index_width must be a positive integer, got {self.index_width!r}")
        if self.net_basis not in ("counts", "ratios"):
            raise ValueError(f"net_basis must be 'counts' or 'ratios', got {self.net_basis!r}")
        if self.on_zero_total not in ("raise", "null"):
            raise ValueError(f"on_zero_total must be 'raise' or 'null', got {self.on_zero_total!r}")
        pd.Period("2020-01-01", freq=self.date_freq)
        if self.stop_words is not None:
            self.stop_words = frozenset(w.lower() for w in self.stop_words)

    @classmethod
    def from_dict(cls, options: Mapping) -> "PipelineConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(options) - known)
        if unknown:
            raise ValueError(f"unknown pipeline options: {unknown}")
        return cls(**options)


def _prepare(corpus, config: PipelineConfig) -> pd.DataFrame:
    corpus = as_corpus(corpus)
    # fail before tokenizing anything
    check_grouping(corpus.columns, config.group_by)
    required = REQUIRED_COLUMNS[config.group_by]
    for col in required:
        if not corpus[col].notna().any():
            raise UnknownGroupingKeyError(f"grouping {config.group_by!r} needs {col!r}, which is empty", key=col)

    for col, label in (("created_at", "a usable timestamp"), ("source_id", "a source")):
        if col not in required:
            continue
        missing = corpus[col].isna()
        if missing.any():
            logger.warning("dropping %d documents without %s", int(missing.sum()), label)
            corpus = corpus[~missing].reset_index(drop=True)
    if corpus.empty:
        raise EmptyCorpusError("no documents left to score")

    if config.clean_text:
        corpus = corpus.assign(text=corpus["text"].map(utils.clean_text))
    return corpus


def run(corpus, lexicon: Lexicon, config: Optional[PipelineConfig] = None) -> pd.DataFrame:
    """
    Tokenize, match and aggregate a corpus against one lexicon.

    Holds no state between calls: the same corpus, lexicon and config give
    the same table.
    """
    config = config or PipelineConfig()
    corpus = _prepare(corpus, config)

    tokens = tokenize_corpus(corpus, stop_words=config.stop_words)
    phrase_mode = config.phrase_mode or lexicon.kind == "phrase"
    if phrase_mode:
        matched = match_phrases(corpus, lexicon, stop_words=config.stop_words)
    else:
        matched = match(tokens, lexicon)
    logger.info("%s: %d documents, %d tokens, %d matches", lexicon.name, len(corpus), len(tokens), len(matched))

    return aggregate(
        matched,
        tokens,
        group_by=config.group_by,
        index_width=config.index_width,
        categories=lexicon.categories,
        date_freq=config.date_freq,
        net_sentiment=config.net_sentiment,
        net_basis=config.net_basis,
        on_zero_total=config.on_zero_total,
        score_sum=lexicon.kind == "flat",
    )


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    in_path = utils.processed_dir() / "corpus.csv"
    if not in_path.exists():
        print("Missing corpus.csv, run sentiment_trends.corpus first.")
        return
    corpus = load_corpus(in_path)

    lex_path = utils.lexicon_dir() / "lexicon.csv"
    if lex_path.exists():
        lexicon = load(lex_path, kind="categorical", name=lex_path.stem)
    else:
        print("No lexicon.csv in", utils.lexicon_dir(), "- using the bundled bing lexicon")
        lexicon = load_bing()

    for group_by in ("date", "source_x_date"):
        if group_by == "source_x_date" and "source_id" not in corpus.columns:
            continue
        config = PipelineConfig(group_by=group_by)
        scored = run(corpus, lexicon, config)
        out = utils.processed_dir() / f"scored_{group_by}.csv"
        scored.to_csv(out, index=False)
        print("Saved", len(scored), "groups at", out)

if __name__ == "__main__":
    main()
