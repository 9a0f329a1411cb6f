# sentiment_trends/lexicon.py
import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Mapping, Optional, Union

import pandas as pd

from sentiment_trends.errors import MalformedLexiconError

logger = logging.getLogger(__name__)

SCORE = "score"
POSITIVE = "positive"
NEGATIVE = "negative"

LexiconSource = Union[str, Path, pd.DataFrame, Mapping]


@dataclass(frozen=True)
class LexiconEntry:
    key: str
    category: str
    contribution: float = 1.0


def normalize_key(key) -> str:
    return re.sub(r"\s+", " ", str(key).replace("’", "'")).strip().lower()


def fold_text(text) -> str:
    return str(text).lower().replace("’", "'")


def _is_blank(value) -> bool:
    if value is None:
        return True
    try:
        if pd.isna(value):
            return True
    except (TypeError, ValueError):
        return False
    return isinstance(value, str) and not value.strip()


class Lexicon:
    kind = None

    def __init__(self, entries: Mapping[str, frozenset], name: str = ""):
        self._entries = dict(entries)
        self.name = name or self.kind
        self._frame = None
        self._pattern = None

    def __len__(self):
        return len(self._entries)

    def __contains__(self, key):
        return normalize_key(key) in self._entries

    def __repr__(self):
        return f"<{self.__class__.__name__} {self.name!r} entries={len(self)} categories={list(self.categories)}>"

    @property
    def categories(self) -> tuple:
        cats = {cat for pairs in self._entries.values() for cat, _ in pairs}
        return tuple(sorted(cats))

    def entries(self):
        for key in sorted(self._entries):
            for cat, contribution in sorted(self._entries[key]):
                yield LexiconEntry(key, cat, contribution)

    @property
    def frame(self) -> pd.DataFrame:
        """One row per (word, category) pair, the right-hand side of a token join."""
        if self._frame is None:
            rows = [(e.key, e.category, e.contribution) for e in self.entries()]
            self._frame = pd.DataFrame(rows, columns=["word", "category", "contribution"])
            self._frame["contribution"] = self._frame["contribution"].astype(float)
        return self._frame

    def lookup(self, word: str) -> Optional[frozenset]:
        return self._entries.get(normalize_key(word))

    def _compiled(self):
        if self._pattern is None and self._entries:
            # longest first so "trans rights activists" wins over "trans rights"
            keys = sorted(self._entries, key=lambda k: (-len(k), k))
            alternatives = [r"\s+".join(re.escape(w) for w in k.split(" ")) for k in keys]
            self._pattern = re.compile(r"(?<![\w'])(?:" + "|".join(alternatives) + r")(?![\w'])")
        return self._pattern

    def phrase_hits(self, text: str) -> list:
        """
        ``(category, contribution, span, offset)`` for every non-overlapping key
        occurrence in ``text``. ``offset`` indexes into ``fold_text(text)``.
        """
        pattern = self._compiled()
        if pattern is None or _is_blank(text):
            return []
        hits = []
        lowered = fold_text(text)
        for m in pattern.finditer(lowered):
            span = m.group(0)
            for cat, contribution in sorted(self._entries[normalize_key(span)]):
                hits.append((cat, contribution, span, m.start()))
        return hits

    def match_phrases(self, text: str) -> list:
        return [(cat, span) for cat, _, span, _ in self.phrase_hits(text)]


class FlatLexicon(Lexicon):
    kind = "flat"

    @classmethod
    def from_scores(cls, scores: Mapping[str, float], name: str = "") -> "FlatLexicon":
        return cls({k: frozenset([(SCORE, float(v))]) for k, v in scores.items()}, name=name)

    @property
    def scores(self) -> dict:
        return {k: next(iter(pairs))[1] for k, pairs in self._entries.items()}

    def as_polarity(self) -> "CategoricalLexicon":
        """Collapse signed scores into positive/negative labels; zero-scored words are dropped."""
        labels = {}
        for key, value in self.scores.items():
            if value > 0:
                labels[key] = frozenset([(POSITIVE, 1.0)])
            elif value < 0:
                labels[key] = frozenset([(NEGATIVE, 1.0)])
        return CategoricalLexicon(labels, name=f"{self.name}-polarity")


class CategoricalLexicon(Lexicon):
    kind = "categorical"

    @classmethod
    def from_labels(cls, labels: Mapping[str, Iterable[str]], name: str = "") -> "CategoricalLexicon":
        return cls({k: frozenset((c, 1.0) for c in v) for k, v in labels.items()}, name=name)


class PhraseLexicon(Lexicon):
    kind = "phrase"

    def lookup(self, word: str):
        raise TypeError("phrase lexicons match whole documents, use match_phrases instead")


def _read_table(source, **read_kwargs) -> pd.DataFrame:
    path = Path(source)
    if path.suffix in (".tsv", ".txt") and "sep" not in read_kwargs:
        read_kwargs["sep"] = "\t"
    return pd.read_csv(path, **read_kwargs)


def _pick_columns(df: pd.DataFrame, key_col, value_col, key_names, value_names):
    if df.shape[1] < 2:
        raise MalformedLexiconError(
            f"lexicon table needs a key and a value column, got {list(df.columns)}"
        )
    if key_col is None:
        key_col = next((c for c in key_names if c in df.columns), df.columns[0])
    if value_col is None:
        value_col = next((c for c in value_names if c in df.columns and c != key_col), None)
        if value_col is None:
            value_col = next(c for c in df.columns if c != key_col)
    for col in (key_col, value_col):
        if col not in df.columns:
            raise MalformedLexiconError(f"lexicon has no column {col!r}", details={"columns": list(df.columns)})
    return key_col, value_col


def _pairs(source, key_col, value_col, key_names, value_names, **read_kwargs):
    """Yield ``(row, key, value)`` from a table, csv path or mapping."""
    if isinstance(source, Mapping):
        for i, (key, value) in enumerate(source.items()):
            yield i, key, value
        return
    if isinstance(source, (str, Path)):
        source = _read_table(source, **read_kwargs)
    if not isinstance(source, pd.DataFrame):
        raise TypeError(f"cannot load a lexicon from {type(source).__name__}")
    key_col, value_col = _pick_columns(source, key_col, value_col, key_names, value_names)
    for i, (key, value) in enumerate(zip(source[key_col], source[value_col])):
        yield i, key, value


def _check_key(row, key) -> str:
    if _is_blank(key):
        raise MalformedLexiconError(f"lexicon entry {row} has no key", row=row)
    key = normalize_key(key)
    if not key:
        raise MalformedLexiconError(f"lexicon entry {row} has no key", row=row)
    return key


def _check_label(row, key, label) -> str:
    if _is_blank(label):
        raise MalformedLexiconError(f"lexicon entry {row} ({key!r}) has no category", row=row)
    return str(label).strip().lower()


def load_flat(source: LexiconSource, word_col=None, value_col=None, name: str = "", **read_kwargs) -> FlatLexicon:
    scores = {}
    overwritten = 0
    for row, key, value in _pairs(source, word_col, value_col, ["word", "term"], ["value", "score"], **read_kwargs):
        key = _check_key(row, key)
        score = pd.to_numeric(value, errors="coerce") if not _is_blank(value) else None
        if score is None or pd.isna(score):
            raise MalformedLexiconError(f"lexicon entry {row} ({key!r}) has no numeric score", row=row,
                                        details={"value": value})
        if key in scores:
            overwritten += 1
        scores[key] = float(score)
    if overwritten:
        logger.warning("lexicon %s: %d duplicate keys, later entries won", name or "flat", overwritten)
    lexicon = FlatLexicon.from_scores(scores, name=name)
    logger.info("loaded %r", lexicon)
    return lexicon


def load_categorical(source: LexiconSource, word_col=None, category_col=None, name: str = "",
                     **read_kwargs) -> CategoricalLexicon:
    """
    Load ``(word, label)`` rows; a word repeated under several labels keeps all of them.

    A mapping source may map a word to one label or an iterable of labels.
    """
    labels = {}
    for row, key, value in _pairs(source, word_col, category_col, ["word", "term"],
                                  ["sentiment", "category", "label", "emotion"], **read_kwargs):
        key = _check_key(row, key)
        values = [value] if isinstance(value, str) or not isinstance(value, Iterable) else list(value)
        if not values:
            raise MalformedLexiconError(f"lexicon entry {row} ({key!r}) has no category", row=row)
        for label in values:
            labels.setdefault(key, set()).add(_check_label(row, key, label))
    lexicon = CategoricalLexicon.from_labels(labels, name=name)
    logger.info("loaded %r", lexicon)
    return lexicon


def keyword_lexicon(keywords: Mapping[str, Iterable[str]], name: str = "keywords") -> CategoricalLexicon:
    """Custom keyword lists, ``{category: [word, ...]}``."""
    labels = {}
    row = 0
    for category, words in keywords.items():
        category = _check_label(row, "", category)
        if isinstance(words, str):
            words = [words]
        for word in words:
            labels.setdefault(_check_key(row, word), set()).add(category)
            row += 1
    return CategoricalLexicon.from_labels(labels, name=name)


def load_phrases(source: LexiconSource, name: str = "", **read_kwargs) -> PhraseLexicon:
    """
    Load a phrase dictionary.

    Accepts ``{category: [phrase, ...]}`` (directly or as a .json file) or a
    table of ``(phrase, category)`` rows.
    """
    if isinstance(source, (str, Path)) and Path(source).suffix == ".json":
        with open(source, encoding="utf-8") as fh:
            source = json.load(fh)

    phrases = {}
    row = 0
    if isinstance(source, Mapping):
        for category, items in source.items():
            category = _check_label(row, "", category)
            if isinstance(items, str):
                items = [items]
            if not items:
                raise MalformedLexiconError(f"phrase category {category!r} has no phrases", row=row)
            for phrase in items:
                phrases.setdefault(_check_key(row, phrase), set()).add(category)
                row += 1
    else:
        for row, key, value in _pairs(source, None, None, ["phrase", "word", "term"],
                                      ["category", "sentiment", "label"], **read_kwargs):
            key = _check_key(row, key)
            phrases.setdefault(key, set()).add(_check_label(row, key, value))

    lexicon = PhraseLexicon({k: frozenset((c, 1.0) for c in v) for k, v in phrases.items()}, name=name)
    logger.info("loaded %r", lexicon)
    return lexicon


LOADERS = {
    "flat": load_flat,
    "categorical": load_categorical,
    "phrase": load_phrases,
}


def load(source: LexiconSource, kind: str = "flat", **kwargs) -> Lexicon:
    try:
        loader = LOADERS[kind]
    except KeyError:
        raise ValueError(f"unknown lexicon kind {kind!r}, expected one of {sorted(LOADERS)}") from None
    return loader(source, **kwargs)


def load_vader() -> FlatLexicon:
    import nltk
    nltk.download("vader_lexicon", quiet=True)
    from nltk.sentiment import SentimentIntensityAnalyzer
    sia = SentimentIntensityAnalyzer()
    return load_flat(sia.lexicon, name="vader")


def load_bing() -> CategoricalLexicon:
    """Hu & Liu opinion lexicon as positive/negative labels."""
    import nltk
    nltk.download("opinion_lexicon", quiet=True)
    from nltk.corpus import opinion_lexicon
    return keyword_lexicon(
        {POSITIVE: opinion_lexicon.positive(), NEGATIVE: opinion_lexicon.negative()},
        name="bing",
    )
