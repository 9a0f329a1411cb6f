# sentiment_trends/__init__.py
from sentiment_trends.aggregate import ScoredGroup, aggregate, to_long, to_scored_groups
from sentiment_trends.corpus import Document, load_corpus, normalize_corpus
from sentiment_trends.errors import (
    DivisionUndefinedError,
    EmptyCorpusError,
    MalformedLexiconError,
    SentimentTrendsError,
    UnknownGroupingKeyError,
)
from sentiment_trends.lexicon import (
    CategoricalLexicon,
    FlatLexicon,
    PhraseLexicon,
    keyword_lexicon,
    load,
    load_bing,
    load_vader,
)
from sentiment_trends.matcher import match, match_phrases, phrase_counts
from sentiment_trends.pipeline import PipelineConfig, run
from sentiment_trends.prevalence import top_words, word_frequencies
from sentiment_trends.tokenize import Token, tokenize, tokenize_corpus

__version__ = "0.1.0"
