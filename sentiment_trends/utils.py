# sentiment_trends/utils.py
from pathlib import Path
import re

import pandas as pd

# ROOT = project root
ROOT = Path(__file__).resolve().parents[1]

def data_root() -> Path:
    return ROOT / "data"

def raw_dir() -> Path:
    return data_root() / "raw"

def processed_dir() -> Path:
    return data_root() / "processed"

def lexicon_dir() -> Path:
    return data_root() / "lexicons"

def list_raw_csvs():
    return sorted(raw_dir().glob("*.csv"))

def safe_read_csv(path):
    return pd.read_csv(path, low_memory=False)

def clean_text(s: str) -> str:
    """Strip the parts of a post that are never words: urls, html, entities, retweet prefix."""
    if s is None or (isinstance(s, float) and pd.isna(s)):
        return ""
    s = str(s)
    s = re.sub(r"http\S+|www\S+|https\S+", " ", s)
    s = re.sub(r"\<[^\>]*\>", " ", s)
    # &amp; &lt; &gt; survive from the upstream api as literal entities
    s = re.sub(r"&[a-zA-Z]+;|&#\d+;", " ", s)
    s = re.sub(r"^\s*RT\b:?", " ", s)
    s = re.sub(r"\s+", " ", s).strip()
    return s

def date_bucket(values: pd.Series, freq: str = "D") -> pd.Series:
    """Map timestamps onto the start date of their period (day, week, month...)."""
    stamps = pd.to_datetime(values, errors="coerce")
    if getattr(stamps.dt, "tz", None) is not None:
        # keep the wall-clock date of tz-aware stamps
        stamps = stamps.dt.tz_localize(None)
    if freq == "D":
        return stamps.dt.normalize().dt.date
    return stamps.dt.to_period(freq).dt.start_time.dt.date
