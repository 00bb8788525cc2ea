# wikicontent/textual_manipulation.py

import re
import unicodedata
from typing import Iterable, List, Set

# Anything that is neither a letter nor a digit separates tokens.
TOKEN_SPLIT_RE = re.compile(r'[\W_]+', re.UNICODE)

def strip_diacritics(text: str) -> str:
    """
    Removes diacritics from a string, supporting a wide range of languages
    by normalizing Unicode characters.
    """
    if not isinstance(text, str):
        return text
    # Decompose the string into base characters and combining marks (e.g., accents)
    nfkd_form = unicodedata.normalize('NFKD', text)
    # Filter out the combining marks, leaving only the base characters
    stripped = "".join([c for c in nfkd_form if not unicodedata.combining(c)])
    # Recompose so CJK and Hangul text keeps its canonical form
    return unicodedata.normalize('NFC', stripped)

def normalize_text(text: str) -> str:
    """
    Lowercases, folds full-width forms and removes diacritics so that
    'Kasumi', 'ＫＡＳＵＭＩ' and 'kásumi' compare equal.
    """
    if not text:
        return ""
    folded = unicodedata.normalize('NFKC', str(text)).casefold()
    return " ".join(strip_diacritics(folded).split())

def tokenize(text: str) -> List[str]:
    """Splits normalized text into word tokens, keeping their order."""
    normalized = normalize_text(text)
    if not normalized:
        return []
    return [token for token in TOKEN_SPLIT_RE.split(normalized) if token]

def forward_prefixes(token: str) -> List[str]:
    """'kasumi' -> ['k', 'ka', 'kas', 'kasu', 'kasum', 'kasumi']"""
    return [token[:i] for i in range(1, len(token) + 1)]

def index_terms(texts: Iterable[str]) -> Set[str]:
    """
    Every token of every text plus each token's forward prefixes, so that a
    partially typed word still hits the index.
    """
    terms: Set[str] = set()
    for text in texts:
        for token in tokenize(text):
            terms.update(forward_prefixes(token))
    return terms
