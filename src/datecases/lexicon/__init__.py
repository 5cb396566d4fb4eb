"""Lexicon data sources for datecases."""

from .loader import Lexicon, MonthSize, default_lexicon, load_lexicon

__all__ = [
    "Lexicon",
    "MonthSize",
    "default_lexicon",
    "load_lexicon"
]
