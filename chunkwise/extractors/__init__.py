"""
Metadata extractors for chunkwise.

LLM-backed transforms that attach keywords, titles, answerable questions
and summaries to nodes.
"""

from chunkwise.extractors.base import BaseExtractor
from chunkwise.extractors.metadata import (
    KeywordExtractor,
    QuestionsAnsweredExtractor,
    SummaryExtractor,
    TitleExtractor,
)

__all__ = [
    "BaseExtractor",
    "KeywordExtractor",
    "QuestionsAnsweredExtractor",
    "SummaryExtractor",
    "TitleExtractor",
]
