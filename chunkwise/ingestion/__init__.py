"""
Ingestion module for chunkwise.

This module provides the preprocessing core:
- Separator, regex and sentence splitting strategies
- Size-bounded recursive splitting with overlap
- Transformation fingerprints and the ingestion cache
- Cached transform pipeline orchestration
"""

from chunkwise.ingestion.cache import BaseKVStore, InMemoryKVStore, IngestionCache
from chunkwise.ingestion.chunker import ChunkParser, SentenceSplitter, SplitterConfig
from chunkwise.ingestion.hashing import get_transformation_hash
from chunkwise.ingestion.pipeline import IngestionPipeline, IngestionResult, create_pipeline
from chunkwise.ingestion.splitters import SplitStrategy, StrategyKind, truncate_text
from chunkwise.ingestion.tokenizer import DEFAULT_ABBREVIATIONS, SentenceTokenizer

__all__ = [
    "BaseKVStore",
    "InMemoryKVStore",
    "IngestionCache",
    "ChunkParser",
    "SentenceSplitter",
    "SplitterConfig",
    "get_transformation_hash",
    "IngestionPipeline",
    "IngestionResult",
    "create_pipeline",
    "SplitStrategy",
    "StrategyKind",
    "truncate_text",
    "DEFAULT_ABBREVIATIONS",
    "SentenceTokenizer",
]
