"""
Size-bounded recursive text splitter.

This module provides ``SentenceSplitter``, which splits text into chunks no
larger than ``chunk_size`` while keeping paragraph, sentence and phrase
boundaries where it can, and carries ``chunk_overlap`` worth of trailing
context from each chunk into the next.

It is a LangChain ``TextSplitter``, so it drops into LangChain document
pipelines, and a ``TransformComponent``, so the ingestion pipeline can cache
its output.
"""

from __future__ import annotations

import functools
import inspect
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Sequence, Tuple, Union
from uuid import uuid4

from langchain_core.documents import Document
from langchain_text_splitters import TextSplitter
from pydantic import BaseModel

from chunkwise.config.settings import ChunkingSettings
from chunkwise.core.node import TextNode
from chunkwise.core.transform import TransformComponent, TransformConfig
from chunkwise.ingestion.splitters import PHRASE_REGEX, SplitStrategy, StrategyKind
from chunkwise.ingestion.tokenizer import SentenceTokenizer
from chunkwise.utils.exceptions import InvalidConfigurationError


class ChunkParser(Protocol):
    """
    Grammar-aware collaborator that can replace the built-in strategy chain.

    ``config`` describes every setting that affects the parser's output, as a
    pydantic model or a JSON-compatible mapping. Splitters that delegate to a
    parser fingerprint it through this record.
    """

    config: Any

    def split_text(self, text: str, max_chars: int) -> List[str]: ...


class SplitterConfig(TransformConfig):
    """Effective configuration of a ``SentenceSplitter``."""

    transform: str = "sentence_splitter"
    chunk_size: int
    chunk_overlap: int
    strategies: Tuple[str, ...]
    abbreviations: Tuple[str, ...]
    length_function: str
    parser: Optional[Dict[str, Any]] = None
    include_metadata: bool = True
    include_prev_next_rel: bool = True

    def is_metadata_sensitive(self) -> bool:
        return self.include_metadata


def _qualified_name(obj: Any) -> str:
    return f"{obj.__module__}.{obj.__qualname__}"


def _length_function_id(fn: Callable[[str], int]) -> Optional[str]:
    """Name a size function by import path, or None when the path is ambiguous."""
    if isinstance(fn, functools.partial) or inspect.ismethod(fn):
        return None
    module = getattr(fn, "__module__", None)
    qualname = getattr(fn, "__qualname__", None)
    if not module or not qualname or "<" in qualname:
        # Lambdas and closures share a qualname across different bodies.
        return None
    return f"{module}.{qualname}"


def _parser_config(parser: ChunkParser) -> Dict[str, Any]:
    config = getattr(parser, "config", None)
    if isinstance(config, BaseModel):
        values = config.model_dump(mode="json")
    elif isinstance(config, Mapping):
        values = dict(config)
    else:
        raise InvalidConfigurationError(
            f"Parser {type(parser).__name__} exposes no config record to fingerprint",
            details={"parser": _qualified_name(type(parser))},
        )
    return {"type": _qualified_name(type(parser)), "config": values}


StrategyLike = Union[StrategyKind, str, SplitStrategy]


class SentenceSplitter(TextSplitter, TransformComponent):
    """
    Recursive splitter with a fixed strategy priority list and char-level overlap.

    Text is split with the first strategy; any unit still larger than
    ``chunk_size - chunk_overlap`` is re-split with the next strategies, down to
    single characters. Units are then merged greedily into chunks of at most
    ``chunk_size``; every chunk after the first starts with the last
    ``chunk_overlap`` characters (or tokens) of the previous one.

    Args:
        chunk_size: Maximum chunk size as measured by ``length_function``.
        chunk_overlap: Size of the tail carried into the next chunk.
        paragraph_separator: Separator for the paragraph strategy.
        separator: Separator for the word-level separator strategy.
        secondary_chunking_regex: Regex for the phrase strategy.
        strategies: Priority list of strategy kinds or explicit strategies.
            Character splitting is always appended as the last resort.
        keep_separator: Whether literal-separator strategies keep the separator.
        length_function: Size measurement, ``len`` by default.
        length_function_id: Stable name of ``length_function`` for cache
            fingerprints. Required for lambdas, closures, partials and bound
            methods, whose import path does not identify their behaviour.
        tokenizer: Sentence tokenizer shared by the sentence strategy.
        parser: Optional collaborator that splits text on its own.
        include_metadata: Copy source node metadata onto its chunks.
        include_prev_next_rel: Link sibling chunks through prev/next ids.
        add_start_index: Record ``start_index`` in ``create_documents`` output.

    Example:
        >>> splitter = SentenceSplitter(chunk_size=40, chunk_overlap=5)
        >>> chunks = splitter.split_text("First sentence here. Second one is here too.")
        >>> all(len(chunk) <= 40 for chunk in chunks)
        True
    """

    DEFAULT_STRATEGIES: Tuple[StrategyKind, ...] = (
        StrategyKind.PARAGRAPH,
        StrategyKind.SENTENCE,
        StrategyKind.PHRASE,
        StrategyKind.SEPARATOR,
        StrategyKind.CHARACTER,
    )

    def __init__(
        self,
        chunk_size: int = 1024,
        chunk_overlap: int = 200,
        paragraph_separator: str = "\n\n\n",
        separator: str = " ",
        secondary_chunking_regex: str = PHRASE_REGEX,
        strategies: Optional[Sequence[StrategyLike]] = None,
        keep_separator: bool = True,
        length_function: Callable[[str], int] = len,
        length_function_id: Optional[str] = None,
        tokenizer: Optional[SentenceTokenizer] = None,
        parser: Optional[ChunkParser] = None,
        include_metadata: bool = True,
        include_prev_next_rel: bool = True,
        add_start_index: bool = False,
    ) -> None:
        if chunk_size < 1:
            raise InvalidConfigurationError(
                f"chunk_size ({chunk_size}) must be at least 1",
                details={"chunk_size": chunk_size},
            )
        if chunk_overlap < 0:
            raise InvalidConfigurationError(
                f"chunk_overlap ({chunk_overlap}) must not be negative",
                details={"chunk_overlap": chunk_overlap},
            )
        if chunk_overlap >= chunk_size:
            raise InvalidConfigurationError(
                f"chunk_overlap ({chunk_overlap}) must be less than chunk_size ({chunk_size})",
                details={"chunk_size": chunk_size, "chunk_overlap": chunk_overlap},
            )

        super().__init__(
            chunk_size=chunk_size,
            chunk_overlap=chunk_overlap,
            length_function=length_function,
            keep_separator=keep_separator,
            add_start_index=add_start_index,
            strip_whitespace=False,
        )

        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self.paragraph_separator = paragraph_separator
        self.separator = separator
        self.secondary_chunking_regex = secondary_chunking_regex
        self.keep_separator = keep_separator
        self.length_function = length_function
        self.length_function_id = length_function_id or _length_function_id(length_function)
        self.tokenizer = tokenizer if tokenizer is not None else SentenceTokenizer()
        self.parser = parser
        self.include_metadata = include_metadata
        self.include_prev_next_rel = include_prev_next_rel
        self.strategies = self._build_strategies(
            strategies if strategies is not None else self.DEFAULT_STRATEGIES
        )

        self.logger.info(
            "sentence_splitter_initialized",
            chunk_size=chunk_size,
            chunk_overlap=chunk_overlap,
            strategies=[strategy.identifier for strategy in self.strategies],
            has_parser=parser is not None,
        )

    @classmethod
    def from_settings(cls, settings: ChunkingSettings, **kwargs: Any) -> SentenceSplitter:
        """
        Build a splitter from chunking settings.

        Args:
            settings: Chunking settings section.
            **kwargs: Overrides and collaborators (tokenizer, parser, length_function).
        """
        options: dict[str, Any] = {
            "chunk_size": settings.chunk_size,
            "chunk_overlap": settings.chunk_overlap,
            "paragraph_separator": settings.paragraph_separator,
            "separator": settings.chunk_separator,
            "secondary_chunking_regex": settings.secondary_chunking_regex,
            "strategies": list(settings.chunk_strategies),
        }
        options.update(kwargs)
        return cls(**options)

    def _build_strategies(self, options: Sequence[StrategyLike]) -> Tuple[SplitStrategy, ...]:
        built = []
        for option in options:
            if isinstance(option, SplitStrategy):
                built.append(option)
                continue
            try:
                kind = StrategyKind(option)
            except ValueError as e:
                raise InvalidConfigurationError(
                    f"Unknown splitting strategy: {option!r}", cause=e
                ) from e
            if kind is StrategyKind.PARAGRAPH:
                built.append(SplitStrategy.paragraph(self.paragraph_separator, self.keep_separator))
            elif kind is StrategyKind.SENTENCE:
                built.append(SplitStrategy.sentence(self.tokenizer))
            elif kind is StrategyKind.PHRASE:
                built.append(SplitStrategy.phrase(self.secondary_chunking_regex))
            elif kind is StrategyKind.SEPARATOR:
                built.append(SplitStrategy.separator_split(self.separator, self.keep_separator))
            elif kind is StrategyKind.CHARACTER:
                built.append(SplitStrategy.character())
            else:
                raise InvalidConfigurationError(
                    "The regex strategy needs an explicit SplitStrategy.regex(pattern)"
                )
        if not built or built[-1].kind is not StrategyKind.CHARACTER:
            built.append(SplitStrategy.character())
        return tuple(built)

    @property
    def config(self) -> SplitterConfig:
        """
        Effective configuration, as fingerprinted by the ingestion cache.

        Raises:
            InvalidConfigurationError: If the size function or the parser
                cannot be identified, since caching would then mix outputs
                of different configurations.
        """
        if self.length_function_id is None:
            raise InvalidConfigurationError(
                "length_function has no stable name; pass length_function_id",
                details={"length_function": repr(self.length_function)},
            )
        return SplitterConfig(
            chunk_size=self.chunk_size,
            chunk_overlap=self.chunk_overlap,
            strategies=tuple(strategy.identifier for strategy in self.strategies),
            abbreviations=tuple(sorted(self.tokenizer.abbreviations)),
            length_function=self.length_function_id,
            parser=_parser_config(self.parser) if self.parser is not None else None,
            include_metadata=self.include_metadata,
            include_prev_next_rel=self.include_prev_next_rel,
        )

    # ------------------------------------------------------------------
    # Splitting
    # ------------------------------------------------------------------

    def split_text(self, text: str) -> List[str]:
        """
        Split text into overlapping chunks of bounded size.

        Args:
            text: Text to split.

        Returns:
            Chunks in document order. Empty input yields no chunks.
        """
        if not text:
            return []

        if self.parser is not None:
            chunks = list(self.parser.split_text(text, self.chunk_size))
            self.logger.debug("text_split_by_parser", num_chunks=len(chunks))
            return chunks

        units = self._split_units(text, 0)
        chunks = self._merge_units(units)
        self.logger.debug(
            "text_split",
            text_length=len(text),
            num_units=len(units),
            num_chunks=len(chunks),
        )
        return chunks

    def split_texts(self, texts: Sequence[str]) -> List[List[str]]:
        """Split several texts independently."""
        return [self.split_text(text) for text in texts]

    def _split_units(self, text: str, level: int) -> List[str]:
        # Leave room for the overlap seed so every chunk can take a new unit.
        budget = self.chunk_size - self.chunk_overlap
        if self.length_function(text) <= budget:
            return [text]

        for index in range(level, len(self.strategies)):
            parts = self.strategies[index].split(text)
            if not parts or (len(parts) == 1 and parts[0] == text):
                continue
            units: List[str] = []
            for part in parts:
                units.extend(self._split_units(part, index + 1))
            return units

        self.logger.warning(
            "oversized_atomic_unit",
            unit_size=self.length_function(text),
            chunk_size=self.chunk_size,
        )
        return [text]

    def _merge_units(self, units: List[str]) -> List[str]:
        chunks: List[str] = []
        current = ""

        for unit in units:
            candidate = current + unit
            if current and self.length_function(candidate) > self.chunk_size:
                chunks.append(current)
                current = self._overlap_seed(current, unit)
                candidate = current + unit
            current = candidate

        if current:
            chunks.append(current)
        return chunks

    def _overlap_seed(self, previous: str, unit: str) -> str:
        if self.chunk_overlap == 0:
            return ""
        seed = self._tail(previous)
        while seed and self.length_function(seed + unit) > self.chunk_size:
            seed = seed[1:]
        return seed

    def _tail(self, text: str) -> str:
        if self.length_function is len:
            return text[-self.chunk_overlap:]
        start = len(text)
        while start > 0 and self.length_function(text[start - 1:]) <= self.chunk_overlap:
            start -= 1
        return text[start:]

    # ------------------------------------------------------------------
    # Nodes and documents
    # ------------------------------------------------------------------

    def transform(self, nodes: Sequence[TextNode]) -> List[TextNode]:
        """
        Split every node into chunk nodes.

        Each chunk node references its source node and, optionally, its
        siblings. Source metadata is copied when ``include_metadata`` is set;
        ``chunk_index`` and ``total_chunks`` are always added.
        """
        output: List[TextNode] = []
        for node in nodes:
            chunks = self.split_text(node.text)
            ids = [str(uuid4()) for _ in chunks]
            for index, chunk in enumerate(chunks):
                metadata = dict(node.metadata) if self.include_metadata else {}
                metadata["chunk_index"] = index
                metadata["total_chunks"] = len(chunks)

                prev_id = next_id = None
                if self.include_prev_next_rel:
                    prev_id = ids[index - 1] if index > 0 else None
                    next_id = ids[index + 1] if index + 1 < len(ids) else None

                output.append(
                    TextNode(
                        id=ids[index],
                        text=chunk,
                        metadata=metadata,
                        source_node_id=node.id,
                        prev_node_id=prev_id,
                        next_node_id=next_id,
                    )
                )
        return output

    async def atransform(self, nodes: Sequence[TextNode]) -> List[TextNode]:
        return self.transform(nodes)

    def chunk_documents(self, documents: List[Document]) -> List[Document]:
        """
        Chunk LangChain documents, preserving and enhancing their metadata.

        Adds ``chunk_index``, ``total_chunks``, ``doc_index``, ``node_id`` and
        ``source_node_id`` to every chunk.

        Args:
            documents: Documents to chunk.

        Returns:
            Chunked documents.
        """
        if not documents:
            self.logger.warning("no_documents_to_chunk")
            return []

        all_chunks: List[Document] = []
        for doc_index, document in enumerate(documents):
            for node in self.transform([TextNode.from_document(document)]):
                chunk = node.to_document()
                chunk.metadata["doc_index"] = doc_index
                all_chunks.append(chunk)

        self.logger.info(
            "document_chunking_complete",
            num_input_documents=len(documents),
            num_output_chunks=len(all_chunks),
        )
        return all_chunks

    def get_stats(self, texts: Sequence[str]) -> dict:
        """
        Describe how a batch of texts is chunked.

        Args:
            texts: Texts to analyze.

        Returns:
            Dictionary of chunking statistics.
        """
        chunk_lists = self.split_texts(texts)
        sizes = [self.length_function(chunk) for chunks in chunk_lists for chunk in chunks]
        stats = {
            "num_texts": len(texts),
            "num_chunks": len(sizes),
            "max_chunk_size": max(sizes, default=0),
            "avg_chunk_size": sum(sizes) / len(sizes) if sizes else 0,
            "chunk_size": self.chunk_size,
            "chunk_overlap": self.chunk_overlap,
        }
        self.logger.debug("chunking_statistics_calculated", **stats)
        return stats
