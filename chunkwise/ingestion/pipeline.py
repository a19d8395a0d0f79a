"""
Ingestion pipeline for chunkwise.

This module runs a sequence of transforms (splitting, then optionally
metadata extraction) over nodes, memoizing each step in the ingestion cache:
1. Fingerprint the step's input nodes and the transform configuration
2. Return the cached output on a hit, skipping the transform entirely
3. Otherwise run the transform and store its output under the fingerprint
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Sequence

from langchain_core.documents import Document

from chunkwise.config.settings import Settings, get_settings
from chunkwise.core.node import TextNode
from chunkwise.core.transform import TransformComponent
from chunkwise.ingestion.cache import BaseKVStore, IngestionCache
from chunkwise.ingestion.chunker import SentenceSplitter
from chunkwise.ingestion.hashing import get_transformation_hash
from chunkwise.utils.exceptions import ChunkwiseError, PipelineError, is_recoverable
from chunkwise.utils.logging import (
    LoggerMixin,
    clear_correlation_id,
    get_correlation_id,
    log_function_call,
    set_correlation_id,
    setup_logging,
)


@dataclass
class IngestionResult:
    """
    Result of an ingestion operation.

    Attributes:
        success: Whether the ingestion was successful.
        source: Name of the ingested source.
        num_input_nodes: Number of nodes fed into the first transform.
        num_output_nodes: Number of nodes produced by the last transform.
        cache_hits: Transform steps answered from the cache.
        cache_misses: Transform steps that had to run.
        nodes: Output nodes.
        error: Error message if ingestion failed (None if successful).
    """
    success: bool
    source: str
    num_input_nodes: int = 0
    num_output_nodes: int = 0
    cache_hits: int = 0
    cache_misses: int = 0
    nodes: List[TextNode] = field(default_factory=list)
    error: str | None = None

    def __str__(self) -> str:
        """Human-readable string representation."""
        if self.success:
            return (
                f"✓ {self.source}: "
                f"{self.num_input_nodes} nodes → "
                f"{self.num_output_nodes} chunks "
                f"({self.cache_hits} cached, {self.cache_misses} computed)"
            )
        return f"✗ {self.source}: {self.error}"


@contextmanager
def _run_correlation_scope() -> Iterator[str]:
    """Bind a fresh correlation id for one run unless the caller already set one."""
    existing = get_correlation_id()
    if existing is not None:
        yield existing
        return
    correlation_id = set_correlation_id()
    try:
        yield correlation_id
    finally:
        clear_correlation_id()


@dataclass
class _RunStats:
    cache_hits: int = 0
    cache_misses: int = 0


class IngestionPipeline(LoggerMixin):
    """
    Cached transform pipeline.

    Args:
        transformations: Transforms applied in order.
        cache: Ingestion cache; a fresh in-memory cache when omitted.
        use_cache: Disable to always recompute.

    Example:
        >>> pipeline = IngestionPipeline([SentenceSplitter(chunk_size=512, chunk_overlap=50)])
        >>> result = await pipeline.ingest_text("long text...", source_name="notes")
        >>> print(result)
        ✓ notes: 1 nodes → 3 chunks (0 cached, 1 computed)
    """

    def __init__(
        self,
        transformations: Sequence[TransformComponent],
        cache: Optional[IngestionCache] = None,
        use_cache: bool = True,
    ) -> None:
        super().__init__()

        self.transformations = list(transformations)
        self.cache = cache if cache is not None else IngestionCache()
        self.use_cache = use_cache

        self.logger.info(
            "ingestion_pipeline_initialized",
            transformations=[type(t).__name__ for t in self.transformations],
            use_cache=use_cache,
            cache_collection=self.cache.collection,
        )

    async def run(
        self,
        nodes: Optional[Sequence[TextNode]] = None,
        documents: Optional[Sequence[Document]] = None,
    ) -> List[TextNode]:
        """
        Run every transform over the input, using the cache where possible.

        Args:
            nodes: Input nodes.
            documents: LangChain documents, converted to nodes and appended.

        Returns:
            Output nodes of the last transform.

        Raises:
            PipelineError: If neither nodes nor documents are given.
        """
        inputs = self._collect_inputs(nodes, documents)
        with _run_correlation_scope():
            return await self._run(inputs, _RunStats())

    @log_function_call(include_args=False)
    async def _run(self, nodes: List[TextNode], stats: _RunStats) -> List[TextNode]:
        for transform in self.transformations:
            name = type(transform).__name__
            if not self.use_cache:
                nodes = await transform.atransform(nodes)
                stats.cache_misses += 1
                continue

            fingerprint = get_transformation_hash(nodes, transform)
            cached = await self._lookup(fingerprint, name)
            if cached is not None:
                stats.cache_hits += 1
                self.logger.info(
                    "transform_cache_hit",
                    transform=name,
                    fingerprint=fingerprint,
                    num_nodes=len(cached),
                )
                nodes = cached
                continue

            stats.cache_misses += 1
            nodes = await transform.atransform(nodes)
            await self._store(fingerprint, nodes, name)
            self.logger.info(
                "transform_computed",
                transform=name,
                fingerprint=fingerprint,
                num_nodes=len(nodes),
            )
        return nodes

    async def _lookup(self, fingerprint: str, name: str) -> Optional[List[TextNode]]:
        try:
            return await self.cache.get(fingerprint)
        except ChunkwiseError as e:
            if not is_recoverable(e):
                raise
            self.logger.error(
                "cache_lookup_unavailable",
                transform=name,
                fingerprint=fingerprint,
                error=str(e),
            )
            return None

    async def _store(self, fingerprint: str, nodes: List[TextNode], name: str) -> None:
        try:
            await self.cache.put(fingerprint, nodes)
        except ChunkwiseError as e:
            if not is_recoverable(e):
                raise
            self.logger.error(
                "cache_store_unavailable",
                transform=name,
                fingerprint=fingerprint,
                error=str(e),
            )

    def _collect_inputs(
        self,
        nodes: Optional[Sequence[TextNode]],
        documents: Optional[Sequence[Document]],
    ) -> List[TextNode]:
        if nodes is None and documents is None:
            raise PipelineError("Either nodes or documents must be provided")
        inputs = list(nodes or [])
        inputs.extend(TextNode.from_document(document) for document in documents or [])
        return inputs

    async def ingest_documents(
        self,
        documents: Sequence[Document],
        source_name: str = "documents",
    ) -> IngestionResult:
        """
        Ingest LangChain documents.

        Never raises; failures are reported through the result.

        Args:
            documents: Documents to ingest.
            source_name: Name used in logs and in the result.

        Returns:
            IngestionResult with details of the operation.
        """
        self.logger.info(
            "Starting document ingestion",
            source_name=source_name,
            num_documents=len(documents),
        )
        if not documents:
            error_msg = "No documents provided"
            self.logger.warning(error_msg, source_name=source_name)
            return IngestionResult(success=False, source=source_name, error=error_msg)

        return await self._ingest(
            [TextNode.from_document(document) for document in documents], source_name
        )

    async def ingest_text(
        self,
        text: str,
        source_name: str = "text_input",
        metadata: dict | None = None,
    ) -> IngestionResult:
        """
        Ingest raw text directly.

        Args:
            text: Raw text content to ingest.
            source_name: Name to use as source in metadata.
            metadata: Optional metadata to attach to all chunks.

        Returns:
            IngestionResult with details of the operation.
        """
        self.logger.info("Starting text ingestion", source_name=source_name, text_length=len(text))

        base_metadata = {"source": source_name}
        if metadata:
            base_metadata.update(metadata)

        return await self._ingest([TextNode(text=text, metadata=base_metadata)], source_name)

    async def _ingest(self, inputs: List[TextNode], source_name: str) -> IngestionResult:
        with _run_correlation_scope():
            return await self._ingest_in_scope(inputs, source_name)

    async def _ingest_in_scope(self, inputs: List[TextNode], source_name: str) -> IngestionResult:
        stats = _RunStats()
        try:
            nodes = await self._run(inputs, stats)
        except Exception as e:
            error_msg = str(e)
            self.logger.error(
                "Ingestion failed",
                source_name=source_name,
                error=error_msg,
                exc_info=True,
            )
            return IngestionResult(
                success=False,
                source=source_name,
                num_input_nodes=len(inputs),
                cache_hits=stats.cache_hits,
                cache_misses=stats.cache_misses,
                error=error_msg,
            )

        if not nodes:
            error_msg = "No chunks created from input"
            self.logger.warning(error_msg, source_name=source_name)
            return IngestionResult(
                success=False,
                source=source_name,
                num_input_nodes=len(inputs),
                cache_hits=stats.cache_hits,
                cache_misses=stats.cache_misses,
                error=error_msg,
            )

        self.logger.info(
            "Ingestion complete",
            source_name=source_name,
            num_input_nodes=len(inputs),
            num_output_nodes=len(nodes),
            cache_hits=stats.cache_hits,
            cache_misses=stats.cache_misses,
        )
        return IngestionResult(
            success=True,
            source=source_name,
            num_input_nodes=len(inputs),
            num_output_nodes=len(nodes),
            cache_hits=stats.cache_hits,
            cache_misses=stats.cache_misses,
            nodes=nodes,
        )


def create_pipeline(
    settings: Optional[Settings] = None,
    extractors: Sequence[TransformComponent] = (),
    backend: Optional[BaseKVStore] = None,
) -> IngestionPipeline:
    """
    Build a splitter-first pipeline from settings.

    Configures logging, builds the splitter from the chunking section and the
    cache from the cache section, then appends ``extractors`` in order.

    Args:
        settings: Application settings. If None, loads from environment.
        extractors: Transforms to run after splitting.
        backend: Key-value backend for the cache (in-memory by default).

    Returns:
        Configured IngestionPipeline.
    """
    if settings is None:
        settings = get_settings()

    setup_logging(
        log_level=settings.logging.log_level,
        log_format=settings.logging.log_format,
        app_name=settings.app_name,
    )

    splitter = SentenceSplitter.from_settings(settings.chunking)
    cache = IngestionCache.from_settings(settings.cache, backend=backend)
    return IngestionPipeline(
        [splitter, *extractors],
        cache=cache,
        use_cache=settings.cache.enabled,
    )
