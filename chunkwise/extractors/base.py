"""
Base class for LLM-backed metadata extractors.

An extractor is a transform that leaves node text untouched and returns
copies of the nodes with extra metadata. The language model is an opaque
collaborator: anything with ``ainvoke(prompt)`` returning a message or a
string.
"""

from __future__ import annotations

import asyncio
import re
from abc import abstractmethod
from typing import Any, Dict, List, Sequence

from langchain_core.prompts import PromptTemplate

from chunkwise.core.node import TextNode
from chunkwise.core.transform import TransformComponent, TransformConfig
from chunkwise.extractors.prompts import build_prompt
from chunkwise.utils.exceptions import ExtractionError, InvalidConfigurationError

_NEWLINES = re.compile(r"(\r\n|\n|\r)")


class ExtractorConfig(TransformConfig):
    """Shared configuration of every extractor."""

    model: str
    prompt_template: str

    def is_metadata_sensitive(self) -> bool:
        # Prompts include node metadata, so earlier extractors change the output.
        return True


def describe_llm(llm: Any) -> str:
    """Best-effort model identifier for fingerprinting."""
    for attribute in ("model_name", "model"):
        value = getattr(llm, attribute, None)
        if isinstance(value, str) and value:
            return value
    return type(llm).__name__


def strip_newlines(text: str) -> str:
    return _NEWLINES.sub("", text)


def require_positive(name: str, value: int) -> None:
    if value < 1:
        raise InvalidConfigurationError(
            f"{name} must be greater than 0",
            details={name: value},
        )


def prompt_or_default(template: str | None, default: PromptTemplate, required: set[str]) -> PromptTemplate:
    if template is None:
        return default
    try:
        return build_prompt(template, required)
    except ValueError as e:
        raise InvalidConfigurationError(str(e), cause=e) from e


class BaseExtractor(TransformComponent):
    """
    Transform that adds LLM-generated metadata to nodes.

    Subclasses implement :meth:`extract`, returning one metadata dict per node.
    """

    def __init__(self, llm: Any, max_concurrency: int = 4) -> None:
        require_positive("max_concurrency", max_concurrency)
        self.llm = llm
        self.max_concurrency = max_concurrency

    @abstractmethod
    async def extract(self, nodes: Sequence[TextNode]) -> List[Dict[str, Any]]:
        """Return one metadata dict per input node."""

    async def atransform(self, nodes: Sequence[TextNode]) -> List[TextNode]:
        metadata_list = await self.extract(nodes)
        self.logger.info(
            "metadata_extracted",
            extractor=type(self).__name__,
            num_nodes=len(nodes),
        )
        return [node.with_metadata(**metadata) for node, metadata in zip(nodes, metadata_list)]

    async def complete(self, prompt: str) -> str:
        """
        Call the language model once.

        Raises:
            ExtractionError: If the model call fails.
        """
        try:
            response = await self.llm.ainvoke(prompt)
        except Exception as e:
            self.logger.error(
                "llm_completion_failed",
                extractor=type(self).__name__,
                error=str(e),
            )
            raise ExtractionError(
                f"LLM completion failed: {e}",
                details={"extractor": type(self).__name__},
                cause=e,
            ) from e
        content = getattr(response, "content", response)
        return content.strip() if isinstance(content, str) else str(content).strip()

    async def complete_all(self, prompts: Sequence[str]) -> List[str]:
        """Run several completions concurrently, at most ``max_concurrency`` at a time."""
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def run(prompt: str) -> str:
            async with semaphore:
                return await self.complete(prompt)

        return list(await asyncio.gather(*(run(prompt) for prompt in prompts)))
