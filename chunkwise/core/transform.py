"""
Transform contract for the ingestion pipeline.

A transform maps a node sequence to a new node sequence. Its effective
configuration is a plain serializable record, which is all the ingestion
cache needs to fingerprint it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Sequence

from pydantic import BaseModel, ConfigDict

from chunkwise.core.node import TextNode
from chunkwise.utils.logging import LoggerMixin


class TransformConfig(BaseModel):
    """
    Serializable configuration of a transform.

    Subclasses set a ``transform`` discriminator so two transforms with the
    same parameters but different behaviour never share a fingerprint.
    """

    model_config = ConfigDict(frozen=True)

    transform: str

    def is_metadata_sensitive(self) -> bool:
        """Whether the transform's output depends on input node metadata."""
        return False


class TransformComponent(LoggerMixin, ABC):
    """Base class for anything the ingestion pipeline can run and cache."""

    @property
    @abstractmethod
    def config(self) -> TransformConfig:
        """Effective configuration used for fingerprinting."""

    @abstractmethod
    async def atransform(self, nodes: Sequence[TextNode]) -> List[TextNode]:
        """Apply the transform to ``nodes``."""
