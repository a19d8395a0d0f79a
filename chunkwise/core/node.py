"""
Node model for chunkwise.

A node is an identified unit of text flowing through the pipeline. Splitters
create nodes from source documents; extractors return copies with extra
metadata. Node text never changes after creation.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional
from uuid import uuid4

from langchain_core.documents import Document
from pydantic import BaseModel, ConfigDict, Field


class TextNode(BaseModel):
    """
    An identified unit of text with optional metadata and relationships.

    Attributes:
        id: Stable node identifier.
        text: Text content.
        metadata: Ordered mapping of metadata keys to values.
        source_node_id: Identifier of the node this one was split from.
        prev_node_id: Identifier of the previous sibling chunk.
        next_node_id: Identifier of the next sibling chunk.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid4()))
    text: str = ""
    metadata: Dict[str, Any] = Field(default_factory=dict)
    source_node_id: Optional[str] = None
    prev_node_id: Optional[str] = None
    next_node_id: Optional[str] = None

    def get_content(self, include_metadata: bool = False) -> str:
        """
        Get node content, optionally prefixed with its metadata.

        Args:
            include_metadata: Prepend ``key: value`` lines for each metadata entry.

        Returns:
            The text content.
        """
        if not include_metadata or not self.metadata:
            return self.text
        header = "\n".join(f"{key}: {value}" for key, value in self.metadata.items())
        return f"{header}\n\n{self.text}"

    def with_metadata(self, **values: Any) -> TextNode:
        """Return a copy of this node with ``values`` merged into its metadata."""
        return self.model_copy(update={"metadata": {**self.metadata, **values}})

    @classmethod
    def from_document(cls, document: Document) -> TextNode:
        """
        Build a node from a LangChain document.

        The document id is reused when present so repeated loads of the same
        source keep their identity.
        """
        kwargs: Dict[str, Any] = {
            "text": document.page_content,
            "metadata": dict(document.metadata),
        }
        if document.id:
            kwargs["id"] = document.id
        return cls(**kwargs)

    def to_document(self) -> Document:
        """Convert this node into a LangChain document for vector stores."""
        metadata = dict(self.metadata)
        metadata["node_id"] = self.id
        if self.source_node_id is not None:
            metadata["source_node_id"] = self.source_node_id
        return Document(id=self.id, page_content=self.text, metadata=metadata)


def nodes_to_documents(nodes: List[TextNode]) -> List[Document]:
    """Convert a node sequence into LangChain documents."""
    return [node.to_document() for node in nodes]
