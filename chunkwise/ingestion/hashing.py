"""
Transformation fingerprints for the ingestion cache.

A fingerprint is the SHA-256 digest of a canonical JSON document holding the
input node texts (and metadata, for metadata-sensitive transforms) and the
transform's serialized configuration. Equal content and configuration give
equal fingerprints in any process; object identity plays no part.
"""

from __future__ import annotations

import hashlib
import json
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from pathlib import PurePath
from typing import Any, Dict, Sequence, Union
from uuid import UUID

from pydantic import BaseModel

from chunkwise.core.node import TextNode
from chunkwise.core.transform import TransformComponent, TransformConfig
from chunkwise.utils.exceptions import CacheError


def _canonical_node(node: TextNode, include_metadata: bool) -> Union[str, Dict[str, Any]]:
    if not include_metadata:
        return node.text
    return {"text": node.text, "metadata": node.metadata}


def _json_default(value: Any) -> Any:
    """Canonical JSON form of common non-JSON metadata values."""
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (UUID, Decimal, PurePath)):
        return str(value)
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=repr)
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    raise TypeError(f"Object of type {type(value).__name__} has no canonical JSON form")


def canonicalize(
    nodes: Sequence[TextNode],
    transform: Union[TransformComponent, TransformConfig],
) -> str:
    """
    Build the canonical string a fingerprint is computed from.

    JSON string escaping keeps node boundaries unambiguous, and keys are
    sorted so configuration order never matters.

    Raises:
        CacheError: If node metadata holds a value with no canonical JSON
            form (its ``str()`` would not be stable across processes).
    """
    config = transform if isinstance(transform, TransformConfig) else transform.config
    include_metadata = config.is_metadata_sensitive()
    payload = {
        "nodes": [_canonical_node(node, include_metadata) for node in nodes],
        "transform": config.model_dump(mode="json"),
    }
    try:
        return json.dumps(
            payload,
            sort_keys=True,
            ensure_ascii=False,
            separators=(",", ":"),
            default=_json_default,
        )
    except TypeError as e:
        raise CacheError(
            "Cannot fingerprint nodes: metadata is not JSON-serializable",
            details={"transform": config.transform},
            cause=e,
        ) from e


def get_transformation_hash(
    nodes: Sequence[TextNode],
    transform: Union[TransformComponent, TransformConfig],
) -> str:
    """
    Fingerprint a node sequence together with a transform configuration.

    Args:
        nodes: Input nodes, in order.
        transform: The transform, or its configuration record.

    Returns:
        64-character hexadecimal SHA-256 digest.

    Example:
        >>> from chunkwise.ingestion.chunker import SentenceSplitter
        >>> splitter = SentenceSplitter(chunk_size=1024, chunk_overlap=10)
        >>> h1 = get_transformation_hash([TextNode(text="some text")], splitter)
        >>> h2 = get_transformation_hash([TextNode(text="some text")], splitter)
        >>> h1 == h2
        True
    """
    return hashlib.sha256(canonicalize(nodes, transform).encode("utf-8")).hexdigest()
