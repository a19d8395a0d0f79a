"""
Unit tests for transformation fingerprints.
"""

from datetime import datetime
from functools import partial

import pytest
from hypothesis import given
from pydantic import BaseModel

from chunkwise.core.node import TextNode
from chunkwise.extractors.metadata import KeywordExtractor
from chunkwise.ingestion.chunker import SentenceSplitter
from chunkwise.ingestion.hashing import canonicalize, get_transformation_hash
from chunkwise.utils.exceptions import CacheError, InvalidConfigurationError
from tests.strategies import node_list


def _scaled_len(text: str, factor: int = 1) -> int:
    return len(text) * factor


class LineParserConfig(BaseModel):
    max_lines: int


class LineParser:
    """Parser that groups a fixed number of lines per chunk."""

    def __init__(self, max_lines: int) -> None:
        self.config = LineParserConfig(max_lines=max_lines)

    def split_text(self, text, max_chars):
        lines = text.splitlines(keepends=True)
        step = self.config.max_lines
        return ["".join(lines[i:i + step]) for i in range(0, len(lines), step)]


class Opaque:
    """Value without a JSON form."""


class TestTransformationHash:
    """Test suite for get_transformation_hash."""

    def test_equal_inputs_equal_hash(self):
        """Freshly built equal inputs give the same fingerprint."""
        h1 = get_transformation_hash(
            [TextNode(text="some text")], SentenceSplitter(chunk_size=100, chunk_overlap=10)
        )
        h2 = get_transformation_hash(
            [TextNode(text="some text")], SentenceSplitter(chunk_size=100, chunk_overlap=10)
        )

        assert h1 == h2
        assert len(h1) == 64

    def test_text_change_changes_hash(self):
        """A single changed character changes the fingerprint."""
        splitter = SentenceSplitter(chunk_size=100, chunk_overlap=10)

        assert get_transformation_hash([TextNode(text="some text")], splitter) != get_transformation_hash(
            [TextNode(text="some texT")], splitter
        )

    def test_overlap_change_changes_hash(self):
        """A single changed config field changes the fingerprint."""
        nodes = [TextNode(text="some text")]

        assert get_transformation_hash(
            nodes, SentenceSplitter(chunk_size=100, chunk_overlap=10)
        ) != get_transformation_hash(nodes, SentenceSplitter(chunk_size=100, chunk_overlap=11))

    def test_node_ids_do_not_matter(self):
        """Identity plays no part in the fingerprint."""
        splitter = SentenceSplitter(chunk_size=100, chunk_overlap=10, include_metadata=False)

        assert get_transformation_hash([TextNode(id="a", text="x")], splitter) == get_transformation_hash(
            [TextNode(id="b", text="x")], splitter
        )

    def test_node_order_matters(self):
        """Node sequence order is part of the fingerprint."""
        splitter = SentenceSplitter(chunk_size=100, chunk_overlap=10)
        a, b = TextNode(text="a"), TextNode(text="b")

        assert get_transformation_hash([a, b], splitter) != get_transformation_hash([b, a], splitter)

    def test_node_boundaries_are_unambiguous(self):
        """Splitting the same characters differently across nodes changes the fingerprint."""
        splitter = SentenceSplitter(chunk_size=100, chunk_overlap=10)

        assert get_transformation_hash(
            [TextNode(text="ab"), TextNode(text="c")], splitter
        ) != get_transformation_hash([TextNode(text="a"), TextNode(text="bc")], splitter)

    def test_metadata_ignored_when_not_sensitive(self):
        """Metadata is excluded for metadata-insensitive transforms."""
        splitter = SentenceSplitter(chunk_size=100, chunk_overlap=10, include_metadata=False)

        assert get_transformation_hash(
            [TextNode(text="x", metadata={"a": 1})], splitter
        ) == get_transformation_hash([TextNode(text="x", metadata={"a": 2})], splitter)

    def test_metadata_included_when_sensitive(self):
        """Metadata is part of the fingerprint for metadata-sensitive transforms."""
        splitter = SentenceSplitter(chunk_size=100, chunk_overlap=10)

        assert get_transformation_hash(
            [TextNode(text="x", metadata={"a": 1})], splitter
        ) != get_transformation_hash([TextNode(text="x", metadata={"a": 2})], splitter)

    def test_metadata_key_order_does_not_matter(self):
        """Canonical form sorts keys."""
        splitter = SentenceSplitter(chunk_size=100, chunk_overlap=10)

        assert get_transformation_hash(
            [TextNode(text="x", metadata={"a": 1, "b": 2})], splitter
        ) == get_transformation_hash([TextNode(text="x", metadata={"b": 2, "a": 1})], splitter)

    def test_component_and_config_agree(self):
        """A transform and its configuration record fingerprint the same."""
        splitter = SentenceSplitter(chunk_size=100, chunk_overlap=10)
        nodes = [TextNode(text="x")]

        assert get_transformation_hash(nodes, splitter) == get_transformation_hash(nodes, splitter.config)

    def test_different_transforms_differ(self, mock_llm):
        """Different transform kinds never share a fingerprint."""
        nodes = [TextNode(text="x")]

        assert get_transformation_hash(
            nodes, SentenceSplitter(chunk_size=100, chunk_overlap=10)
        ) != get_transformation_hash(nodes, KeywordExtractor(mock_llm))

    def test_canonical_form_is_json(self):
        """Canonical form holds node texts and the transform config."""
        splitter = SentenceSplitter(chunk_size=100, chunk_overlap=10, include_metadata=False)

        canonical = canonicalize([TextNode(text="x")], splitter)

        assert canonical.startswith('{"nodes":["x"],"transform":{')
        assert '"chunk_overlap":10' in canonical

    @given(nodes=node_list())
    def test_hash_is_pure(self, nodes):
        """Property: hashing copies of the same nodes gives the same result."""
        splitter = SentenceSplitter(chunk_size=100, chunk_overlap=10)
        copies = [node.model_copy(deep=True) for node in nodes]

        assert get_transformation_hash(nodes, splitter) == get_transformation_hash(copies, splitter)


class TestSplitterFingerprintIdentity:
    """Test that every output-affecting splitter setting reaches the fingerprint."""

    def test_named_length_functions_differ(self):
        """Different module-level size functions give different fingerprints."""
        nodes = [TextNode(text="some text")]

        assert get_transformation_hash(
            nodes, SentenceSplitter(chunk_size=20, chunk_overlap=0)
        ) != get_transformation_hash(
            nodes, SentenceSplitter(chunk_size=20, chunk_overlap=0, length_function=_scaled_len)
        )

    def test_length_function_ids_differ(self):
        """Explicit ids distinguish lambdas that share a qualname."""
        nodes = [TextNode(text="some text")]
        plain = SentenceSplitter(
            chunk_size=20,
            chunk_overlap=0,
            length_function=lambda s: len(s),
            length_function_id="chars",
        )
        scaled = SentenceSplitter(
            chunk_size=20,
            chunk_overlap=0,
            length_function=lambda s: len(s) * 4,
            length_function_id="chars_x4",
        )

        assert get_transformation_hash(nodes, plain) != get_transformation_hash(nodes, scaled)

    def test_anonymous_length_function_cannot_be_fingerprinted(self):
        """A lambda without an id is rejected instead of sharing a fingerprint."""
        splitter = SentenceSplitter(chunk_size=20, chunk_overlap=0, length_function=lambda s: len(s))

        with pytest.raises(InvalidConfigurationError):
            get_transformation_hash([TextNode(text="x")], splitter)

    def test_partial_length_function_cannot_be_fingerprinted(self):
        """Partials differ only in bound arguments, so they need an explicit id."""
        splitter = SentenceSplitter(
            chunk_size=20, chunk_overlap=0, length_function=partial(_scaled_len, factor=4)
        )

        with pytest.raises(InvalidConfigurationError):
            get_transformation_hash([TextNode(text="x")], splitter)

    def test_parser_config_changes_hash(self):
        """Differently configured parsers give different fingerprints."""
        nodes = [TextNode(text="a\nb\nc\n")]

        assert get_transformation_hash(
            nodes, SentenceSplitter(chunk_size=50, chunk_overlap=0, parser=LineParser(1))
        ) != get_transformation_hash(
            nodes, SentenceSplitter(chunk_size=50, chunk_overlap=0, parser=LineParser(2))
        )

    def test_equal_parser_config_equal_hash(self):
        """Independently built parsers with equal settings fingerprint the same."""
        nodes = [TextNode(text="a\nb\n")]

        assert get_transformation_hash(
            nodes, SentenceSplitter(chunk_size=50, chunk_overlap=0, parser=LineParser(2))
        ) == get_transformation_hash(
            nodes, SentenceSplitter(chunk_size=50, chunk_overlap=0, parser=LineParser(2))
        )

    def test_parser_without_config_cannot_be_fingerprinted(self):
        """A parser that cannot describe itself is rejected."""

        class BareParser:
            def split_text(self, text, max_chars):
                return [text]

        splitter = SentenceSplitter(chunk_size=50, chunk_overlap=0, parser=BareParser())

        with pytest.raises(InvalidConfigurationError):
            get_transformation_hash([TextNode(text="x")], splitter)


class TestMetadataCanonicalForm:
    """Test canonical JSON of metadata values."""

    def test_common_values_are_canonical(self):
        """Datetimes and sets have a stable canonical form."""
        splitter = SentenceSplitter(chunk_size=100, chunk_overlap=10)
        when = datetime(2024, 1, 2, 3, 4, 5)

        canonical = canonicalize(
            [TextNode(text="x", metadata={"at": when, "tags": {"b", "a"}})], splitter
        )

        assert '"at":"2024-01-02T03:04:05"' in canonical
        assert '"tags":["a","b"]' in canonical

    def test_opaque_metadata_is_rejected(self):
        """Values whose str() carries a memory address are not hashed."""
        splitter = SentenceSplitter(chunk_size=100, chunk_overlap=10)

        with pytest.raises(CacheError):
            get_transformation_hash([TextNode(text="x", metadata={"obj": Opaque()})], splitter)

    def test_opaque_metadata_ignored_when_not_sensitive(self):
        """Metadata-insensitive transforms never look at metadata values."""
        splitter = SentenceSplitter(chunk_size=100, chunk_overlap=10, include_metadata=False)

        assert len(
            get_transformation_hash([TextNode(text="x", metadata={"obj": Opaque()})], splitter)
        ) == 64
