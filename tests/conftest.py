"""
Pytest configuration and shared fixtures.

This module provides:
- Shared fixtures for all tests
- Hypothesis profile configuration
- Test environment setup
"""

import os
from collections.abc import Generator
from unittest.mock import AsyncMock, patch

import pytest
from hypothesis import settings as hypothesis_settings, Verbosity
from langchain_core.documents import Document
from langchain_core.messages import AIMessage

from chunkwise.core.node import TextNode
from chunkwise.ingestion.cache import IngestionCache
from chunkwise.ingestion.chunker import SentenceSplitter

# Configure Hypothesis profiles
hypothesis_settings.register_profile(
    "ci",
    max_examples=100,
    deadline=1000,
    verbosity=Verbosity.normal,
)
hypothesis_settings.register_profile(
    "dev",
    max_examples=20,
    deadline=None,
    verbosity=Verbosity.normal,
)
hypothesis_settings.register_profile(
    "debug",
    max_examples=10,
    deadline=None,
    verbosity=Verbosity.verbose,
)

# Load profile from environment or use dev
profile = os.environ.get("HYPOTHESIS_PROFILE", "dev")
hypothesis_settings.load_profile(profile)


SAMPLE_TEXT = (
    "Retrieval systems work on chunks, not documents. "
    "Each chunk must fit the embedding model's window, so long documents are split. "
    "Dr. Smith noted that overlap keeps context across boundaries, e.g. a pronoun "
    "whose referent sits in the previous chunk.\n\n\n"
    "A second paragraph follows here. It is shorter, but still has two sentences."
)


@pytest.fixture
def sample_text() -> str:
    """Multi-paragraph text with abbreviations."""
    return SAMPLE_TEXT


@pytest.fixture
def small_splitter() -> SentenceSplitter:
    """A splitter small enough to force several chunks on the sample text."""
    return SentenceSplitter(chunk_size=80, chunk_overlap=10)


@pytest.fixture
def cache() -> IngestionCache:
    """Fresh in-memory ingestion cache."""
    return IngestionCache()


@pytest.fixture
def sample_nodes() -> list[TextNode]:
    """Create sample source nodes for testing."""
    return [
        TextNode(id="doc-1", text="This is the first document about Python programming.", metadata={"source": "python_guide.txt"}),
        TextNode(id="doc-2", text="Machine learning is a subset of artificial intelligence.", metadata={"source": "ml_intro.txt"}),
    ]


@pytest.fixture
def sample_documents() -> list[Document]:
    """Create sample LangChain documents for testing."""
    return [
        Document(page_content="First document. It talks about chunking.", metadata={"source": "a.txt"}),
        Document(page_content="Second document. It talks about caching.", metadata={"source": "b.txt"}),
    ]


@pytest.fixture
def mock_llm() -> AsyncMock:
    """Language model collaborator answering every prompt with the same text."""
    llm = AsyncMock()
    llm.model_name = "test-model"
    llm.ainvoke = AsyncMock(return_value=AIMessage(content="generated answer"))
    return llm


@pytest.fixture
def mock_env_vars() -> Generator[dict[str, str], None, None]:
    """Fixture to set environment variables for testing."""
    env_vars = {
        "CHUNK_SIZE": "512",
        "CHUNK_OVERLAP": "64",
        "CACHE_COLLECTION": "test_cache",
        "LOG_LEVEL": "DEBUG",
    }
    with patch.dict(os.environ, env_vars, clear=False):
        yield env_vars


@pytest.fixture(autouse=True)
def reset_logging() -> Generator[None, None, None]:
    """Reset logging context between tests."""
    from chunkwise.utils.logging import clear_correlation_id

    clear_correlation_id()
    yield
    clear_correlation_id()


# Markers for test categorization
def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "property: Property-based tests")
    config.addinivalue_line("markers", "slow: Slow tests")
