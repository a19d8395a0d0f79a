"""
LLM factory for metadata extractors.

Extractors only need something with ``ainvoke(prompt)``; this module builds
the default collaborator (an OpenAI chat model) from settings.
"""

from typing import Any

from langchain_core.language_models import BaseChatModel
from langchain_openai import ChatOpenAI

from chunkwise.config.settings import LLMSettings, Settings
from chunkwise.utils.exceptions import MissingConfigurationError
from chunkwise.utils.logging import LoggerMixin, get_logger

logger = get_logger(__name__)


class LLMFactory(LoggerMixin):
    """Factory class for creating LLM instances."""

    @staticmethod
    def create(settings: LLMSettings) -> BaseChatModel:
        """
        Create an LLM instance from settings.

        Args:
            settings: LLM configuration settings.

        Returns:
            A LangChain BaseChatModel instance.

        Raises:
            MissingConfigurationError: If no OpenAI API key is configured.

        Example:
            >>> llm = LLMFactory.create(LLMSettings(openai_api_key="sk-..."))
        """
        api_key = settings.openai_api_key.get_secret_value()
        if not api_key:
            raise MissingConfigurationError(
                "OPENAI_API_KEY is required to build the extraction LLM",
                details={"model": settings.llm_model},
            )

        logger.info("creating_llm", model=settings.llm_model)

        return LLMFactory.create_openai(
            api_key=api_key,
            model=settings.llm_model,
            temperature=settings.llm_temperature,
            max_tokens=settings.llm_max_tokens,
            timeout=settings.llm_timeout,
        )

    @staticmethod
    def create_openai(
        api_key: str,
        model: str = "gpt-4o-mini",
        temperature: float = 0.0,
        max_tokens: int = 512,
        **kwargs: Any,
    ) -> ChatOpenAI:
        """
        Create an OpenAI chat model instance.

        Args:
            api_key: OpenAI API key.
            model: Model name.
            temperature: Sampling temperature (0.0 to 2.0).
            max_tokens: Maximum tokens in response.
            **kwargs: Additional arguments passed to ChatOpenAI.

        Returns:
            ChatOpenAI instance.
        """
        logger.info(
            "creating_openai_llm",
            model=model,
            temperature=temperature,
            max_tokens=max_tokens,
        )

        return ChatOpenAI(
            api_key=api_key,
            model=model,
            temperature=temperature,
            max_tokens=max_tokens,
            **kwargs,
        )


def get_llm(settings: LLMSettings | Settings | None = None) -> BaseChatModel:
    """
    Convenience function to get an LLM instance.

    Args:
        settings: LLM settings or full settings. If None, loads from environment.

    Returns:
        A LangChain BaseChatModel instance.
    """
    if settings is None:
        from chunkwise.config.settings import get_settings

        settings = get_settings().llm
    elif isinstance(settings, Settings):
        settings = settings.llm

    return LLMFactory.create(settings)
