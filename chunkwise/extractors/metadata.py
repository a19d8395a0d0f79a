"""
LLM-backed metadata extractors.

Keyword, title, question and summary extractors. Each one formats a prompt
per node (or per document, for titles), asks the language model, and stores
the answer under a fixed metadata key. Put them after a splitter in an
``IngestionPipeline`` so cached runs skip the model calls entirely.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Tuple

from chunkwise.core.node import TextNode
from chunkwise.extractors.base import (
    BaseExtractor,
    ExtractorConfig,
    describe_llm,
    prompt_or_default,
    require_positive,
    strip_newlines,
)
from chunkwise.extractors.prompts import (
    KEYWORD_EXTRACT_PROMPT,
    QUESTION_EXTRACT_PROMPT,
    SUMMARY_EXTRACT_PROMPT,
    TITLE_COMBINE_PROMPT,
    TITLE_NODE_PROMPT,
)
from chunkwise.utils.exceptions import InvalidConfigurationError

SUMMARY_KINDS = ("self", "prev", "next")


class KeywordExtractorConfig(ExtractorConfig):
    transform: str = "keyword_extractor"
    keywords: int


class KeywordExtractor(BaseExtractor):
    """
    Extract keywords from every node into ``excerpt_keywords``.

    Args:
        llm: Language model collaborator.
        keywords: Number of keywords to ask for (at least 1).
        prompt_template: Custom template using ``{context}`` and ``{max_keywords}``.
        max_concurrency: Maximum simultaneous model calls.
    """

    def __init__(
        self,
        llm: Any,
        keywords: int = 5,
        prompt_template: Optional[str] = None,
        max_concurrency: int = 4,
    ) -> None:
        require_positive("keywords", keywords)
        super().__init__(llm, max_concurrency)
        self.keywords = keywords
        self.prompt = prompt_or_default(
            prompt_template, KEYWORD_EXTRACT_PROMPT, {"context", "max_keywords"}
        )

    @property
    def config(self) -> KeywordExtractorConfig:
        return KeywordExtractorConfig(
            model=describe_llm(self.llm),
            prompt_template=self.prompt.template,
            keywords=self.keywords,
        )

    async def extract(self, nodes: Sequence[TextNode]) -> List[Dict[str, Any]]:
        prompts = [
            self.prompt.format(
                context=node.get_content(include_metadata=True),
                max_keywords=str(self.keywords),
            )
            for node in nodes
        ]
        answers = await self.complete_all(prompts)
        return [{"excerpt_keywords": answer} for answer in answers]


class TitleExtractorConfig(ExtractorConfig):
    transform: str = "title_extractor"
    nodes: int
    combine_template: str


class TitleExtractor(BaseExtractor):
    """
    Extract one title per source document into ``document_title``.

    Nodes are grouped by ``source_node_id`` (nodes without one form their own
    group). A candidate title is generated for each of the first ``nodes``
    nodes of a group, and the candidates are combined into the final title.

    Args:
        llm: Language model collaborator.
        nodes: Number of leading nodes per document used for candidates.
        node_template: Custom candidate template using ``{context}``.
        combine_template: Custom combine template using ``{context}``.
        max_concurrency: Maximum simultaneous model calls.
    """

    def __init__(
        self,
        llm: Any,
        nodes: int = 5,
        node_template: Optional[str] = None,
        combine_template: Optional[str] = None,
        max_concurrency: int = 4,
    ) -> None:
        require_positive("nodes", nodes)
        super().__init__(llm, max_concurrency)
        self.nodes = nodes
        self.node_prompt = prompt_or_default(node_template, TITLE_NODE_PROMPT, {"context"})
        self.combine_prompt = prompt_or_default(combine_template, TITLE_COMBINE_PROMPT, {"context"})

    @property
    def config(self) -> TitleExtractorConfig:
        return TitleExtractorConfig(
            model=describe_llm(self.llm),
            prompt_template=self.node_prompt.template,
            nodes=self.nodes,
            combine_template=self.combine_prompt.template,
        )

    async def extract(self, nodes: Sequence[TextNode]) -> List[Dict[str, Any]]:
        if not nodes:
            return []

        groups: Dict[str, List[TextNode]] = {}
        for node in nodes:
            groups.setdefault(self._group_key(node), []).append(node)

        titles: Dict[str, str] = {}
        for key, members in groups.items():
            candidates = await self.complete_all(
                [
                    self.node_prompt.format(context=node.get_content(include_metadata=True))
                    for node in members[: self.nodes]
                ]
            )
            titles[key] = await self.complete(
                self.combine_prompt.format(context=", ".join(candidates))
            )

        return [{"document_title": titles[self._group_key(node)]} for node in nodes]

    @staticmethod
    def _group_key(node: TextNode) -> str:
        return node.source_node_id or node.id


class QuestionsAnsweredExtractorConfig(ExtractorConfig):
    transform: str = "questions_answered_extractor"
    questions: int


class QuestionsAnsweredExtractor(BaseExtractor):
    """
    Extract questions each node can answer into ``questions_this_excerpt_can_answer``.

    Args:
        llm: Language model collaborator.
        questions: Number of questions to ask for (at least 1).
        prompt_template: Custom template using ``{context}`` and ``{num_questions}``.
        max_concurrency: Maximum simultaneous model calls.
    """

    def __init__(
        self,
        llm: Any,
        questions: int = 5,
        prompt_template: Optional[str] = None,
        max_concurrency: int = 4,
    ) -> None:
        require_positive("questions", questions)
        super().__init__(llm, max_concurrency)
        self.questions = questions
        self.prompt = prompt_or_default(
            prompt_template, QUESTION_EXTRACT_PROMPT, {"context", "num_questions"}
        )

    @property
    def config(self) -> QuestionsAnsweredExtractorConfig:
        return QuestionsAnsweredExtractorConfig(
            model=describe_llm(self.llm),
            prompt_template=self.prompt.template,
            questions=self.questions,
        )

    async def extract(self, nodes: Sequence[TextNode]) -> List[Dict[str, Any]]:
        prompts = [
            self.prompt.format(
                context=node.get_content(include_metadata=True),
                num_questions=str(self.questions),
            )
            for node in nodes
        ]
        answers = await self.complete_all(prompts)
        return [{"questions_this_excerpt_can_answer": strip_newlines(a)} for a in answers]


class SummaryExtractorConfig(ExtractorConfig):
    transform: str = "summary_extractor"
    summaries: Tuple[str, ...]


class SummaryExtractor(BaseExtractor):
    """
    Summarize nodes and attach their own and/or neighbours' summaries.

    Metadata keys: ``section_summary`` ("self"), ``prev_section_summary``
    ("prev") and ``next_section_summary`` ("next").

    Args:
        llm: Language model collaborator.
        summaries: Which summaries to attach; a non-empty subset of
            ``("self", "prev", "next")``.
        prompt_template: Custom template using ``{context}``.
        max_concurrency: Maximum simultaneous model calls.
    """

    def __init__(
        self,
        llm: Any,
        summaries: Sequence[str] = ("self",),
        prompt_template: Optional[str] = None,
        max_concurrency: int = 4,
    ) -> None:
        summaries = tuple(summaries)
        if not summaries or any(kind not in SUMMARY_KINDS for kind in summaries):
            raise InvalidConfigurationError(
                "Summaries must be one of 'self', 'prev', 'next'",
                details={"summaries": list(summaries)},
            )
        super().__init__(llm, max_concurrency)
        self.summaries = summaries
        self.prompt = prompt_or_default(prompt_template, SUMMARY_EXTRACT_PROMPT, {"context"})

    @property
    def config(self) -> SummaryExtractorConfig:
        return SummaryExtractorConfig(
            model=describe_llm(self.llm),
            prompt_template=self.prompt.template,
            summaries=tuple(sorted(set(self.summaries))),
        )

    async def extract(self, nodes: Sequence[TextNode]) -> List[Dict[str, Any]]:
        answers = await self.complete_all(
            [self.prompt.format(context=node.get_content(include_metadata=True)) for node in nodes]
        )
        node_summaries = [strip_newlines(answer) for answer in answers]

        metadata_list: List[Dict[str, Any]] = [{} for _ in nodes]
        for i, metadata in enumerate(metadata_list):
            if i > 0 and "prev" in self.summaries and node_summaries[i - 1]:
                metadata["prev_section_summary"] = node_summaries[i - 1]
            if i < len(nodes) - 1 and "next" in self.summaries and node_summaries[i + 1]:
                metadata["next_section_summary"] = node_summaries[i + 1]
            if "self" in self.summaries and node_summaries[i]:
                metadata["section_summary"] = node_summaries[i]
        return metadata_list
