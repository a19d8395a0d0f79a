"""
Splitting strategies used by the recursive splitter.

Each strategy turns text into an ordered list of substrings by a fixed rule:
a literal separator, single characters, regex matches, or sentences. The
plain functions return reusable ``text -> list[str]`` callables; the
``SplitStrategy`` record wraps them as the explicit variants the recursive
splitter iterates over.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Protocol

from chunkwise.ingestion.tokenizer import SentenceTokenizer

TextSplitterFn = Callable[[str], List[str]]

PHRASE_REGEX = "[^,.;]+[,.;]?"


class SupportsSplitText(Protocol):
    def split_text(self, text: str) -> List[str]: ...


def truncate_text(text: str, splitter: SupportsSplitText) -> str:
    """Return the first chunk ``splitter`` produces, or ``text`` if it produces none."""
    chunks = splitter.split_text(text)
    return chunks[0] if chunks else text


def split_text_keep_separator(text: str, separator: str) -> List[str]:
    """
    Split on ``separator`` and re-attach it to the front of every part but the first.

    Empty parts are dropped, so the parts always concatenate back to ``text``.
    An empty separator degrades to a character split.
    """
    if not separator:
        return list(text)
    parts = text.split(separator)
    result = [separator + part if index > 0 else part for index, part in enumerate(parts)]
    return [part for part in result if part]


def split_by_sep(separator: str, keep_sep: bool = True) -> TextSplitterFn:
    """
    Build a literal-separator splitter.

    With ``keep_sep=False`` this is a plain ``str.split``: the separator is
    discarded and empty parts are kept.
    """
    if keep_sep:
        return lambda text: split_text_keep_separator(text, separator)
    if not separator:
        return lambda text: list(text)
    return lambda text: text.split(separator)


def split_by_char() -> TextSplitterFn:
    """Build a splitter returning one entry per character."""
    return lambda text: list(text)


def split_by_regex(pattern: str) -> TextSplitterFn:
    """
    Build a splitter returning every non-overlapping match of ``pattern``.

    Text between matches is lost. No match yields an empty list. Empty matches
    carry no text and are skipped.
    """
    compiled = re.compile(pattern)
    return lambda text: [m.group(0) for m in compiled.finditer(text) if m.group(0)]


def split_by_phrase_regex() -> TextSplitterFn:
    """Build a splitter on runs of non-``,.;`` text with their trailing punctuation."""
    return split_by_regex(PHRASE_REGEX)


def split_by_sentence_tokenizer(tokenizer: SentenceTokenizer) -> TextSplitterFn:
    """
    Build a sentence splitter around an explicit tokenizer instance.

    A tokenizer failure yields the whole text as a single unit.
    """

    def split(text: str) -> List[str]:
        result = tokenizer.try_tokenize(text)
        if not result.ok:
            return [text]
        return list(result.sentences)

    return split


class StrategyKind(str, Enum):
    """Splitting strategy variants, in the order they usually apply."""

    PARAGRAPH = "paragraph"
    SENTENCE = "sentence"
    PHRASE = "phrase"
    REGEX = "regex"
    SEPARATOR = "separator"
    CHARACTER = "character"


@dataclass(frozen=True)
class SplitStrategy:
    """
    One entry of the recursive splitter's priority list.

    Compiled patterns and the tokenizer are read-only after construction, so a
    strategy can be shared between threads.
    """

    kind: StrategyKind
    separator: Optional[str] = None
    pattern: Optional[str] = None
    keep_separator: bool = True
    tokenizer: Optional[SentenceTokenizer] = field(default=None, compare=False, repr=False)
    _fn: TextSplitterFn = field(init=False, compare=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_fn", self._build())

    def _build(self) -> TextSplitterFn:
        if self.kind in (StrategyKind.PARAGRAPH, StrategyKind.SEPARATOR):
            if self.separator is None:
                raise ValueError(f"{self.kind.value} strategy needs a separator")
            return split_by_sep(self.separator, self.keep_separator)
        if self.kind is StrategyKind.SENTENCE:
            if self.tokenizer is None:
                raise ValueError("sentence strategy needs a tokenizer")
            return split_by_sentence_tokenizer(self.tokenizer)
        if self.kind is StrategyKind.PHRASE:
            return split_by_regex(self.pattern or PHRASE_REGEX)
        if self.kind is StrategyKind.REGEX:
            if not self.pattern:
                raise ValueError("regex strategy needs a pattern")
            return split_by_regex(self.pattern)
        return split_by_char()

    def split(self, text: str) -> List[str]:
        return self._fn(text)

    @property
    def identifier(self) -> str:
        """Stable textual form used when fingerprinting splitter configuration."""
        if self.kind in (StrategyKind.PARAGRAPH, StrategyKind.SEPARATOR):
            mode = "keep" if self.keep_separator else "drop"
            return f"{self.kind.value}:{self.separator!r}:{mode}"
        if self.kind is StrategyKind.PHRASE:
            return f"phrase:{self.pattern or PHRASE_REGEX}"
        if self.kind is StrategyKind.REGEX:
            return f"regex:{self.pattern}"
        return self.kind.value

    @classmethod
    def paragraph(cls, separator: str = "\n\n\n", keep_separator: bool = True) -> SplitStrategy:
        return cls(StrategyKind.PARAGRAPH, separator=separator, keep_separator=keep_separator)

    @classmethod
    def sentence(cls, tokenizer: SentenceTokenizer) -> SplitStrategy:
        return cls(StrategyKind.SENTENCE, tokenizer=tokenizer)

    @classmethod
    def phrase(cls, pattern: str = PHRASE_REGEX) -> SplitStrategy:
        return cls(StrategyKind.PHRASE, pattern=pattern)

    @classmethod
    def regex(cls, pattern: str) -> SplitStrategy:
        return cls(StrategyKind.REGEX, pattern=pattern)

    @classmethod
    def separator_split(cls, separator: str = " ", keep_separator: bool = True) -> SplitStrategy:
        return cls(StrategyKind.SEPARATOR, separator=separator, keep_separator=keep_separator)

    @classmethod
    def character(cls) -> SplitStrategy:
        return cls(StrategyKind.CHARACTER)
