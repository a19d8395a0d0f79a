"""
Abbreviation-aware sentence tokenizer.

Splits text after ``.``, ``!`` or ``?`` when followed by whitespace or the end
of the text, unless the period closes a configured abbreviation such as
``Dr.`` or ``p.m.``. Whitespace after a sentence stays attached to it, so the
sentences always concatenate back to the input.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Iterable, List, Optional, Tuple

from chunkwise.utils.exceptions import InvalidConfigurationError, TokenizationError
from chunkwise.utils.logging import LoggerMixin

DEFAULT_ABBREVIATIONS: Tuple[str, ...] = (
    # English
    "i.e.",
    "etc.",
    "vs.",
    "Inc.",
    "A.S.A.P.",
    "Mr.",
    "Mrs.",
    "Ms.",
    "Dr.",
    "Prof.",
    "Sr.",
    "Jr.",
    # Spanish
    "Sres.",
    "Srs.",
    "Sra.",
    "Sras.",
    "Srta.",
    "Srtas.",
    "Drs.",
    "Dra.",
    "Dras.",
    "Profs.",
    "Profa.",
    "Profas.",
    "Ing.",
    "Lic.",
    "Arq.",
    "Ab.",
    "Abs.",
    "Tel.",
    "a.m.",
    "p.m.",
    "Art.",
)

_TERMINALS = ".!?"
_CLOSERS = "\"')]}»”’"
_OPENERS = "\"'([{«“‘¿¡"


@dataclass(frozen=True)
class TokenizeResult:
    """
    Outcome of :meth:`SentenceTokenizer.try_tokenize`.

    Exactly one of ``sentences`` (on success) or ``error`` is meaningful.
    """

    sentences: Tuple[str, ...] = ()
    error: Optional[TokenizationError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class SentenceTokenizer(LoggerMixin):
    """
    Sentence tokenizer that does not break on known abbreviations.

    The abbreviation set is fixed at construction and matched case-sensitively
    against the whitespace-delimited token ending at the period, ignoring
    leading opening quotes or brackets.

    Args:
        abbreviations: Abbreviations that must not end a sentence. Each one
            must end with a period and contain no whitespace.

    Example:
        >>> tokenizer = SentenceTokenizer(["Dr.", "p.m."])
        >>> tokenizer.tokenize("Dr. Smith went home. He left at 5 p.m. today.")
        ['Dr. Smith went home. ', 'He left at 5 p.m. today.']
    """

    def __init__(self, abbreviations: Iterable[str] = DEFAULT_ABBREVIATIONS) -> None:
        abbreviations = tuple(abbreviations)
        for abbreviation in abbreviations:
            if (
                not abbreviation
                or not abbreviation.endswith(".")
                or any(ch.isspace() for ch in abbreviation)
            ):
                raise InvalidConfigurationError(
                    "Abbreviations must be non-empty, whitespace-free and end with '.'",
                    details={"abbreviation": abbreviation},
                )
        self._abbreviations: FrozenSet[str] = frozenset(abbreviations)

    @property
    def abbreviations(self) -> FrozenSet[str]:
        return self._abbreviations

    def tokenize(self, text: str) -> List[str]:
        """
        Split text into sentences.

        Args:
            text: Text to split.

        Returns:
            Sentences in order; empty list for empty input.

        Raises:
            TokenizationError: If the computed boundaries do not reproduce
                the input text.
        """
        if not text:
            return []

        sentences = []
        start = 0
        for end in self._find_boundaries(text):
            if end <= start:
                raise TokenizationError(
                    "Sentence boundaries are not increasing",
                    details={"start": start, "end": end},
                )
            sentences.append(text[start:end])
            start = end
        if start < len(text):
            sentences.append(text[start:])

        if "".join(sentences) != text:
            raise TokenizationError(
                "Sentences do not reconstruct the input text",
                details={"text_length": len(text), "num_sentences": len(sentences)},
            )
        return sentences

    def try_tokenize(self, text: str) -> TokenizeResult:
        """Like :meth:`tokenize` but returns the failure instead of raising it."""
        try:
            return TokenizeResult(sentences=tuple(self.tokenize(text)))
        except TokenizationError as e:
            self.logger.warning("sentence_tokenization_failed", error=str(e))
            return TokenizeResult(error=e)

    def _find_boundaries(self, text: str) -> List[int]:
        boundaries = []
        n = len(text)
        i = 0
        while i < n:
            if text[i] not in _TERMINALS:
                i += 1
                continue

            j = i
            while j < n and text[j] in _TERMINALS:
                j += 1
            run = text[i:j]
            while j < n and text[j] in _CLOSERS:
                j += 1

            if j < n and not text[j].isspace():
                i = j
                continue

            if run == "." and self._ends_abbreviation(text, i):
                i = j
                continue

            while j < n and text[j].isspace():
                j += 1
            boundaries.append(j)
            i = j
        return boundaries

    def _ends_abbreviation(self, text: str, period: int) -> bool:
        start = period
        while start > 0 and not text[start - 1].isspace():
            start -= 1
        token = text[start:period + 1].lstrip(_OPENERS)
        return token in self._abbreviations
