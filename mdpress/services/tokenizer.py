"""Text segmentation shared by index building and query parsing.

Latin text is split on non-letters and single letters are dropped. CJK
ideograph runs go through a pluggable segmenter: the character segmenter
is always available; jieba is used when installed and requested.
"""

from __future__ import annotations

import importlib.util
import logging
import re
from typing import Iterable, List, Optional, Protocol

logger = logging.getLogger(__name__)

CJK_RANGES = "\u3400-\u4dbf\u4e00-\u9fff\uf900-\ufaff"
LATIN_LETTERS = "a-z\u00df-\u00f6\u00f8-\u00ff\u0100-\u024f"

_html_tag_pattern = re.compile(r"<[^>]*>")
_run_pattern = re.compile(f"(?P<cjk>[{CJK_RANGES}]+)|(?P<latin>[{LATIN_LETTERS}]+)")

MIN_LATIN_TOKEN_LENGTH = 2


class Segmenter(Protocol):
    name: str

    def cut(self, text: str) -> Iterable[str]:
        ...


class CharacterSegmenter:
    name = "character"

    def cut(self, text: str) -> Iterable[str]:
        return list(text)


class JiebaSegmenter:
    name = "jieba"

    def __init__(self) -> None:
        import jieba

        jieba.setLogLevel(logging.WARNING)
        self._jieba = jieba

    def cut(self, text: str) -> Iterable[str]:
        return self._jieba.cut(text, HMM=True)


def jieba_available() -> bool:
    return importlib.util.find_spec("jieba") is not None


def strip_html(text: str) -> str:
    return _html_tag_pattern.sub(" ", text)


class Tokenizer:
    def __init__(self, segmenter: Optional[Segmenter] = None) -> None:
        self.segmenter: Segmenter = segmenter or CharacterSegmenter()

    @property
    def name(self) -> str:
        return self.segmenter.name

    def tokenize(self, text: Optional[str]) -> List[str]:
        if not text:
            return []
        clean = strip_html(text).lower()
        tokens: List[str] = []
        for match in _run_pattern.finditer(clean):
            latin = match.group("latin")
            if latin is not None:
                if len(latin) >= MIN_LATIN_TOKEN_LENGTH:
                    tokens.append(latin)
                continue
            for piece in self.segmenter.cut(match.group("cjk")):
                piece = piece.strip()
                if piece:
                    tokens.append(piece)
        return tokens

    def __call__(self, text: Optional[str]) -> List[str]:
        return self.tokenize(text)


def create_tokenizer(segmenter: str = "auto") -> Tokenizer:
    """Build a tokenizer for ``auto``, ``jieba`` or ``character`` segmentation."""
    if segmenter == "character":
        return Tokenizer(CharacterSegmenter())
    if segmenter not in ("auto", "jieba"):
        raise ValueError(f"Unknown segmenter: {segmenter}")
    if jieba_available():
        return Tokenizer(JiebaSegmenter())
    if segmenter == "jieba":
        logger.warning("jieba is not installed, falling back to character segmentation")
    return Tokenizer(CharacterSegmenter())


_default_tokenizer = Tokenizer()


def tokenize(text: Optional[str]) -> List[str]:
    """Tokenize with character-level CJK segmentation."""
    return _default_tokenizer.tokenize(text)
