"""Query-time search over a built :class:`SearchIndex`.

The index is passed in explicitly and treated as read-only, so a single
engine can serve any number of concurrent queries.
"""

from __future__ import annotations

import html
import logging
import math
import re
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

from rank_bm25 import BM25Okapi

from mdpress.models.search import SearchablePost, SearchIndex, SearchStats
from mdpress.services.tokenizer import JiebaSegmenter, Tokenizer, create_tokenizer


logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 20
DEFAULT_SUGGESTION_LIMIT = 5
DEFAULT_POPULAR_LIMIT = 10
TITLE_BONUS = 1.0
HIGHLIGHT_OPEN = "<mark>"
HIGHLIGHT_CLOSE = "</mark>"

# Private-use code points; stripped from input text before marking.
_SENTINEL_OPEN = "\ue000"
_SENTINEL_CLOSE = "\ue001"

_EMPTY_INDEX = SearchIndex()
_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def _parse_timestamp(value: str) -> datetime:
    text = value.strip()
    if text.endswith("Z"):
        text = f"{text[:-1]}+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return _OLDEST
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _unique(tokens: Sequence[str]) -> List[str]:
    return list(dict.fromkeys(tokens))


def tokenizer_for_index(index: Optional[SearchIndex]) -> Tokenizer:
    """A tokenizer matching the segmenter the index was built with.

    Indexes built with a custom segmenter cannot be matched by name; those
    fall back to character segmentation with a warning.
    """
    if index is None or index.tokenizer == "character":
        return Tokenizer()
    if index.tokenizer == JiebaSegmenter.name:
        return create_tokenizer(index.tokenizer)
    logger.warning("Index built with unknown tokenizer '%s'; using character segmentation", index.tokenizer)
    return Tokenizer()


class SearchEngine:
    def __init__(self, index: Optional[SearchIndex], tokenizer: Optional[Tokenizer] = None) -> None:
        self.index = index if index is not None else _EMPTY_INDEX
        self.tokenizer = tokenizer or tokenizer_for_index(index)
        if tokenizer is not None and index is not None and tokenizer.name != index.tokenizer:
            logger.warning(
                "Query tokenizer '%s' differs from index tokenizer '%s'; recall may suffer",
                tokenizer.name,
                index.tokenizer,
            )
        posts = self.index.posts
        self._token_sets: List[frozenset] = [frozenset(post.tokens) for post in posts]
        self._title_tokens: List[frozenset] = [frozenset(self.tokenizer.tokenize(post.title)) for post in posts]
        self._timestamps: List[datetime] = [_parse_timestamp(post.date) for post in posts]
        # BM25Okapi divides by the corpus and average document length.
        self._bm25: Optional[BM25Okapi] = None
        if any(post.tokens for post in posts):
            self._bm25 = BM25Okapi([list(post.tokens) for post in posts])

    def _scores(self, query_tokens: Sequence[str]) -> List[float]:
        if self._bm25 is None:
            return [0.0] * len(self.index.posts)
        return [float(score) for score in self._bm25.get_scores(list(query_tokens))]

    def search(self, query: str, limit: int = DEFAULT_LIMIT) -> List[SearchablePost]:
        """Rank posts sharing at least one token with ``query``.

        Ordering: distinct query tokens matched, then BM25 score plus a
        title bonus, then newest first, then slug.
        """
        if not query or not query.strip() or limit < 1:
            return []
        query_tokens = _unique(self.tokenizer.tokenize(query))
        if not query_tokens:
            return []

        scores = self._scores(query_tokens)
        ranked = []
        for position, post in enumerate(self.index.posts):
            tokens = self._token_sets[position]
            matched = [token for token in query_tokens if token in tokens]
            if not matched:
                continue
            titles = self._title_tokens[position]
            score = scores[position] + TITLE_BONUS * sum(1 for token in matched if token in titles)
            ranked.append((len(matched), score, self._timestamps[position], post.slug, post))

        ranked.sort(key=lambda item: item[3])
        ranked.sort(key=lambda item: (item[0], item[1], item[2]), reverse=True)
        return [item[4] for item in ranked[:limit]]

    def highlight_html(self, text: str, query: str) -> str:
        return highlight_html(text, query, self.tokenizer)

    def suggestions(self, query: str, limit: int = DEFAULT_SUGGESTION_LIMIT) -> List[str]:
        return generate_search_suggestions(query, self.index, limit)

    def popular_terms(self, limit: int = DEFAULT_POPULAR_LIMIT) -> List[str]:
        return get_popular_search_terms(self.index, limit)

    def stats(self) -> SearchStats:
        return get_search_stats(self.index)


def search_posts(
    query: str,
    index: Optional[SearchIndex],
    limit: int = DEFAULT_LIMIT,
    tokenizer: Optional[Tokenizer] = None,
) -> List[SearchablePost]:
    return SearchEngine(index, tokenizer).search(query, limit)


def highlight_text(
    text: str,
    query: str,
    tokenizer: Optional[Tokenizer] = None,
    *,
    open_tag: str = HIGHLIGHT_OPEN,
    close_tag: str = HIGHLIGHT_CLOSE,
) -> str:
    """Wrap case-insensitive occurrences of each query token in ``text``.

    Tokens are applied one after another, each pass running over the
    output of the previous one, so a later token may match inside text an
    earlier pass already wrapped (including the markers themselves).
    """
    if not text or not query or not query.strip():
        return text
    tokenizer = tokenizer or Tokenizer()
    tokens = _unique(tokenizer.tokenize(query))
    highlighted = text
    for token in tokens:
        if len(token) < 1:
            continue
        pattern = re.compile(f"({re.escape(token)})", re.IGNORECASE)
        highlighted = pattern.sub(lambda match: f"{open_tag}{match.group(1)}{close_tag}", highlighted)
    return highlighted


def highlight_html(text: str, query: str, tokenizer: Optional[Tokenizer] = None) -> str:
    """Escape ``text`` for HTML, keeping only ``<mark>`` highlight tags."""
    if not text:
        return text
    text = text.replace(_SENTINEL_OPEN, "").replace(_SENTINEL_CLOSE, "")
    marked = highlight_text(text, query, tokenizer, open_tag=_SENTINEL_OPEN, close_tag=_SENTINEL_CLOSE)
    escaped = html.escape(marked, quote=True)
    return escaped.replace(_SENTINEL_OPEN, HIGHLIGHT_OPEN).replace(_SENTINEL_CLOSE, HIGHLIGHT_CLOSE)


def generate_search_suggestions(
    query: str,
    index: Optional[SearchIndex],
    limit: int = DEFAULT_SUGGESTION_LIMIT,
) -> List[str]:
    if not query or not query.strip() or index is None:
        return []

    needle = query.lower()
    suggestions: Dict[str, None] = {}
    for post in index.posts:
        if needle in post.title.lower():
            suggestions.setdefault(post.title)
        for tag in post.tags:
            if needle in tag.lower():
                suggestions.setdefault(tag)
        if needle in post.category_name.lower():
            suggestions.setdefault(post.category_name)
    return list(suggestions)[: max(limit, 0)]


def get_popular_search_terms(index: Optional[SearchIndex], limit: int = DEFAULT_POPULAR_LIMIT) -> List[str]:
    if index is None:
        return []
    counts: Dict[str, int] = {}
    for post in index.posts:
        for tag in post.tags:
            counts[tag] = counts.get(tag, 0) + 1
        counts[post.category_name] = counts.get(post.category_name, 0) + 1
    ordered = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return [term for term, _ in ordered[: max(limit, 0)]]


def get_search_stats(index: Optional[SearchIndex]) -> SearchStats:
    if index is None:
        return SearchStats()

    categories = {post.category for post in index.posts}
    tags = {tag for post in index.posts for tag in post.tags}
    reading_times = [post.reading_time for post in index.posts if post.reading_time]
    average = math.floor(sum(reading_times) / len(reading_times) + 0.5) if reading_times else 0
    return SearchStats(
        total_posts=len(index.posts),
        total_categories=len(categories),
        total_tags=len(tags),
        average_reading_time=average,
    )
