from __future__ import annotations

import html
import json
import logging
import re
from collections import Counter
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

from mdpress.models.post import Post
from mdpress.models.search import SearchablePost, SearchIndex, TermCount
from mdpress.services.content_store import get_all_posts
from mdpress.services.tokenizer import Tokenizer, strip_html


logger = logging.getLogger(__name__)

EXCERPT_LENGTH = 200

_whitespace_pattern = re.compile(r"\s+")


def plain_text(content_html: str) -> str:
    text = html.unescape(strip_html(content_html))
    return _whitespace_pattern.sub(" ", text).strip()


def generate_excerpt(text: str, max_length: int = EXCERPT_LENGTH) -> str:
    if len(text) <= max_length:
        return text
    return f"{text[:max_length].rstrip()}..."


def searchable_blob(post: Post, content: str) -> str:
    parts = [
        post.title,
        content,
        post.excerpt or "",
        post.category_name,
        *post.tags,
        post.author or "",
    ]
    return " ".join(parts)


def term_counts(names: Iterable[str]) -> Tuple[TermCount, ...]:
    counts = Counter(names)
    ordered = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return tuple(TermCount(name=name, count=count) for name, count in ordered)


def to_searchable_post(post: Post, tokenizer: Tokenizer) -> SearchablePost:
    content = plain_text(post.content)
    blob = searchable_blob(post, content)
    return SearchablePost(
        id=post.slug,
        slug=post.slug,
        title=post.title,
        excerpt=post.excerpt or generate_excerpt(content),
        category=post.category,
        category_name=post.category_name,
        tags=tuple(post.tags),
        author=post.author,
        date=post.date.isoformat(),
        reading_time=post.reading_time,
        tokens=tuple(tokenizer.tokenize(blob)),
        searchable_content=blob,
    )


def build_search_index(
    posts: Sequence[Post],
    tokenizer: Optional[Tokenizer] = None,
    *,
    now: Optional[datetime] = None,
) -> SearchIndex:
    """Project an already sorted and linked post collection into a search index."""
    tokenizer = tokenizer or Tokenizer()
    records = tuple(to_searchable_post(post, tokenizer) for post in posts)
    timestamp = now or datetime.now(timezone.utc)
    return SearchIndex(
        posts=records,
        categories=term_counts(post.category for post in posts),
        tags=term_counts(tag for post in posts for tag in post.tags),
        total_posts=len(records),
        last_updated=timestamp.isoformat(),
        tokenizer=tokenizer.name,
    )


def save_search_index(index: SearchIndex, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = json.dumps(index.to_dict(), ensure_ascii=False, indent=2)
    path.write_text(payload, encoding="utf-8")


def load_search_index(path: Path) -> Optional[SearchIndex]:
    """Read a persisted index. Returns ``None`` if it is missing or broken."""
    if not path.exists():
        logger.warning("Search index not found at %s", path)
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return SearchIndex.from_dict(data)
    except (OSError, ValueError, KeyError, TypeError, AttributeError) as exc:
        logger.warning("Failed to load search index from %s: %s", path, exc)
        return None


def build_index_file(
    content_dir: Path,
    output: Path,
    tokenizer: Optional[Tokenizer] = None,
    *,
    allow_html: bool = False,
) -> SearchIndex:
    """Run the whole pipeline over ``content_dir`` and write the artifact."""
    posts: List[Post] = get_all_posts(content_dir, allow_html=allow_html)
    if not posts:
        logger.warning("No markdown files found in %s", content_dir)
    index = build_search_index(posts, tokenizer)
    save_search_index(index, output)
    logger.info(
        "Indexed %d posts, %d categories, %d tags into %s",
        index.total_posts,
        len(index.categories),
        len(index.tags),
        output,
    )
    return index
