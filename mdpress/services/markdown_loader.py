from __future__ import annotations

import logging
import math
import re
from datetime import date, datetime, timezone
from pathlib import Path, PurePath
from typing import Iterable, List, Optional, Set

import frontmatter
import yaml

from mdpress.models.post import Post
from mdpress.services.renderer import render_markdown


logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "general"
WORDS_PER_MINUTE = 200

_whitespace_pattern = re.compile(r"\s+")


def discover_markdown_files(content_dir: Path) -> List[Path]:
    """Return every ``.md`` file below ``content_dir``, at any depth."""
    if not content_dir.is_dir():
        return []
    return sorted(path for path in content_dir.rglob("*.md") if path.is_file())


def slug_from_path(relative_path: PurePath) -> str:
    parts = list(relative_path.parts)
    if not parts:
        return ""
    last = parts[-1]
    if last.lower().endswith(".md"):
        parts[-1] = last[: -len(".md")]
    slug = "-".join(parts)
    return _whitespace_pattern.sub("-", slug.strip()).lower()


def category_from_path(relative_path: PurePath) -> str:
    parts = relative_path.parts
    return parts[0] if len(parts) > 1 else DEFAULT_CATEGORY


def category_display_name(slug: str) -> str:
    return " ".join(word[:1].upper() + word[1:] for word in slug.split("-"))


def calculate_reading_time(content: str) -> int:
    words = len(content.split())
    return max(1, math.ceil(words / WORDS_PER_MINUTE))


def load_posts(content_dir: Path, *, allow_html: bool = False) -> List[Post]:
    """Load every post below ``content_dir`` in discovery order.

    Files that cannot be parsed or rendered are logged and skipped; the
    returned posts are not yet sorted or linked to each other.
    """
    posts: List[Post] = []
    seen_slugs: Set[str] = set()

    for path in discover_markdown_files(content_dir):
        try:
            parsed = frontmatter.load(path)
        except (yaml.YAMLError, UnicodeDecodeError, ValueError) as exc:
            logger.warning("Skipping %s: unreadable front-matter (%s)", path, exc)
            continue
        try:
            post = post_from_source(parsed, path, content_dir, allow_html=allow_html)
        except Exception as exc:  # pylint: disable=broad-except
            logger.exception("Failed to load post %s: %s", path, exc)
            continue

        if post is None:
            continue

        unique = _unique_slug(post.slug, seen_slugs)
        if unique != post.slug:
            logger.warning("Duplicate slug '%s' for %s; using '%s'", post.slug, path, unique)
            post.slug = unique
        seen_slugs.add(unique)
        posts.append(post)

    if not posts:
        logger.info("No posts found in %s", content_dir)
    return posts


def load_post(path: Path, content_dir: Path, *, allow_html: bool = False) -> Optional[Post]:
    return post_from_source(frontmatter.load(path), path, content_dir, allow_html=allow_html)


def post_from_source(
    parsed: frontmatter.Post,
    path: Path,
    content_dir: Path,
    *,
    allow_html: bool = False,
) -> Optional[Post]:
    """Build a post from parsed front-matter; ``None`` for drafts."""
    meta = parsed.metadata or {}
    content = parsed.content

    # Skip draft posts
    if meta.get("draft") or meta.get("published") is False:
        logger.debug("Skipping draft %s", path)
        return None

    relative_path = path.relative_to(content_dir)
    slug = slug_from_path(relative_path)
    category = category_from_path(relative_path)

    title = meta.get("title")
    title = str(title).strip() if title is not None and str(title).strip() else path.stem

    timestamp = _parse_date(meta.get("date"))
    if timestamp is None:
        timestamp = _file_modified_at(path)

    rendered = render_markdown(content, allow_html=allow_html)

    return Post(
        slug=slug,
        title=title,
        date=timestamp,
        content=rendered.html,
        category=category,
        category_name=category_display_name(category),
        excerpt=_extract_excerpt(meta),
        author=_optional_str(meta.get("author")),
        tags=_normalize_tags(meta.get("tags")),
        reading_time=calculate_reading_time(content),
        headings=rendered.headings,
        source_path=relative_path.as_posix(),
    )


def _unique_slug(slug: str, seen: Set[str]) -> str:
    candidate = slug
    suffix = 2
    while candidate in seen:
        candidate = f"{slug}-{suffix}"
        suffix += 1
    return candidate


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _parse_date(value) -> Optional[datetime]:
    if value is None:
        return None

    if isinstance(value, datetime):
        return _as_utc(value)

    if isinstance(value, date):
        return datetime.combine(value, datetime.min.time(), tzinfo=timezone.utc)

    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            logger.warning("Date timestamp %r is out of range", value)
            return None

    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = f"{text[:-1]}+00:00"
        try:
            return _as_utc(datetime.fromisoformat(text))
        except ValueError:
            pass
        for fmt in ("%Y/%m/%d", "%Y-%m-%d %H:%M", "%Y/%m/%d %H:%M"):
            try:
                return _as_utc(datetime.strptime(text, fmt))
            except ValueError:
                continue
        logger.warning("Unrecognized date format '%s'", value)
        return None

    return None


def _file_modified_at(path: Path) -> datetime:
    stat = path.stat()
    return datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc)


def _optional_str(value) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _extract_excerpt(meta: dict) -> Optional[str]:
    for key in ("excerpt", "description"):
        excerpt = _optional_str(meta.get(key))
        if excerpt:
            return excerpt
    return None


def _normalize_tags(value) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, Iterable):
        return []
    tags: List[str] = []
    for item in value:
        if isinstance(item, (int, float)) and not isinstance(item, bool):
            item = str(item)
        if isinstance(item, str) and item.strip() and item.strip() not in tags:
            tags.append(item.strip())
    return tags
