from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional

from mdpress.models.post import CategorySummary, Post
from mdpress.services.markdown_loader import load_posts
from mdpress.services.post_graph import build_categories, link_posts


logger = logging.getLogger(__name__)


def get_all_posts(content_dir: Path, *, allow_html: bool = False) -> List[Post]:
    """Load, sort and cross-link every post below ``content_dir``."""
    return link_posts(load_posts(content_dir, allow_html=allow_html))


class ContentStore:
    """In-memory view of the post collection, rebuilt wholesale by ``refresh``."""

    def __init__(self, content_dir: Path, *, allow_html: bool = False) -> None:
        self.content_dir = content_dir
        self.allow_html = allow_html
        self._posts: List[Post] = []
        self._posts_index: Dict[str, Post] = {}
        self._categories: List[CategorySummary] = []

    def refresh(self) -> None:
        posts = get_all_posts(self.content_dir, allow_html=self.allow_html)
        self._posts = posts
        self._posts_index = {post.slug: post for post in posts}
        self._categories = build_categories(posts)
        logger.info("Loaded %d posts in %d categories from %s", len(posts), len(self._categories), self.content_dir)

    def list_posts(self) -> List[Post]:
        return list(self._posts)

    def get_post(self, slug: str) -> Optional[Post]:
        return self._posts_index.get(slug)

    def get_recent_posts(self, limit: int = 5) -> List[Post]:
        return self._posts[:limit]

    def list_posts_by_category(self, category_slug: str) -> List[Post]:
        return [post for post in self._posts if post.category == category_slug]

    def list_posts_by_tag(self, tag: str) -> List[Post]:
        """List posts that contain the given tag (case-insensitive)."""
        normalized = tag.lower().strip()
        if not normalized:
            return []
        return [post for post in self._posts if any(t.lower() == normalized for t in post.tags)]

    def list_categories(self) -> List[CategorySummary]:
        return list(self._categories)

    def get_category(self, category_slug: str) -> Optional[CategorySummary]:
        return next((item for item in self._categories if item.slug == category_slug), None)
