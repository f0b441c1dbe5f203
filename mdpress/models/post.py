from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional


@dataclass(slots=True, frozen=True)
class Heading:
    id: str
    text: str
    level: int


@dataclass(slots=True, frozen=True)
class PostLink:
    slug: str
    title: str


@dataclass(slots=True, frozen=True)
class RelatedPost:
    slug: str
    title: str
    date: datetime


@dataclass(slots=True)
class Post:
    slug: str
    title: str
    date: datetime
    content: str
    category: str
    category_name: str
    excerpt: Optional[str] = None
    author: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    reading_time: int = 1
    headings: List[Heading] = field(default_factory=list)
    source_path: Optional[str] = None
    previous_post: Optional[PostLink] = None
    next_post: Optional[PostLink] = None
    related_posts: List[RelatedPost] = field(default_factory=list)

    def link(self) -> PostLink:
        return PostLink(slug=self.slug, title=self.title)


@dataclass(slots=True, frozen=True)
class LatestPost:
    title: str
    date: datetime


@dataclass(slots=True)
class CategorySummary:
    slug: str
    name: str
    count: int = 0
    description: Optional[str] = None
    latest_post: Optional[LatestPost] = None
