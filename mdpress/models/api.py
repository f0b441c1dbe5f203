"""Response schemas for the JSON API."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from mdpress.models.post import CategorySummary, Post
from mdpress.models.search import SearchablePost, SearchStats


class HeadingOut(BaseModel):
    id: str
    text: str
    level: int = Field(ge=1, le=6)


class PostLinkOut(BaseModel):
    slug: str
    title: str


class RelatedPostOut(PostLinkOut):
    date: datetime


class PostSummary(BaseModel):
    slug: str
    title: str
    date: datetime
    excerpt: Optional[str] = None
    category: str
    category_name: str
    tags: List[str] = Field(default_factory=list)
    author: Optional[str] = None
    reading_time: int

    @classmethod
    def from_post(cls, post: Post) -> "PostSummary":
        return cls(
            slug=post.slug,
            title=post.title,
            date=post.date,
            excerpt=post.excerpt,
            category=post.category,
            category_name=post.category_name,
            tags=list(post.tags),
            author=post.author,
            reading_time=post.reading_time,
        )


class PostDetail(PostSummary):
    content: str
    headings: List[HeadingOut] = Field(default_factory=list)
    previous_post: Optional[PostLinkOut] = None
    next_post: Optional[PostLinkOut] = None
    related_posts: List[RelatedPostOut] = Field(default_factory=list)

    @classmethod
    def from_post(cls, post: Post) -> "PostDetail":
        summary = PostSummary.from_post(post)
        return cls(
            **summary.model_dump(),
            content=post.content,
            headings=[HeadingOut(id=h.id, text=h.text, level=h.level) for h in post.headings],
            previous_post=PostLinkOut(slug=post.previous_post.slug, title=post.previous_post.title)
            if post.previous_post
            else None,
            next_post=PostLinkOut(slug=post.next_post.slug, title=post.next_post.title) if post.next_post else None,
            related_posts=[RelatedPostOut(slug=r.slug, title=r.title, date=r.date) for r in post.related_posts],
        )


class PostPage(BaseModel):
    items: List[PostSummary]
    page: int
    per_page: int
    total: int
    total_pages: int
    has_previous: bool
    has_next: bool


class LatestPostOut(BaseModel):
    title: str
    date: datetime


class CategoryOut(BaseModel):
    slug: str
    name: str
    count: int
    description: Optional[str] = None
    latest_post: Optional[LatestPostOut] = None

    @classmethod
    def from_summary(cls, category: CategorySummary) -> "CategoryOut":
        latest = category.latest_post
        return cls(
            slug=category.slug,
            name=category.name,
            count=category.count,
            description=category.description,
            latest_post=LatestPostOut(title=latest.title, date=latest.date) if latest else None,
        )


class CategoryPostsOut(BaseModel):
    category: CategoryOut
    sort: str
    order: str
    posts: PostPage


class SearchHit(BaseModel):
    """A search result; ``title`` and ``excerpt`` carry ``<mark>`` highlights."""

    slug: str
    title: str
    excerpt: Optional[str] = None
    category: str
    category_name: str
    tags: List[str] = Field(default_factory=list)
    author: Optional[str] = None
    date: str
    reading_time: int

    @classmethod
    def from_record(cls, record: SearchablePost, title: str, excerpt: Optional[str]) -> "SearchHit":
        return cls(
            slug=record.slug,
            title=title,
            excerpt=excerpt,
            category=record.category,
            category_name=record.category_name,
            tags=list(record.tags),
            author=record.author,
            date=record.date,
            reading_time=record.reading_time,
        )


class SearchResponse(BaseModel):
    query: str
    total: int
    results: List[SearchHit]


class SearchStatsOut(BaseModel):
    total_posts: int
    total_categories: int
    total_tags: int
    average_reading_time: int
    last_updated: Optional[str] = None

    @classmethod
    def from_stats(cls, stats: SearchStats, last_updated: Optional[str]) -> "SearchStatsOut":
        return cls(
            total_posts=stats.total_posts,
            total_categories=stats.total_categories,
            total_tags=stats.total_tags,
            average_reading_time=stats.average_reading_time,
            last_updated=last_updated or None,
        )
