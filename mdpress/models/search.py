from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple


@dataclass(slots=True, frozen=True)
class TermCount:
    name: str
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "count": self.count}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TermCount":
        return cls(name=str(data["name"]), count=int(data["count"]))


@dataclass(slots=True, frozen=True)
class SearchablePost:
    """Lightweight, serialisable projection of a post used at query time."""

    id: str
    slug: str
    title: str
    category: str
    category_name: str
    date: str
    excerpt: Optional[str] = None
    author: Optional[str] = None
    tags: Tuple[str, ...] = ()
    reading_time: int = 1
    tokens: Tuple[str, ...] = ()
    searchable_content: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "slug": self.slug,
            "title": self.title,
            "excerpt": self.excerpt,
            "category": self.category,
            "categoryName": self.category_name,
            "tags": list(self.tags),
            "author": self.author,
            "date": self.date,
            "readingTime": self.reading_time,
            "tokens": list(self.tokens),
            "searchableContent": self.searchable_content,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SearchablePost":
        slug = str(data["slug"])
        category = str(data.get("category") or "general")
        category_name = data.get("categoryName")
        if not category_name:
            category_name = " ".join(word[:1].upper() + word[1:] for word in category.split("-"))
        excerpt = data.get("excerpt")
        author = data.get("author")
        return cls(
            id=str(data.get("id") or slug),
            slug=slug,
            title=str(data.get("title") or slug),
            category=category,
            category_name=str(category_name),
            date=str(data.get("date") or ""),
            excerpt=str(excerpt) if excerpt is not None else None,
            author=str(author) if author is not None else None,
            tags=tuple(str(tag) for tag in data.get("tags") or ()),
            reading_time=int(data.get("readingTime") or 1),
            tokens=tuple(str(token) for token in data.get("tokens") or ()),
            searchable_content=str(data.get("searchableContent") or ""),
        )


@dataclass(slots=True, frozen=True)
class SearchIndex:
    """The persisted search artifact. Never mutated once built."""

    posts: Tuple[SearchablePost, ...] = ()
    categories: Tuple[TermCount, ...] = ()
    tags: Tuple[TermCount, ...] = ()
    total_posts: int = 0
    last_updated: str = ""
    tokenizer: str = "character"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "posts": [post.to_dict() for post in self.posts],
            "categories": [item.to_dict() for item in self.categories],
            "tags": [item.to_dict() for item in self.tags],
            "totalPosts": self.total_posts,
            "lastUpdated": self.last_updated,
            "tokenizer": self.tokenizer,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SearchIndex":
        posts = tuple(SearchablePost.from_dict(item) for item in data.get("posts") or ())
        return cls(
            posts=posts,
            categories=tuple(TermCount.from_dict(item) for item in data.get("categories") or ()),
            tags=tuple(TermCount.from_dict(item) for item in data.get("tags") or ()),
            total_posts=int(data.get("totalPosts", len(posts))),
            last_updated=str(data.get("lastUpdated") or ""),
            tokenizer=str(data.get("tokenizer") or "character"),
        )


@dataclass(slots=True, frozen=True)
class SearchStats:
    total_posts: int = 0
    total_categories: int = 0
    total_tags: int = 0
    average_reading_time: int = 0
