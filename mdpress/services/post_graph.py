from __future__ import annotations

from dataclasses import replace
from typing import Dict, List, Sequence

from mdpress.models.post import CategorySummary, LatestPost, Post, RelatedPost
from mdpress.services.markdown_loader import category_display_name


MAX_RELATED_POSTS = 3
SORT_FIELDS = ("date", "title")
SORT_ORDERS = ("asc", "desc")


def sort_posts_by_date(posts: Sequence[Post]) -> List[Post]:
    """Newest first. Posts with equal dates keep their discovery order."""
    return sorted(posts, key=lambda post: post.date, reverse=True)


def link_posts(posts: Sequence[Post]) -> List[Post]:
    """Return a date-sorted copy of ``posts`` with relational fields filled in.

    ``next_post`` points at the adjacent *newer* post and ``previous_post``
    at the adjacent *older* one. Input posts are left untouched.
    """
    ordered = sort_posts_by_date(posts)
    linked: List[Post] = []
    for i, post in enumerate(ordered):
        next_post = ordered[i - 1].link() if i > 0 else None
        previous_post = ordered[i + 1].link() if i < len(ordered) - 1 else None
        related = [
            RelatedPost(slug=other.slug, title=other.title, date=other.date)
            for other in ordered
            if other.category == post.category and other.slug != post.slug
        ][:MAX_RELATED_POSTS]
        linked.append(
            replace(
                post,
                next_post=next_post,
                previous_post=previous_post,
                related_posts=related,
                tags=list(post.tags),
                headings=list(post.headings),
            )
        )
    return linked


def build_categories(posts: Sequence[Post]) -> List[CategorySummary]:
    grouped: Dict[str, List[Post]] = {}
    for post in posts:
        grouped.setdefault(post.category, []).append(post)

    categories: List[CategorySummary] = []
    for slug, members in grouped.items():
        name = category_display_name(slug)
        latest = sort_posts_by_date(members)[0]
        categories.append(
            CategorySummary(
                slug=slug,
                name=name,
                count=len(members),
                description=f"Explore {name.lower()} articles and insights",
                latest_post=LatestPost(title=latest.title, date=latest.date),
            )
        )

    categories.sort(key=lambda item: (-item.count, item.name))
    return categories


def sort_posts(posts: Sequence[Post], sort_by: str = "date", order: str = "desc") -> List[Post]:
    if sort_by not in SORT_FIELDS:
        raise ValueError(f"Unsupported sort field: {sort_by}")
    if order not in SORT_ORDERS:
        raise ValueError(f"Unsupported sort order: {order}")
    reverse = order == "desc"
    if sort_by == "title":
        return sorted(posts, key=lambda post: post.title.lower(), reverse=reverse)
    return sorted(posts, key=lambda post: post.date, reverse=reverse)
