from __future__ import annotations

from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from mdpress.config import Settings
from mdpress.models.api import CategoryOut, CategoryPostsOut, PostDetail, PostPage, PostSummary
from mdpress.models.post import Post
from mdpress.routers.dependencies import get_settings, get_store
from mdpress.services.content_store import ContentStore
from mdpress.services.pagination import paginate
from mdpress.services.post_graph import sort_posts


router = APIRouter(prefix="/api")


def _post_page(posts: list[Post], page: int, per_page: int) -> PostPage:
    result = paginate(posts, page, per_page)
    return PostPage(
        items=[PostSummary.from_post(post) for post in result.items],
        page=result.page,
        per_page=result.per_page,
        total=result.total,
        total_pages=result.total_pages,
        has_previous=result.has_previous,
        has_next=result.has_next,
    )


@router.get("/posts", response_model=PostPage, name="list_posts")
def list_posts(
    page: int = Query(1, ge=1),
    per_page: Optional[int] = Query(None, ge=1, le=100),
    store: ContentStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> PostPage:
    return _post_page(store.list_posts(), page, per_page or settings.posts_per_page)


@router.get("/posts/recent", response_model=list[PostSummary], name="recent_posts")
def recent_posts(
    limit: int = Query(5, ge=1, le=50),
    store: ContentStore = Depends(get_store),
) -> list[PostSummary]:
    return [PostSummary.from_post(post) for post in store.get_recent_posts(limit)]


@router.get("/posts/{slug}", response_model=PostDetail, name="post_detail")
def post_detail(slug: str, store: ContentStore = Depends(get_store)) -> PostDetail:
    post = store.get_post(slug)
    if post is None:
        raise HTTPException(status_code=404, detail="Post not found")
    return PostDetail.from_post(post)


@router.get("/categories", response_model=list[CategoryOut], name="list_categories")
def list_categories(store: ContentStore = Depends(get_store)) -> list[CategoryOut]:
    return [CategoryOut.from_summary(category) for category in store.list_categories()]


@router.get("/categories/{category_slug}", response_model=CategoryPostsOut, name="category_posts")
def category_posts(
    category_slug: str,
    sort: Literal["date", "title"] = Query("date"),
    order: Literal["asc", "desc"] = Query("desc"),
    page: int = Query(1, ge=1),
    per_page: Optional[int] = Query(None, ge=1, le=100),
    store: ContentStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> CategoryPostsOut:
    category = store.get_category(category_slug)
    if category is None:
        raise HTTPException(status_code=404, detail="Category not found")
    posts = sort_posts(store.list_posts_by_category(category_slug), sort, order)
    return CategoryPostsOut(
        category=CategoryOut.from_summary(category),
        sort=sort,
        order=order,
        posts=_post_page(posts, page, per_page or settings.posts_per_page),
    )


@router.get("/tags/{tag}", response_model=list[PostSummary], name="tag_posts")
def tag_posts(tag: str, store: ContentStore = Depends(get_store)) -> list[PostSummary]:
    return [PostSummary.from_post(post) for post in store.list_posts_by_tag(tag)]
