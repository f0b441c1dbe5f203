from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

import pytest

from mdpress.models.post import Post
from mdpress.services.markdown_loader import category_display_name


SAMPLE_POSTS = {
    "tech/a.md": """---
title: Intro to Rust
date: 2024-01-03
tags: [rust, programming]
author: Ferris
---
# Why Rust

Ownership and borrowing make memory safety a compile-time property.

## Getting Started

```rust
fn main() {}
```
""",
    "tech/b.md": """---
title: Intro to Go
date: 2024-01-02
tags: [go, programming]
---
Goroutines and channels keep concurrent code small.
""",
    "life/c.md": """---
title: Morning Routine
date: 2024-01-01
description: How I start the day.
tags: habits
---
Coffee, a walk, and a notebook.
""",
}


@pytest.fixture
def write_post(tmp_path: Path) -> Callable[[str, str], Path]:
    root = tmp_path / "docs"

    def _write(relative: str, text: str) -> Path:
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def content_dir(tmp_path: Path, write_post) -> Path:
    for relative, text in SAMPLE_POSTS.items():
        write_post(relative, text)
    return tmp_path / "docs"


def make_post(slug: str, category: str, day: int, title: str = "", tags=None) -> Post:
    return Post(
        slug=slug,
        title=title or slug,
        date=datetime(2024, 1, day, tzinfo=timezone.utc),
        content=f"<p>{title or slug}</p>",
        category=category,
        category_name=category_display_name(category),
        tags=list(tags or []),
    )
