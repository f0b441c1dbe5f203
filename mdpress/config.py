from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


BASE_DIR = Path(__file__).resolve().parent.parent
DEFAULT_CONTENT_DIR = BASE_DIR / "docs"
DEFAULT_INDEX_PATH = BASE_DIR / "public" / "search-index.json"

SEGMENTER_CHOICES = ("auto", "jieba", "character")

_TRUTHY = {"1", "true", "yes", "on"}


def _env_path(name: str, default: Path) -> Path:
    return Path(os.getenv(name, str(default))).expanduser()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUTHY


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc
    if value < 1:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


@dataclass(slots=True)
class Settings:
    content_dir: Path = DEFAULT_CONTENT_DIR
    index_path: Path = DEFAULT_INDEX_PATH
    segmenter: str = "auto"
    build_index_on_startup: bool = False
    posts_per_page: int = 10
    search_limit: int = 20
    allow_html: bool = False
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.segmenter not in SEGMENTER_CHOICES:
            raise ValueError(
                f"Unknown segmenter {self.segmenter!r}; expected one of {', '.join(SEGMENTER_CHOICES)}"
            )

    @classmethod
    def from_env(cls) -> "Settings":
        """Read settings from ``MDPRESS_*`` environment variables."""
        return cls(
            content_dir=_env_path("MDPRESS_CONTENT_DIR", DEFAULT_CONTENT_DIR),
            index_path=_env_path("MDPRESS_INDEX_PATH", DEFAULT_INDEX_PATH),
            segmenter=os.getenv("MDPRESS_SEGMENTER", "auto").strip().lower(),
            build_index_on_startup=_env_bool("MDPRESS_BUILD_INDEX_ON_STARTUP", False),
            posts_per_page=_env_int("MDPRESS_POSTS_PER_PAGE", 10),
            search_limit=_env_int("MDPRESS_SEARCH_LIMIT", 20),
            allow_html=_env_bool("MDPRESS_ALLOW_HTML", False),
            log_level=os.getenv("MDPRESS_LOG_LEVEL", "INFO").upper(),
        )
