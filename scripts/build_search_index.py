from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

sys.path.insert(0, str(BASE_DIR))

from mdpress.config import SEGMENTER_CHOICES, Settings
from mdpress.log import configure_logging
from mdpress.services.search_index import build_index_file
from mdpress.services.tokenizer import create_tokenizer

logger = logging.getLogger("mdpress.build")


def parse_args(settings: Settings) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Build the JSON search index from markdown content.")
    parser.add_argument("--content-dir", type=Path, default=settings.content_dir, help="markdown source directory")
    parser.add_argument("--output", type=Path, default=settings.index_path, help="where to write search-index.json")
    parser.add_argument(
        "--segmenter",
        choices=SEGMENTER_CHOICES,
        default=settings.segmenter,
        help="CJK segmentation: jieba when available (auto), jieba, or per-character",
    )
    parser.add_argument("--log-level", default=settings.log_level, help="logging level (default: INFO)")
    return parser.parse_args()


def main() -> int:
    settings = Settings.from_env()
    args = parse_args(settings)
    configure_logging(args.log_level.upper())

    logger.info("Building search index from %s", args.content_dir)
    try:
        index = build_index_file(
            args.content_dir.resolve(),
            args.output.resolve(),
            create_tokenizer(args.segmenter),
            allow_html=settings.allow_html,
        )
    except OSError as exc:
        logger.error("Error building search index: %s", exc)
        return 1

    logger.info("%d posts indexed with the %s tokenizer", index.total_posts, index.tokenizer)
    return 0


if __name__ == "__main__":
    sys.exit(main())
