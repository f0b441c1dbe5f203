import pytest

from mdpress.models.search import SearchablePost, SearchIndex
from mdpress.services.content_store import get_all_posts
from mdpress.services.search_engine import (
    SearchEngine,
    generate_search_suggestions,
    get_popular_search_terms,
    get_search_stats,
    highlight_html,
    highlight_text,
    search_posts,
)
from mdpress.services.search_index import build_search_index, load_search_index, save_search_index
from mdpress.services.tokenizer import Tokenizer, tokenize


class WholeRunSegmenter:
    name = "whole-run"

    def cut(self, text):
        return [text]


class LiteralSegmenter:
    name = "literal"

    def __init__(self, token):
        self.token = token

    def cut(self, text):
        return [self.token]


@pytest.fixture
def index(content_dir):
    return build_search_index(get_all_posts(content_dir))


def slugs(results):
    return [post.slug for post in results]


def test_search_scenario(index):
    assert slugs(search_posts("rust", index)) == ["tech-a"]
    # Equal term frequency; the shorter post scores higher under BM25.
    assert slugs(search_posts("Intro", index)) == ["tech-b", "tech-a"]


def test_all_tokens_rank_above_subset(index):
    assert slugs(search_posts("go rust intro", index))[0] in {"tech-a", "tech-b"}
    assert slugs(search_posts("intro rust", index)) == ["tech-a", "tech-b"]
    assert slugs(search_posts("intro go", index)) == ["tech-b", "tech-a"]


def test_blank_and_tokenless_queries_return_nothing(index):
    assert search_posts("", index) == []
    assert search_posts("   ", index) == []
    assert search_posts("?!", index) == []
    assert search_posts("x", index) == []


def test_no_match_returns_empty(index):
    assert search_posts("kubernetes", index) == []


def test_limit_caps_results(index):
    assert slugs(search_posts("intro", index, limit=1)) == ["tech-b"]
    assert search_posts("intro", index, limit=0) == []


def test_results_share_tokens_with_query(index):
    query = "coffee rust channels"
    query_tokens = set(tokenize(query))
    results = search_posts(query, index)
    assert slugs(results) and len(results) == 3
    for record in results:
        assert query_tokens & set(record.tokens)


def test_results_are_the_index_records(index):
    [record] = search_posts("ferris", index)
    assert record is index.posts[0]


def test_missing_index_behaves_as_empty():
    engine = SearchEngine(None)
    assert engine.search("anything") == []
    assert search_posts("anything", SearchIndex()) == []
    assert get_search_stats(None).total_posts == 0


def test_ties_break_by_recency_then_slug():
    def record(slug, date):
        return SearchablePost(
            id=slug,
            slug=slug,
            title="Alpha",
            category="general",
            category_name="General",
            date=date,
            tokens=("alpha",),
            searchable_content="Alpha",
        )

    index = SearchIndex(
        posts=(
            record("zulu", "2024-01-01T00:00:00+00:00"),
            record("bravo", "2024-01-01T00:00:00+00:00"),
            record("newest", "2024-06-01T00:00:00+00:00"),
        ),
        total_posts=3,
    )
    assert slugs(search_posts("alpha", index)) == ["newest", "bravo", "zulu"]


def test_cjk_search_with_character_tokens(write_post, tmp_path):
    write_post("zh/post.md", "---\ntitle: 全文搜索\n---\n中文分词与索引。\n")
    write_post("en/post.md", "---\ntitle: English only\n---\nNothing here.\n")
    index = build_search_index(get_all_posts(tmp_path / "docs"))
    assert slugs(search_posts("搜索", index)) == ["zh-post"]
    assert slugs(search_posts("分词", index)) == ["zh-post"]


def test_highlight_scenario():
    assert highlight_text("Intro to Rust", "rust") == "Intro to <mark>Rust</mark>"


def test_highlight_wraps_every_occurrence_once_per_distinct_token():
    assert highlight_text("rust and RUST", "rust rust") == "<mark>rust</mark> and <mark>RUST</mark>"


def test_highlight_passes_run_over_previous_output():
    assert highlight_text("ar", "ar mark") == "<<mark>mark</mark>>ar</<mark>mark</mark>>"
    assert highlight_text("start", "art rust") == "st<mark>art</mark>"


def test_highlight_escapes_pattern_characters():
    tokenizer = Tokenizer(LiteralSegmenter("(.*)"))
    assert highlight_text("x (.*) y", "中", tokenizer) == "x <mark>(.*)</mark> y"


def test_highlight_without_query_returns_text():
    assert highlight_text("Intro", "") == "Intro"
    assert highlight_text("Intro", "!!") == "Intro"
    assert highlight_text("", "rust") == ""


def test_highlight_html_escapes_everything_but_marks():
    assert highlight_html("<b>Rust</b> & Go", "rust") == "&lt;b&gt;<mark>Rust</mark>&lt;/b&gt; &amp; Go"


def test_suggestions(index):
    assert generate_search_suggestions("intro", index) == ["Intro to Rust", "Intro to Go"]
    assert generate_search_suggestions("PROG", index) == ["programming"]
    assert generate_search_suggestions("te", index) == ["Tech"]
    assert generate_search_suggestions("intro", index, limit=1) == ["Intro to Rust"]
    assert generate_search_suggestions(" ", index) == []
    assert generate_search_suggestions("intro", None) == []


def test_popular_terms_and_stats(index):
    assert get_popular_search_terms(index, limit=3) == ["programming", "Tech", "rust"]

    stats = SearchEngine(index).stats()
    assert stats.total_posts == 3
    assert stats.total_categories == 2
    assert stats.total_tags == 4
    assert stats.average_reading_time == 1


def test_engine_warns_on_tokenizer_mismatch(index, caplog):
    SearchEngine(index, Tokenizer(LiteralSegmenter("x")))
    assert any("differs from index tokenizer" in record.getMessage() for record in caplog.records)


def test_index_built_with_custom_segmenter_reloads(write_post, tmp_path, caplog):
    write_post("zh/post.md", "---\ntitle: 全文搜索\n---\n中文分词。\n")
    index = build_search_index(get_all_posts(tmp_path / "docs"), Tokenizer(WholeRunSegmenter()))
    path = tmp_path / "search-index.json"
    save_search_index(index, path)

    loaded = load_search_index(path)
    assert loaded.tokenizer == "whole-run"
    engine = SearchEngine(loaded)
    assert engine.tokenizer.name == "character"
    assert any("unknown tokenizer" in record.getMessage() for record in caplog.records)
    assert engine.search("rust") == []
    assert slugs(SearchEngine(loaded, Tokenizer(WholeRunSegmenter())).search("全文搜索")) == ["zh-post"]


def test_matched_token_count_outranks_bm25_score():
    def record(slug, tokens):
        return SearchablePost(
            id=slug,
            slug=slug,
            title=slug,
            category="general",
            category_name="General",
            date="2024-01-01T00:00:00+00:00",
            tokens=tuple(tokens),
            searchable_content=" ".join(tokens),
        )

    index = SearchIndex(
        posts=(
            record("focused", ["rare"] * 5),
            record("broad", ["rare", "common"] + ["filler"] * 20),
            record("other", ["common", "words"]),
            record("x1", ["alpha", "beta"]),
            record("x2", ["gamma", "delta"]),
        ),
        total_posts=5,
    )
    assert slugs(search_posts("rare common", index)) == ["broad", "focused", "other"]


def test_highlight_html_drops_stray_sentinels():
    text = chr(0xE000) + "ab rust" + chr(0xE001)
    assert highlight_html(text, "rust") == "ab <mark>rust</mark>"
