import os
from datetime import datetime, timezone
from pathlib import Path, PurePath

from mdpress.services import markdown_loader
from mdpress.services.content_store import get_all_posts


def test_load_posts_derives_slug_category_and_metadata(content_dir):
    posts = {post.slug: post for post in markdown_loader.load_posts(content_dir)}
    assert set(posts) == {"tech-a", "tech-b", "life-c"}

    rust = posts["tech-a"]
    assert rust.title == "Intro to Rust"
    assert rust.category == "tech"
    assert rust.category_name == "Tech"
    assert rust.author == "Ferris"
    assert rust.tags == ["rust", "programming"]
    assert rust.date == datetime(2024, 1, 3, tzinfo=timezone.utc)
    assert rust.excerpt is None
    assert rust.source_path == "tech/a.md"
    assert [(h.id, h.level) for h in rust.headings] == [("why-rust", 1), ("getting-started", 2)]
    assert 'id="why-rust"' in rust.content

    routine = posts["life-c"]
    assert routine.excerpt == "How I start the day."
    assert routine.tags == ["habits"]


def test_missing_content_directory_is_empty(tmp_path):
    missing = tmp_path / "nope"
    assert markdown_loader.discover_markdown_files(missing) == []
    assert markdown_loader.load_posts(missing) == []
    assert get_all_posts(missing) == []


def test_slug_and_category_from_nested_path():
    relative = PurePath("Guides", "Deep Dive", "Part One.md")
    assert markdown_loader.slug_from_path(relative) == "guides-deep-dive-part-one"
    assert markdown_loader.category_from_path(relative) == "Guides"
    assert markdown_loader.category_from_path(PurePath("about.md")) == markdown_loader.DEFAULT_CATEGORY


def test_category_display_name():
    assert markdown_loader.category_display_name("machine-learning") == "Machine Learning"
    assert markdown_loader.category_display_name("general") == "General"


def test_title_and_date_fall_back_to_file(write_post):
    path = write_post("notes.md", "Just a body without front-matter.\n")
    stamp = datetime(2023, 5, 6, 7, 8, 9, tzinfo=timezone.utc).timestamp()
    os.utime(path, (stamp, stamp))

    [post] = markdown_loader.load_posts(path.parent)
    assert post.title == "notes"
    assert post.slug == "notes"
    assert post.category == "general"
    assert post.date == datetime(2023, 5, 6, 7, 8, 9, tzinfo=timezone.utc)


def test_unrecognized_date_falls_back_to_mtime(write_post):
    path = write_post("post.md", "---\ntitle: Odd\ndate: sometime soon\n---\nbody\n")
    stamp = datetime(2022, 2, 2, tzinfo=timezone.utc).timestamp()
    os.utime(path, (stamp, stamp))

    [post] = markdown_loader.load_posts(path.parent)
    assert post.date == datetime(2022, 2, 2, tzinfo=timezone.utc)


def test_malformed_front_matter_is_skipped(write_post, caplog):
    write_post("bad.md", "---\ntitle: [unclosed\n---\nbody\n")
    good = write_post("good.md", "---\ntitle: Fine\n---\nbody\n")

    posts = markdown_loader.load_posts(good.parent)
    assert [post.slug for post in posts] == ["good"]
    assert any("bad.md" in record.getMessage() for record in caplog.records)


def test_draft_posts_are_skipped(write_post):
    write_post("draft.md", "---\ntitle: Draft\ndraft: true\n---\nbody\n")
    write_post("hidden.md", "---\ntitle: Hidden\npublished: false\n---\nbody\n")
    live = write_post("live.md", "---\ntitle: Live\n---\nbody\n")

    assert [post.slug for post in markdown_loader.load_posts(live.parent)] == ["live"]


def test_colliding_slugs_are_made_unique(write_post):
    write_post("a/b.md", "first\n")
    path = write_post("a-b.md", "second\n")

    slugs = [post.slug for post in markdown_loader.load_posts(path.parent)]
    assert sorted(slugs) == ["a-b", "a-b-2"]
    assert len(set(slugs)) == len(slugs)


def test_slugs_are_stable_across_reloads(content_dir):
    first = [post.slug for post in markdown_loader.load_posts(content_dir)]
    second = [post.slug for post in markdown_loader.load_posts(content_dir)]
    assert first == second


def test_tags_are_normalized():
    assert markdown_loader._normalize_tags(None) == []
    assert markdown_loader._normalize_tags(" solo ") == ["solo"]
    assert markdown_loader._normalize_tags(["a", "", "b", "a", 2024]) == ["a", "b", "2024"]


def test_reading_time_rounds_up():
    assert markdown_loader.calculate_reading_time("") == 1
    assert markdown_loader.calculate_reading_time("word " * 200) == 1
    assert markdown_loader.calculate_reading_time("word " * 201) == 2
    assert markdown_loader.calculate_reading_time("word " * 450) == 3


def test_iso_dates_with_timezone_are_normalized(write_post):
    path = write_post("tz.md", "---\ndate: '2024-03-01T10:00:00+02:00'\n---\nbody\n")
    [post] = markdown_loader.load_posts(path.parent)
    assert post.date == datetime(2024, 3, 1, 8, 0, tzinfo=timezone.utc)


def test_discovery_finds_files_at_any_depth(write_post):
    write_post("one/two/three/deep.md", "deep\n")
    path = write_post("top.md", "top\n")
    files = markdown_loader.discover_markdown_files(path.parent)
    assert {f.relative_to(path.parent).as_posix() for f in files} == {"one/two/three/deep.md", "top.md"}
    assert all(isinstance(f, Path) for f in files)


def test_out_of_range_timestamp_falls_back_to_mtime(write_post):
    path = write_post("big.md", "---\ntitle: Far future\ndate: 99999999999999\n---\nbody\n")
    stamp = datetime(2021, 7, 8, tzinfo=timezone.utc).timestamp()
    os.utime(path, (stamp, stamp))

    [post] = markdown_loader.load_posts(path.parent)
    assert post.title == "Far future"
    assert post.date == datetime(2021, 7, 8, tzinfo=timezone.utc)


def test_render_failure_skips_only_that_post(write_post, monkeypatch, caplog):
    write_post("broken.md", "---\ntitle: Broken\n---\nexplode\n")
    good = write_post("good.md", "---\ntitle: Fine\n---\nbody\n")
    render = markdown_loader.render_markdown

    def flaky_render(body, *, allow_html=False):
        if "explode" in body:
            raise ValueError("renderer blew up")
        return render(body, allow_html=allow_html)

    monkeypatch.setattr(markdown_loader, "render_markdown", flaky_render)

    posts = markdown_loader.load_posts(good.parent)
    assert [post.slug for post in posts] == ["good"]
    [failure] = [record for record in caplog.records if "broken.md" in record.getMessage()]
    assert failure.getMessage().startswith("Failed to load post")
    assert failure.exc_info is not None


def test_load_post_reads_a_single_file(write_post):
    path = write_post("guides/setup.md", "---\ntitle: Setup\ntags: [tools]\n---\n# Install\n")
    post = markdown_loader.load_post(path, path.parent.parent)
    assert post.slug == "guides-setup"
    assert post.category == "guides"
    assert [h.id for h in post.headings] == ["install"]

    draft = write_post("draft.md", "---\ndraft: true\n---\nbody\n")
    assert markdown_loader.load_post(draft, draft.parent) is None
