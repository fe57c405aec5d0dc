import textwrap
from datetime import date

import pytest
from bs4 import BeautifulSoup

from ao3_feed.errors import ParseError
from ao3_feed.extractor import Presence, extract_work, locate


def _page(chapters_html: str, title: str = '<h2 class="title heading">T</h2>') -> str:
    return textwrap.dedent(
        f"""\
        <html><body>
          <div id="workskin">
            <div class="preface group">{title}</div>
            <div id="chapters">{chapters_html}</div>
          </div>
        </body></html>
        """
    )


def test_extract_work_reads_work_metadata(work_page):
    work = extract_work(work_page, "12345")

    assert work.work_id == "12345"
    assert work.title == "Salt & Iron"
    assert work.author == "wrenfield"
    assert work.summary == "<p>A lighthouse keeper &amp; the <em>sea</em> that keeps calling.</p>"
    assert work.published == date(2021, 3, 4)
    assert work.updated == date(2021, 5, 16)
    assert work.language == "en"
    assert work.fandoms == ["Original Work", "Sea Stories"]


def test_extract_work_keeps_document_order_and_optional_titles(work_page):
    work = extract_work(work_page, "12345")

    assert [chapter.ordinal for chapter in work.chapters] == [1, 2, 3]
    assert [chapter.title for chapter in work.chapters] == [
        "Chapter 1: The Lamp",
        None,
        "Chapter 3: Low Tide",
    ]
    assert work.chapters[0].summary == "<p>Night one.</p>"
    assert work.chapters[1].summary is None


def test_chapter_body_drops_landmark_heading(work_page):
    work = extract_work(work_page, "12345")

    body = work.chapters[0].body
    assert "Chapter Text" not in body
    assert "<p>The lamp turned, as it always did.</p>" in body
    assert "Waves &lt;crashed&gt; below." in body
    assert "Thanks for reading" not in body


def test_oneshot_work_yields_single_chapter(oneshot_page):
    work = extract_work(oneshot_page, "99")

    assert work.author == "Anonymous"
    assert work.summary is None
    assert len(work.chapters) == 1
    assert work.chapters[0].title is None
    assert "kettle was singing" in work.chapters[0].body
    assert "Work Text" not in work.chapters[0].body


def test_missing_title_is_parse_error():
    html = _page('<div class="chapter"><div class="userstuff">x</div></div>', title="")

    with pytest.raises(ParseError) as excinfo:
        extract_work(html, "1")

    assert "work_title" in excinfo.value.reason


def test_missing_chapters_block_is_parse_error():
    html = '<html><body><h2 class="title">T</h2></body></html>'

    with pytest.raises(ParseError):
        extract_work(html, "1")


def test_zero_chapter_containers_is_parse_error():
    with pytest.raises(ParseError) as excinfo:
        extract_work(_page(""), "1")

    assert excinfo.value.reason == "no chapter containers found"


def test_chapter_without_content_block_uses_remaining_markup():
    html = _page(
        """
        <div class="chapter">
          <div class="chapter preface group"><h3 class="title">Odd one</h3></div>
          <p>stray paragraph</p>
        </div>
        <div class="chapter"><div class="userstuff"><p>fine</p></div></div>
        """
    )

    work = extract_work(html, "1")

    assert len(work.chapters) == 2
    assert work.chapters[0].title == "Odd one"
    assert work.chapters[0].body == "<p>stray paragraph</p>"
    assert work.chapters[1].body == "<p>fine</p>"


def test_unparseable_dates_are_ignored():
    html = _page('<div class="chapter"><div class="userstuff">x</div></div>').replace(
        "<body>",
        '<body><dl class="work meta"><dd class="published">soon</dd></dl>',
    )

    work = extract_work(html, "1")

    assert work.published is None


def test_locate_tags_optional_and_fatal_absence():
    soup = BeautifulSoup("<div></div>", "html.parser")

    optional = locate(soup, "work_summary")
    fatal = locate(soup, "work_title", required=True)

    assert optional.presence is Presence.OPTIONAL_ABSENT
    assert fatal.presence is Presence.FATAL_ABSENT
    with pytest.raises(ParseError):
        fatal.require()
