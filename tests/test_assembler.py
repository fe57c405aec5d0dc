from datetime import date, datetime, timezone

from ao3_feed.assembler import DESCRIPTION_SEPARATOR, assemble_feed
from ao3_feed.models import Chapter, Work


def _work(**overrides) -> Work:
    values = dict(
        work_id="12345",
        title="Salt & Iron",
        author="wrenfield",
        summary="<p>Work summary</p>",
        chapters=[
            Chapter(ordinal=1, title="Chapter 1: The Lamp", summary="<p>S1</p>", body="<p>B1</p>"),
            Chapter(ordinal=2, title=None, summary=None, body="<p>B2</p>"),
            Chapter(ordinal=3, title="Chapter 3: Low Tide", body="<p>B3</p>"),
        ],
    )
    values.update(overrides)
    return Work(**values)


def test_assemble_feed_maps_channel_fields():
    feed = assemble_feed(_work())

    assert feed.title == "Salt & Iron"
    assert feed.link == "https://archiveofourown.org/works/12345"
    assert feed.description == "<p>Work summary</p>"


def test_assemble_feed_items_follow_chapter_order():
    feed = assemble_feed(_work())

    assert [item.title for item in feed.items] == [
        "Chapter 1: The Lamp",
        "Chapter 2",
        "Chapter 3: Low Tide",
    ]
    assert [item.guid for item in feed.items] == ["12345-1", "12345-2", "12345-3"]
    assert not any(item.guid_is_permalink for item in feed.items)
    assert feed.items[1].link == "https://archiveofourown.org/works/12345#chapter-2"


def test_item_description_puts_summary_before_body():
    feed = assemble_feed(_work())

    assert feed.items[0].description == f"<p>S1</p>{DESCRIPTION_SEPARATOR}<p>B1</p>"
    assert feed.items[1].description == "<p>B2</p>"


def test_missing_summary_becomes_empty_description():
    feed = assemble_feed(_work(summary=None))

    assert feed.description == ""


def test_channel_dates_come_from_work_metadata():
    feed = assemble_feed(
        _work(published=date(2021, 3, 4), updated=None, fandoms=["Original Work"])
    )

    assert feed.pub_date == datetime(2021, 3, 4, tzinfo=timezone.utc)
    assert feed.last_build_date == feed.pub_date
    assert feed.categories == ["Original Work"]
    assert feed.generator.startswith("ao3-feed ")


def test_assemble_feed_uses_configured_base_url():
    feed = assemble_feed(_work(), base_url="http://mirror.test")

    assert feed.link == "http://mirror.test/works/12345"
    assert feed.items[0].link == "http://mirror.test/works/12345#chapter-1"


def test_item_content_is_chapter_body_alone():
    feed = assemble_feed(_work())

    assert [item.content for item in feed.items] == ["<p>B1</p>", "<p>B2</p>", "<p>B3</p>"]
