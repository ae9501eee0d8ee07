import pytest

from videosync.core.exceptions import ConflictError, RecordNotFoundError, StoreError
from videosync.services.catalog_store import parse_published_at
from videosync.services.normalizer import normalize_video

from conftest import make_channel, make_video


def test_create_and_find_channel(store):
    created = store.create_channel(make_channel("UCabc123"))

    found = store.find_channel_by_external_id("UCabc123")
    assert found.id == created.id
    assert found.name == "Astha Waani"
    assert found.subscriber_count == 1200
    assert found.last_synced_at is None
    assert store.find_channel_by_external_id("UCother") is None


def test_duplicate_channel_raises_conflict_and_session_stays_usable(store):
    store.create_channel(make_channel("UCabc123"))

    with pytest.raises(ConflictError):
        store.create_channel(make_channel("UCabc123", title="Impostor"))

    assert store.find_channel_by_external_id("UCabc123").name == "Astha Waani"
    assert len(store.list_channels()) == 1


def test_mark_channel_synced_sets_timestamp(store):
    channel = store.create_channel(make_channel("UCabc123"))

    store.mark_channel_synced(channel.id)

    assert store.get_channel(channel.id).last_synced_at is not None


def test_mark_unknown_channel_synced_raises(store):
    with pytest.raises(RecordNotFoundError):
        store.mark_channel_synced("no-such-id")


def test_create_video_persists_normalized_fields(store):
    channel = store.create_channel(make_channel("UCabc123"))

    video = store.create_video(channel.id, normalize_video(make_video("vid1", duration="PT1H2M3S")))

    assert video.youtube_id == "vid1"
    assert video.channel_id == channel.id
    assert video.duration == "1:02:03"
    assert video.view_count == 120
    assert video.like_count == 7
    assert video.tags == ["bhajan", "kirtan"]
    assert video.published_at.year == 2024
    assert video.created_at is not None


def test_update_video_overwrites_every_mutable_field(store):
    first = store.create_channel(make_channel("UCfirst", title="First"))
    second = store.create_channel(make_channel("UCsecond", title="Second"))
    store.create_video(first.id, normalize_video(make_video("vid1")))
    before = store.find_video_by_external_id("vid1").updated_at

    store.update_video_by_external_id("vid1", second.id, normalize_video(make_video(
        "vid1",
        title="Renamed",
        description=None,
        thumbnail_url=None,
        duration="PT45S",
        published_at="2024-05-02T00:00:00Z",
        view_count="500",
        like_count="40",
        tags=[],
    )))

    video = store.find_video_by_external_id("vid1")
    assert video.channel_id == second.id
    assert video.title == "Renamed"
    assert video.description is None
    assert video.thumbnail_url is None
    assert video.duration == "0:45"
    assert video.published_at.month == 5
    assert video.view_count == 500
    assert video.like_count == 40
    assert video.tags == []
    assert video.updated_at >= before


def test_update_missing_video_raises_record_not_found(store):
    channel = store.create_channel(make_channel("UCabc123"))

    with pytest.raises(RecordNotFoundError):
        store.update_video_by_external_id("ghost", channel.id, normalize_video(make_video("ghost")))


def test_bad_published_at_is_rejected_without_touching_the_row(store):
    channel = store.create_channel(make_channel("UCabc123"))
    store.create_video(channel.id, normalize_video(make_video("vid1")))

    with pytest.raises(StoreError):
        store.update_video_by_external_id(
            "vid1", channel.id, normalize_video(make_video("vid1", title="Broken", published_at="yesterday"))
        )

    assert store.find_video_by_external_id("vid1").title == "Video vid1"


def test_list_videos_newest_first(store):
    channel = store.create_channel(make_channel("UCabc123"))
    for video_id, published in [("old", "2023-01-01T00:00:00Z"),
                                 ("new", "2024-06-01T00:00:00Z"),
                                 ("mid", "2023-09-15T00:00:00Z")]:
        store.create_video(channel.id, normalize_video(make_video(video_id, published_at=published)))

    assert [v.youtube_id for v in store.list_videos()] == ["new", "mid", "old"]


def test_parse_published_at_handles_zulu_suffix():
    parsed = parse_published_at("2024-03-01T12:00:00Z")

    assert parsed.utcoffset().total_seconds() == 0
    assert (parsed.year, parsed.month, parsed.day, parsed.hour) == (2024, 3, 1, 12)

