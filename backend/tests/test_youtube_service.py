import json
from types import SimpleNamespace
from unittest import mock
from urllib.parse import parse_qs, urlparse

import pytest
from googleapiclient.http import HttpMockSequence

from videosync.core.deadline import Deadline
from videosync.core.exceptions import DeadlineExceeded, UpstreamError
from videosync.services.youtube_service import YouTubeService

OK = {"status": "200"}


class RecordingHttp(HttpMockSequence):
    """HttpMockSequence that remembers which URLs were requested"""

    def __init__(self, responses):
        super().__init__(responses)
        self.uris = []

    def request(self, uri, *args, **kwargs):
        self.uris.append(uri)
        return super().request(uri, *args, **kwargs)

    def query(self, index):
        parsed = urlparse(self.uris[index])
        return parsed.path, {k: v[0] for k, v in parse_qs(parsed.query).items()}


def client_for(*responses):
    http = RecordingHttp([(headers, json.dumps(body)) for headers, body in responses])
    return YouTubeService(api_key="test-key", http=http), http


def video_resource(video_id, **statistics):
    return {
        "id": video_id,
        "snippet": {
            "title": f"Video {video_id}",
            "description": "Satsang",
            "publishedAt": "2024-02-10T08:30:00Z",
            "thumbnails": {
                "default": {"url": f"https://i.ytimg.com/vi/{video_id}/default.jpg"},
                "high": {"url": f"https://i.ytimg.com/vi/{video_id}/hqdefault.jpg"},
            },
            "tags": ["satsang"],
        },
        "contentDetails": {"duration": "PT12M7S"},
        "statistics": statistics,
    }


def test_resolve_handle_searches_channels_without_at_prefix():
    youtube, http = client_for(
        (OK, {"items": [{"id": {"kind": "youtube#channel", "channelId": "UCabc123"}}]}),
    )

    assert youtube.resolve_handle("@Asthawaani") == "UCabc123"

    path, params = http.query(0)
    assert path.endswith("/search")
    assert params["q"] == "Asthawaani"
    assert params["type"] == "channel"
    assert params["maxResults"] == "1"


def test_resolve_handle_returns_none_when_nothing_matches():
    youtube, _ = client_for((OK, {"items": []}))

    assert youtube.resolve_handle("@doesnotexist") is None


def test_get_channel_info_prefers_high_thumbnail_and_defaults_subscribers():
    youtube, http = client_for((OK, {
        "items": [{
            "id": "UCabc123",
            "snippet": {
                "title": "Astha Waani",
                "description": "Devotional talks",
                "thumbnails": {
                    "default": {"url": "https://yt3.ggpht.com/default.jpg"},
                    "high": {"url": "https://yt3.ggpht.com/high.jpg"},
                },
            },
            "statistics": {"hiddenSubscriberCount": True},
        }]
    }))

    info = youtube.get_channel_info("UCabc123")

    assert info.channel_id == "UCabc123"
    assert info.title == "Astha Waani"
    assert info.thumbnail_url == "https://yt3.ggpht.com/high.jpg"
    assert info.subscriber_count == 0
    _, params = http.query(0)
    assert params["part"] == "snippet,statistics"


def test_get_channel_info_falls_back_to_default_thumbnail():
    youtube, _ = client_for((OK, {
        "items": [{
            "id": "UCabc123",
            "snippet": {"title": "Astha Waani", "thumbnails": {"default": {"url": "d.jpg"}}},
            "statistics": {"subscriberCount": "5400"},
        }]
    }))

    info = youtube.get_channel_info("UCabc123")

    assert info.thumbnail_url == "d.jpg"
    assert info.subscriber_count == 5400


def test_get_channel_info_not_found_is_none():
    youtube, _ = client_for((OK, {"pageInfo": {"totalResults": 0}}))

    assert youtube.get_channel_info("UCmissing") is None


def test_list_channel_videos_follows_uploads_playlist_and_pages():
    youtube, http = client_for(
        (OK, {"items": [{"contentDetails": {"relatedPlaylists": {"uploads": "UUabc123"}}}]}),
        (OK, {
            "items": [{"contentDetails": {"videoId": "vid1"}}, {"contentDetails": {"videoId": "vid2"}}],
            "nextPageToken": "PAGE2",
        }),
        (OK, {"items": [{"contentDetails": {"videoId": "vid3"}}]}),
        (OK, {"items": [
            video_resource("vid1", viewCount="10", likeCount="2"),
            video_resource("vid2"),
            video_resource("vid3", viewCount="abc"),
        ]}),
    )

    videos = youtube.list_channel_videos("UCabc123", max_results=50)

    assert [v.video_id for v in videos] == ["vid1", "vid2", "vid3"]
    first = videos[0]
    assert first.thumbnail_url == "https://i.ytimg.com/vi/vid1/hqdefault.jpg"
    assert first.duration == "PT12M7S"
    assert first.published_at == "2024-02-10T08:30:00Z"
    assert first.view_count == "10"
    assert first.tags == ["satsang"]
    assert videos[1].view_count is None

    _, playlist_page_two = http.query(2)
    assert playlist_page_two["pageToken"] == "PAGE2"
    assert playlist_page_two["playlistId"] == "UUabc123"
    _, details = http.query(3)
    assert details["id"] == "vid1,vid2,vid3"
    assert details["part"] == "snippet,contentDetails,statistics"


def test_list_channel_videos_stops_at_max_results():
    youtube, http = client_for(
        (OK, {"items": [{"contentDetails": {"relatedPlaylists": {"uploads": "UUabc123"}}}]}),
        (OK, {
            "items": [{"contentDetails": {"videoId": "vid1"}}, {"contentDetails": {"videoId": "vid2"}}],
            "nextPageToken": "PAGE2",
        }),
        (OK, {"items": [video_resource("vid1"), video_resource("vid2")]}),
    )

    videos = youtube.list_channel_videos("UCabc123", max_results=2)

    assert len(videos) == 2
    assert len(http.uris) == 3
    _, playlist_params = http.query(1)
    assert playlist_params["maxResults"] == "2"


def test_list_channel_videos_empty_when_channel_unknown():
    youtube, http = client_for((OK, {"items": []}))

    assert youtube.list_channel_videos("UCmissing") == []
    assert len(http.uris) == 1


def test_list_channel_videos_empty_when_playlist_empty():
    youtube, http = client_for(
        (OK, {"items": [{"contentDetails": {"relatedPlaylists": {"uploads": "UUabc123"}}}]}),
        (OK, {"items": []}),
    )

    assert youtube.list_channel_videos("UCabc123") == []
    assert len(http.uris) == 2


def test_http_error_at_any_step_raises_upstream_error():
    youtube, _ = client_for(
        (OK, {"items": [{"contentDetails": {"relatedPlaylists": {"uploads": "UUabc123"}}}]}),
        (OK, {"items": [{"contentDetails": {"videoId": "vid1"}}]}),
        ({"status": "403"}, {"error": {"code": 403, "message": "quotaExceeded"}}),
    )

    with pytest.raises(UpstreamError) as excinfo:
        youtube.list_channel_videos("UCabc123")

    assert excinfo.value.status_code == 403
    assert excinfo.value.operation == "list_channel_videos.videos"


def test_resolve_handle_http_error_raises_upstream_error():
    youtube, _ = client_for(({"status": "500"}, {"error": {"code": 500, "message": "backendError"}}))

    with pytest.raises(UpstreamError):
        youtube.resolve_handle("@Asthawaani")


def test_expired_deadline_fails_before_any_request():
    youtube, http = client_for((OK, {"items": []}))
    deadline = Deadline(0)

    with pytest.raises(DeadlineExceeded):
        youtube.get_channel_info("UCabc123", deadline=deadline)

    assert http.uris == []


def test_deadline_caps_request_timeout_and_restores_it():
    youtube, http = client_for((OK, {"items": []}))
    seen = []
    original_request = http.request

    def capture(uri, *args, **kwargs):
        seen.append(http.timeout)
        return original_request(uri, *args, **kwargs)

    http.request = capture
    youtube.request_timeout = 30.0
    http.timeout = 30.0

    youtube.get_channel_info("UCabc123", deadline=Deadline(5))

    assert 0 < seen[0] <= 5
    assert http.timeout == 30.0


def test_deadline_caps_timeout_on_kept_alive_connections():
    youtube, http = client_for((OK, {"items": []}))
    youtube.request_timeout = 30.0
    sock = mock.Mock()
    conn = SimpleNamespace(timeout=30.0, sock=sock)
    http.connections = {"https:youtube.googleapis.com": conn}
    seen = []
    original_request = http.request

    def capture(uri, *args, **kwargs):
        seen.append((conn.timeout, sock.settimeout.call_args.args[0]))
        return original_request(uri, *args, **kwargs)

    http.request = capture

    youtube.get_channel_info("UCabc123", deadline=Deadline(1))

    conn_timeout, socket_timeout = seen[0]
    assert 0 < conn_timeout <= 1
    assert 0 < socket_timeout <= 1
    assert conn.timeout == 30.0
    sock.settimeout.assert_called_with(30.0)
