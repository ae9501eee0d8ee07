from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httplib2
import structlog
from googleapiclient.discovery import build
from googleapiclient.errors import Error as GoogleApiError, HttpError

from videosync.core.deadline import Deadline
from videosync.core.exceptions import UpstreamError
from videosync.services.normalizer import parse_count

logger = structlog.get_logger()

# The Data API caps both playlistItems page size and videos.list id batches
API_PAGE_LIMIT = 50


@dataclass
class ChannelInfo:
    channel_id: str
    title: str
    description: Optional[str] = None
    thumbnail_url: Optional[str] = None
    subscriber_count: int = 0


@dataclass
class VideoInfo:
    """One uploaded video as the API reports it; fields are unconverted."""
    video_id: str
    title: str
    description: Optional[str] = None
    thumbnail_url: Optional[str] = None
    published_at: str = ""
    duration: str = ""
    view_count: Optional[str] = None
    like_count: Optional[str] = None
    tags: List[str] = field(default_factory=list)


def _pick_thumbnail(snippet: Dict[str, Any]) -> Optional[str]:
    thumbnails = snippet.get('thumbnails') or {}
    return (
        (thumbnails.get('high') or {}).get('url')
        or (thumbnails.get('default') or {}).get('url')
    )


class YouTubeService:
    """Client for the three YouTube Data API v3 lookups the sync needs.

    Configuration is passed in rather than read from settings so tests and
    workers can each build their own instance. No call is retried here.
    """

    def __init__(
        self,
        api_key: str,
        http: Optional[Any] = None,
        request_timeout: float = 30.0,
    ):
        self.api_key = api_key
        self.request_timeout = request_timeout
        self._http = http or httplib2.Http(timeout=request_timeout)
        self.youtube = build(
            'youtube', 'v3',
            developerKey=self.api_key,
            http=self._http,
            cache_discovery=False,
        )

    @classmethod
    def from_settings(cls, settings) -> "YouTubeService":
        return cls(
            api_key=settings.youtube_api_key,
            request_timeout=settings.youtube_request_timeout,
        )

    def _set_timeout(self, timeout: float) -> None:
        self._http.timeout = timeout
        # httplib2 only reads Http.timeout when it opens a connection;
        # keep-alive connections need their sockets updated as well
        for conn in getattr(self._http, 'connections', {}).values():
            conn.timeout = timeout
            if getattr(conn, 'sock', None) is not None:
                conn.sock.settimeout(timeout)

    def _execute(self, operation: str, request, deadline: Optional[Deadline] = None) -> Dict[str, Any]:
        if deadline is not None:
            deadline.check(operation)
            self._set_timeout(deadline.timeout_for(self.request_timeout))
        try:
            return request.execute(num_retries=0)
        except HttpError as e:
            status = getattr(e.resp, 'status', None)
            logger.error("YouTube API error", operation=operation, status=status, error=str(e))
            raise UpstreamError(operation, str(e), status_code=int(status) if status else None) from e
        except (GoogleApiError, httplib2.HttpLib2Error, OSError) as e:
            logger.error("YouTube transport error", operation=operation, error=str(e))
            raise UpstreamError(operation, str(e) or e.__class__.__name__) from e
        finally:
            if deadline is not None:
                self._set_timeout(self.request_timeout)

    def resolve_handle(self, handle: str, deadline: Optional[Deadline] = None) -> Optional[str]:
        """Resolve "@handle" to a channel ID via channel-type search"""
        query = handle[1:] if handle.startswith('@') else handle
        query = query.strip()
        if not query:
            return None

        response = self._execute(
            'resolve_handle',
            self.youtube.search().list(
                part='snippet',
                q=query,
                type='channel',
                maxResults=1,
            ),
            deadline,
        )

        items = response.get('items') or []
        if not items:
            logger.info("Handle did not resolve", handle=handle)
            return None

        try:
            return items[0]['id']['channelId']
        except (KeyError, TypeError) as e:
            raise UpstreamError('resolve_handle', f"malformed search result: {e!r}") from e

    def get_channel_info(self, channel_id: str, deadline: Optional[Deadline] = None) -> Optional[ChannelInfo]:
        """Fetch channel snippet and statistics by channel ID"""
        response = self._execute(
            'get_channel_info',
            self.youtube.channels().list(
                part='snippet,statistics',
                id=channel_id,
            ),
            deadline,
        )

        items = response.get('items') or []
        if not items:
            return None

        item = items[0]
        try:
            snippet = item['snippet']
            return ChannelInfo(
                channel_id=item['id'],
                title=snippet['title'],
                description=snippet.get('description'),
                thumbnail_url=_pick_thumbnail(snippet),
                subscriber_count=parse_count((item.get('statistics') or {}).get('subscriberCount')),
            )
        except (KeyError, TypeError) as e:
            raise UpstreamError('get_channel_info', f"malformed channel resource: {e!r}") from e

    def list_channel_videos(
        self,
        channel_id: str,
        max_results: int = 50,
        deadline: Optional[Deadline] = None,
    ) -> List[VideoInfo]:
        """Fetch the newest uploads of a channel with full details.

        Goes channel -> uploads playlist -> playlist items -> videos. Any
        failed request raises; a partial list is never returned.
        """
        if max_results <= 0:
            return []

        uploads_playlist_id = self._get_uploads_playlist_id(channel_id, deadline)
        if not uploads_playlist_id:
            return []

        video_ids = self._list_playlist_video_ids(uploads_playlist_id, max_results, deadline)
        if not video_ids:
            return []

        videos = self._get_video_details(video_ids, deadline)
        logger.info("Fetched channel videos",
                    channel_id=channel_id,
                    requested=len(video_ids),
                    returned=len(videos))
        return videos

    def _get_uploads_playlist_id(self, channel_id: str, deadline: Optional[Deadline]) -> Optional[str]:
        response = self._execute(
            'list_channel_videos.channel',
            self.youtube.channels().list(
                part='contentDetails',
                id=channel_id,
            ),
            deadline,
        )

        items = response.get('items') or []
        if not items:
            return None

        try:
            return items[0]['contentDetails']['relatedPlaylists']['uploads']
        except (KeyError, TypeError) as e:
            raise UpstreamError('list_channel_videos.channel', f"no uploads playlist: {e!r}") from e

    def _list_playlist_video_ids(
        self,
        playlist_id: str,
        max_results: int,
        deadline: Optional[Deadline],
    ) -> List[str]:
        video_ids: List[str] = []
        next_page_token = None

        while len(video_ids) < max_results:
            response = self._execute(
                'list_channel_videos.playlist_items',
                self.youtube.playlistItems().list(
                    part='snippet,contentDetails',
                    playlistId=playlist_id,
                    maxResults=min(API_PAGE_LIMIT, max_results - len(video_ids)),
                    pageToken=next_page_token,
                ),
                deadline,
            )

            for item in response.get('items') or []:
                try:
                    video_ids.append(item['contentDetails']['videoId'])
                except (KeyError, TypeError) as e:
                    raise UpstreamError(
                        'list_channel_videos.playlist_items', f"malformed playlist item: {e!r}"
                    ) from e
                if len(video_ids) >= max_results:
                    break

            next_page_token = response.get('nextPageToken')
            if not next_page_token:
                break

        return video_ids

    def _get_video_details(self, video_ids: List[str], deadline: Optional[Deadline]) -> List[VideoInfo]:
        videos = []

        for i in range(0, len(video_ids), API_PAGE_LIMIT):
            batch = video_ids[i:i + API_PAGE_LIMIT]

            response = self._execute(
                'list_channel_videos.videos',
                self.youtube.videos().list(
                    part='snippet,contentDetails,statistics',
                    id=','.join(batch),
                ),
                deadline,
            )

            for item in response.get('items') or []:
                try:
                    snippet = item['snippet']
                    statistics = item.get('statistics') or {}
                    videos.append(VideoInfo(
                        video_id=item['id'],
                        title=snippet['title'],
                        description=snippet.get('description'),
                        thumbnail_url=_pick_thumbnail(snippet),
                        published_at=snippet['publishedAt'],
                        duration=(item.get('contentDetails') or {}).get('duration', ''),
                        view_count=statistics.get('viewCount'),
                        like_count=statistics.get('likeCount'),
                        tags=list(snippet.get('tags') or []),
                    ))
                except (KeyError, TypeError) as e:
                    raise UpstreamError('list_channel_videos.videos', f"malformed video resource: {e!r}") from e

        return videos
