import re
from typing import List, Dict, Any
from datetime import datetime, timedelta, timezone
from dcwatch.tools.base_adapter import SourceAdapter
from dcwatch.models.items import RawItem
from dcwatch.feeds_config import YOUTUBE_BUCKETS, YouTubeBucketConfig
from dcwatch.services.http import http_session
from dcwatch.services.logger import logger
from dcwatch.config import settings
from dcwatch.errors import SourceFetchError

API_BASE = "https://www.googleapis.com/youtube/v3"
DETAILS_CHUNK = 50  # videos.list accepts at most 50 ids

_DURATION_RE = re.compile(r"^P(?:(\d+)D)?(?:T(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?)?$")

def parse_iso_duration(value: str) -> int:
    """ISO-8601 duration (PT1H2M3S) to seconds. Anything unparseable is 0."""
    if not isinstance(value, str):
        return 0
    match = _DURATION_RE.match(value.strip())
    if not match:
        return 0
    days, hours, minutes, seconds = (int(g) if g else 0 for g in match.groups())
    return ((days * 24 + hours) * 60 + minutes) * 60 + seconds

def pick_thumbnail(snippet: Dict[str, Any]) -> str | None:
    thumbs = snippet.get("thumbnails") or {}
    for size in ("high", "medium", "default"):
        url = (thumbs.get(size) or {}).get("url")
        if url:
            return url
    return None

def _parse_published(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None

class YouTubeAdapter(SourceAdapter):
    name = "YouTube"
    source_type = "youtube"

    def __init__(self, api_key: str | None = None, buckets: List[YouTubeBucketConfig] = None,
                 lookback_hours: int = None, max_pages: int = None, client=None):
        super().__init__(client)
        self.api_key = api_key
        self.buckets = buckets or YOUTUBE_BUCKETS
        self.lookback_hours = lookback_hours or settings.YOUTUBE_LOOKBACK_HOURS
        self.max_pages = max_pages or settings.YOUTUBE_MAX_PAGES

    async def fetch_items(self) -> List[RawItem]:
        if not self.api_key:
            logger.warning("YouTube API key not configured, skipping YouTube")
            return []

        published_after = (datetime.now(timezone.utc) - timedelta(hours=self.lookback_hours)).strftime("%Y-%m-%dT%H:%M:%SZ")
        logger.info(f"Fetching YouTube: {len(self.buckets)} buckets (published after {published_after})")

        items = []
        seen_ids = set()
        async with http_session(self.client) as client:
            for config in self.buckets:
                try:
                    video_ids = await self._search(client, config, published_after)
                except Exception as e:
                    logger.warning(f"YouTube search failed for {config.bucket.value}/{config.video_duration}: {e}")
                    continue

                video_ids = [v for v in video_ids if v not in seen_ids]
                seen_ids.update(video_ids)

                for start in range(0, len(video_ids), DETAILS_CHUNK):
                    chunk = video_ids[start:start + DETAILS_CHUNK]
                    try:
                        details = await self._details(client, chunk)
                    except Exception as e:
                        logger.warning(f"YouTube details lookup failed for {len(chunk)} videos: {e}")
                        continue
                    for video_id in chunk:
                        item = self._to_item(video_id, details.get(video_id), config)
                        if item:
                            items.append(item)

        logger.info(f"Found {len(items)} YouTube items")
        return items

    async def _search(self, client, config: YouTubeBucketConfig, published_after: str) -> List[str]:
        ids = []
        page_token = None
        for page in range(self.max_pages):
            params = {
                "part": "snippet",
                "q": config.query,
                "type": "video",
                "order": "date",
                "regionCode": "US",
                "videoDuration": config.video_duration,
                "publishedAfter": published_after,
                "maxResults": "50",
                "key": self.api_key,
            }
            if page_token:
                params["pageToken"] = page_token
            try:
                resp = await client.get(f"{API_BASE}/search", params=params)
                if resp.status_code != 200:
                    raise SourceFetchError(f"search returned {resp.status_code}")
                data = resp.json()
            except Exception as e:
                if page == 0:
                    raise
                # Keep what earlier pages returned
                logger.warning(f"YouTube search page {page + 1} failed for {config.bucket.value}/{config.video_duration}: {e}")
                break
            for result in data.get("items", []):
                video_id = (result.get("id") or {}).get("videoId")
                if video_id and video_id not in ids:
                    ids.append(video_id)
            page_token = data.get("nextPageToken")
            if not page_token:
                break
        return ids

    async def _details(self, client, video_ids: List[str]) -> Dict[str, Dict[str, Any]]:
        resp = await client.get(f"{API_BASE}/videos", params={
            "part": "snippet,contentDetails",
            "id": ",".join(video_ids),
            "key": self.api_key,
        })
        if resp.status_code != 200:
            raise SourceFetchError(f"videos returned {resp.status_code}")
        return {v["id"]: v for v in resp.json().get("items", []) if v.get("id")}

    def _to_item(self, video_id: str, video: Dict[str, Any] | None, config: YouTubeBucketConfig) -> RawItem | None:
        if not video:
            return None
        duration = parse_iso_duration((video.get("contentDetails") or {}).get("duration", ""))
        if duration < config.min_secs:
            return None
        if config.max_secs is not None and duration >= config.max_secs:
            return None

        snippet = video.get("snippet") or {}
        return RawItem(
            url=f"https://www.youtube.com/watch?v={video_id}",
            title=snippet.get("title") or "Untitled",
            content=snippet.get("description"),
            source_name=snippet.get("channelTitle") or self.name,
            source_type=self.source_type,
            published_at=_parse_published(snippet.get("publishedAt")),
            external_id=video_id,
            duration_secs=duration,
            bucket=config.bucket,
            thumbnail_url=pick_thumbnail(snippet),
            raw_payload=video,
        )
