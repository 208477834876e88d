from typing import List
import httpx
from dcwatch.config import Settings
from dcwatch.tools.base_adapter import SourceAdapter
from dcwatch.tools.google_news_adapter import GoogleNewsAdapter
from dcwatch.tools.youtube_adapter import YouTubeAdapter
from dcwatch.tools.bluesky_adapter import BlueskyAdapter

def build_sources(settings: Settings, client: httpx.AsyncClient | None = None) -> List[SourceAdapter]:
    """Enabled source adapters, in fan-out order."""
    sources: List[SourceAdapter] = []
    if settings.SOURCE_GOOGLE_NEWS_ENABLED:
        sources.append(GoogleNewsAdapter(client=client))
    if settings.SOURCE_YOUTUBE_ENABLED:
        sources.append(YouTubeAdapter(
            api_key=settings.YOUTUBE_API_KEY,
            lookback_hours=settings.YOUTUBE_LOOKBACK_HOURS,
            max_pages=settings.YOUTUBE_MAX_PAGES,
            client=client,
        ))
    if settings.SOURCE_BLUESKY_ENABLED:
        sources.append(BlueskyAdapter(client=client))
    return sources
