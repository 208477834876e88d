import feedparser
from typing import List
from urllib.parse import quote
from datetime import datetime, timezone
from dcwatch.tools.base_adapter import SourceAdapter
from dcwatch.models.items import RawItem
from dcwatch.feeds_config import GOOGLE_NEWS_QUERIES
from dcwatch.services.http import http_session
from dcwatch.services.logger import logger

def build_google_news_url(query: str) -> str:
    return f"https://news.google.com/rss/search?q={quote(query)}&hl=en-US&gl=US&ceid=US:en"

class GoogleNewsAdapter(SourceAdapter):
    name = "Google News"
    source_type = "news"

    def __init__(self, queries: List[str] = None, client=None):
        super().__init__(client)
        self.queries = queries or GOOGLE_NEWS_QUERIES

    async def fetch_items(self) -> List[RawItem]:
        logger.info(f"Fetching Google News: {len(self.queries)} queries")
        items = []
        seen_urls = set()
        async with http_session(self.client) as client:
            for query in self.queries:
                try:
                    resp = await client.get(build_google_news_url(query))
                    if resp.status_code != 200:
                        logger.warning(f"Google News fetch failed for '{query}' status {resp.status_code}")
                        continue
                    feed = feedparser.parse(resp.content)
                    for entry in feed.entries:
                        link = entry.get('link')
                        if not link or link in seen_urls:
                            continue
                        seen_urls.add(link)

                        published = entry.get('published_parsed') or entry.get('updated_parsed')
                        dt = datetime(*published[:6], tzinfo=timezone.utc) if published else None

                        source = entry.get('source') or {}
                        items.append(RawItem(
                            url=link,
                            title=entry.get('title') or 'Untitled',
                            content=entry.get('summary') or entry.get('description'),
                            source_name=source.get('title') or self.name,
                            source_type=self.source_type,
                            published_at=dt,
                            raw_payload={"query": query, "entry": dict(entry)},
                        ))
                except Exception as e:
                    logger.warning(f"Failed to fetch Google News for '{query}': {e}")

        logger.info(f"Found {len(items)} Google News items")
        return items
