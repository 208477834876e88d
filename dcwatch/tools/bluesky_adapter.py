from typing import List
from datetime import datetime
from dcwatch.tools.base_adapter import SourceAdapter
from dcwatch.models.items import RawItem
from dcwatch.feeds_config import BLUESKY_QUERIES
from dcwatch.services.http import http_session
from dcwatch.services.logger import logger

SEARCH_URL = "https://public.api.bsky.app/xrpc/app.bsky.feed.searchPosts"
TITLE_CHARS = 100

def at_uri_to_web_url(uri: str, handle: str) -> str | None:
    """at://did:plc:xxx/app.bsky.feed.post/<rkey> -> https://bsky.app/profile/<handle>/post/<rkey>"""
    parts = uri.split("/")
    if len(parts) < 5 or not parts[4]:
        return None
    # bsky.app also accepts the DID when the handle is missing
    profile = handle or parts[2]
    return f"https://bsky.app/profile/{profile}/post/{parts[4]}"

def _parse_created(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None

class BlueskyAdapter(SourceAdapter):
    name = "Bluesky"
    source_type = "bluesky"

    def __init__(self, queries: List[str] = None, limit: int = 25, client=None):
        super().__init__(client)
        self.queries = queries or BLUESKY_QUERIES
        self.limit = limit

    async def fetch_items(self) -> List[RawItem]:
        logger.info(f"Fetching Bluesky: {len(self.queries)} queries")
        items = []
        seen_uris = set()
        async with http_session(self.client) as client:
            for query in self.queries:
                try:
                    resp = await client.get(SEARCH_URL, params={"q": query, "limit": str(self.limit)})
                    if resp.status_code != 200:
                        logger.warning(f"Bluesky API error for '{query}': {resp.status_code}")
                        continue
                    for post in resp.json().get("posts", []):
                        uri = post.get("uri")
                        if not uri or uri in seen_uris:
                            continue
                        seen_uris.add(uri)

                        author = post.get("author") or {}
                        record = post.get("record") or {}
                        handle = author.get("handle") or ""
                        url = at_uri_to_web_url(uri, handle)
                        if not url:
                            continue

                        text = record.get("text", "")
                        title = text[:TITLE_CHARS] + ("..." if len(text) > TITLE_CHARS else "")
                        items.append(RawItem(
                            url=url,
                            title=title or "Untitled",
                            content=text,
                            source_name=author.get("displayName") or handle or self.name,
                            source_type=self.source_type,
                            published_at=_parse_created(record.get("createdAt")),
                            raw_payload=post,
                        ))
                except Exception as e:
                    logger.warning(f"Failed to fetch Bluesky for '{query}': {e}")

        logger.info(f"Found {len(items)} Bluesky items")
        return items
