"""
Best-effort YouTube caption retrieval.

Strategies are tried in order until one yields text:
1. Innertube player call listing caption tracks, then the chosen track's XML
2. The public timedtext endpoint (manual English captions)
3. The same endpoint asking for the auto-generated (ASR) track
"""
import html
import re
from typing import List, Dict, Any
import httpx
from dcwatch.services.http import http_session
from dcwatch.services.logger import logger

INNERTUBE_PLAYER_URL = "https://www.youtube.com/youtubei/v1/player"
TIMEDTEXT_URL = "https://www.youtube.com/api/timedtext"
TV_CLIENT = {
    "clientName": "TVHTML5_SIMPLY_EMBEDDED_PLAYER",
    "clientVersion": "2.0",
    "hl": "en",
    "gl": "US",
}

_TEXT_SEGMENT_RE = re.compile(r"<text[^>]*>(.*?)</text>", re.DOTALL)
_WHITESPACE_RE = re.compile(r"\s+")

def extract_caption_text(xml: str) -> str | None:
    """Joins <text> segments, decodes entities and collapses whitespace."""
    segments = _TEXT_SEGMENT_RE.findall(xml or "")
    if not segments:
        return None
    # Entities can be double-encoded (&amp;#39;)
    text = " ".join(html.unescape(html.unescape(s)) for s in segments)
    text = _WHITESPACE_RE.sub(" ", text).strip()
    return text or None

def pick_track(tracks: List[Dict[str, Any]]) -> Dict[str, Any] | None:
    """English manual > English auto > any manual > first."""
    if not tracks:
        return None
    english = [t for t in tracks if (t.get("languageCode") or "").startswith("en")]
    for candidate in (
        next((t for t in english if t.get("kind") != "asr"), None),
        english[0] if english else None,
        next((t for t in tracks if t.get("kind") != "asr"), None),
    ):
        if candidate:
            return candidate
    return tracks[0]

class TranscriptFetcher:
    def __init__(self, client: httpx.AsyncClient | None = None):
        self.client = client

    async def fetch(self, video_id: str) -> str | None:
        """Transcript text for a video, or None. Never raises."""
        strategies = (
            ("player", self._from_player),
            ("timedtext", self._from_timedtext),
            ("timedtext-asr", self._from_timedtext_asr),
        )
        try:
            async with http_session(self.client) as client:
                for label, strategy in strategies:
                    try:
                        text = await strategy(client, video_id)
                    except Exception as e:
                        logger.debug(f"Caption strategy {label} failed for {video_id}: {e}")
                        continue
                    if text:
                        logger.info(f"Fetched transcript for {video_id} via {label}: {len(text)} chars")
                        return text
        except Exception as e:
            logger.warning(f"Failed to fetch captions for video {video_id}: {e}")
            return None

        logger.warning(f"No captions available for video {video_id}")
        return None

    async def _from_player(self, client: httpx.AsyncClient, video_id: str) -> str | None:
        resp = await client.post(INNERTUBE_PLAYER_URL, json={
            "context": {"client": TV_CLIENT},
            "videoId": video_id,
        })
        if resp.status_code != 200:
            logger.debug(f"Innertube player API returned {resp.status_code} for {video_id}")
            return None
        tracks = (
            resp.json().get("captions", {})
            .get("playerCaptionsTracklistRenderer", {})
            .get("captionTracks", [])
        )
        track = pick_track(tracks)
        if not track or not track.get("baseUrl"):
            return None
        xml_resp = await client.get(track["baseUrl"])
        if xml_resp.status_code != 200:
            return None
        return extract_caption_text(xml_resp.text)

    async def _from_timedtext(self, client: httpx.AsyncClient, video_id: str) -> str | None:
        resp = await client.get(TIMEDTEXT_URL, params={"lang": "en", "v": video_id})
        if resp.status_code != 200:
            return None
        return extract_caption_text(resp.text)

    async def _from_timedtext_asr(self, client: httpx.AsyncClient, video_id: str) -> str | None:
        resp = await client.get(TIMEDTEXT_URL, params={"lang": "en", "v": video_id, "kind": "asr"})
        if resp.status_code != 200:
            return None
        return extract_caption_text(resp.text)
