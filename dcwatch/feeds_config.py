from dataclasses import dataclass
from typing import List, Optional
from dcwatch.models.items import Bucket

# Google News RSS search queries
GOOGLE_NEWS_QUERIES = [
    "data center zoning",
    "data center permit",
    "data center opposition",
    "data center protest",
    "hyperscale data center",
    "data center construction",
    "data center environmental",
]

# Bluesky post search queries
BLUESKY_QUERIES = [
    "data center zoning",
    "data center opposition",
    "hyperscale data center",
    "data center protest",
]


@dataclass(frozen=True)
class YouTubeBucketConfig:
    bucket: Bucket
    query: str
    video_duration: str  # YouTube search filter: short | medium | long
    min_secs: int
    max_secs: Optional[int] = None  # None = no upper bound


# Short and medium clips are both news; long recordings are meetings.
YOUTUBE_BUCKETS: List[YouTubeBucketConfig] = [
    YouTubeBucketConfig(
        bucket=Bucket.NEWS_CLIP,
        query="data center zoning|opposition|protest|hyperscale|town hall",
        video_duration="short",
        min_secs=60,
        max_secs=4 * 60,
    ),
    YouTubeBucketConfig(
        bucket=Bucket.NEWS_CLIP,
        query="data center zoning|opposition|protest|hyperscale|environmental impact",
        video_duration="medium",
        min_secs=4 * 60,
        max_secs=20 * 60,
    ),
    YouTubeBucketConfig(
        bucket=Bucket.PUBLIC_MEETING,
        query="data center planning commission|board of supervisors|county commission|public hearing|city council",
        video_duration="long",
        min_secs=20 * 60,
        max_secs=6 * 60 * 60,
    ),
]
