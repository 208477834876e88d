from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, Dict, Any, List, Literal, get_args
from datetime import datetime
from enum import Enum

StateCode = Literal[
    'AL', 'AK', 'AZ', 'AR', 'CA', 'CO', 'CT', 'DE', 'FL', 'GA',
    'HI', 'ID', 'IL', 'IN', 'IA', 'KS', 'KY', 'LA', 'ME', 'MD',
    'MA', 'MI', 'MN', 'MS', 'MO', 'MT', 'NE', 'NV', 'NH', 'NJ',
    'NM', 'NY', 'NC', 'ND', 'OH', 'OK', 'OR', 'PA', 'RI', 'SC',
    'SD', 'TN', 'TX', 'UT', 'VT', 'VA', 'WA', 'WV', 'WI', 'WY',
    'DC',
]
Topic = Literal['zoning', 'opposition', 'environmental', 'announcement', 'government', 'legal']
Importance = Literal['high', 'medium', 'low']
SourceType = Literal['news', 'youtube', 'bluesky']

STATES = get_args(StateCode)
TOPICS = get_args(Topic)
IMPORTANCE_RANK = {'low': 0, 'medium': 1, 'high': 2}


class Bucket(str, Enum):
    NEWS_CLIP = "news_clip"
    PUBLIC_MEETING = "public_meeting"


class RawItem(BaseModel):
    url: str
    title: str
    content: Optional[str] = None  # description / post text
    source_name: str
    source_type: SourceType
    published_at: Optional[datetime] = None
    external_id: Optional[str] = None  # e.g. YouTube video id
    duration_secs: Optional[int] = None
    bucket: Optional[Bucket] = None
    thumbnail_url: Optional[str] = None
    raw_payload: Dict[str, Any] = Field(default_factory=dict)  # audit only


class LocationRef(BaseModel):
    model_config = ConfigDict(extra='ignore')

    city: Optional[str] = None
    county: Optional[str] = None
    state: StateCode

    @field_validator('city', 'county', mode='before')
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v.strip() if isinstance(v, str) else v


class ClassificationResult(BaseModel):
    """Validated LLM output. Anything outside the closed sets is rejected."""
    model_config = ConfigDict(extra='ignore', populate_by_name=True)

    location: LocationRef
    companies: List[str]
    gov_entities: List[str] = Field(alias='govEntities')
    topics: List[Topic] = Field(min_length=1)
    importance: Importance
    summary: str
    relevance_score: int = Field(alias='relevanceScore', strict=True, ge=1, le=10)

    @field_validator('summary')
    @classmethod
    def summary_not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("summary is empty")
        return v

    @field_validator('companies', 'gov_entities', mode='before')
    @classmethod
    def drop_non_strings(cls, v: Any) -> Any:
        # Only the elements are lenient; a non-list still fails validation
        if isinstance(v, list):
            return [x for x in v if isinstance(x, str) and x.strip()]
        return v

    @field_validator('companies', 'gov_entities', 'topics')
    @classmethod
    def dedupe(cls, v: List[str]) -> List[str]:
        # Sets, but keep the model's ordering
        return list(dict.fromkeys(x for x in v if x))


class Location(BaseModel):
    id: int
    city: str  # '' when unknown
    county: str  # '' when unknown
    state: StateCode
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    clip_count: int = 1
    first_seen: datetime


class PersistedClip(BaseModel):
    url: str
    external_id: Optional[str] = None
    title: str
    content: Optional[str] = None
    summary: str
    source_type: SourceType
    source_name: str
    published_at: Optional[datetime] = None
    bucket: Optional[Bucket] = None
    duration_secs: Optional[int] = None
    transcript: Optional[str] = None
    thumbnail_path: Optional[str] = None
    importance: Importance
    topics: List[Topic]
    companies: List[str] = Field(default_factory=list)
    gov_entities: List[str] = Field(default_factory=list)
    relevance_score: int
    location_id: Optional[int] = None
    raw_data: Dict[str, Any] = Field(default_factory=dict)


class CycleStats(BaseModel):
    fetched: int = 0
    processed: int = 0
    skipped_duplicate: int = 0
    skipped_relevance: int = 0
    errors: int = 0
