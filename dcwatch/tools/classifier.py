import json
from pydantic import ValidationError
from dcwatch.models.items import Bucket, ClassificationResult, STATES, TOPICS
from dcwatch.errors import ClassificationError
from dcwatch.services.logger import logger
from dcwatch.config import settings

NO_TRANSCRIPT = "(no transcript available)"

_SHARED_RULES = f"""
Extract:
1. location: the US city, county and state where this data center activity is happening.
   "state" is REQUIRED and must be one of: {", ".join(STATES)}.
   Use null for city or county when not stated.
2. companies: developers, operators or tenants named (e.g. "Amazon Web Services"). Empty list if none.
3. govEntities: governing bodies involved (e.g. "Loudoun County Board of Supervisors"). Empty list if none.
4. topics: one or more of: {", ".join(TOPICS)}
5. importance: high, medium or low
   - HIGH: active opposition (protests, petitions), upcoming votes/hearings, major new announcements, lawsuits filed
   - MEDIUM: general coverage of existing projects, routine permit updates, environmental studies released
   - LOW: passing mentions, opinion pieces, industry analysis without local specifics
6. relevanceScore: integer 1-10. How much this is about a specific, local US data center
   project or policy fight. 10 = entirely about one; 1 = unrelated or data centers only mentioned in passing.
"""

_OUTPUT_FORMAT = """
Respond ONLY with a single JSON object in this exact format:
{
  "location": {"city": "string or null", "county": "string or null", "state": "two-letter code"},
  "companies": ["..."],
  "govEntities": ["..."],
  "topics": ["..."],
  "importance": "high|medium|low",
  "summary": "...",
  "relevanceScore": 7
}
"""

NEWS_CLIP_PROMPT = """You are a news classifier for a data center monitoring service.
Analyze the following news item (article, post or short video).
{rules}
7. summary: a 2-3 sentence plain-English summary of the key points.
{output_format}
Source: {source_name}
Title: {title}

Description:
{description}

Transcript:
{transcript}
"""

PUBLIC_MEETING_PROMPT = """You are an analyst for a data center monitoring service.
The following is a recording of a public meeting (planning commission, board of supervisors,
city council or similar). Focus on agenda items, votes and public comment about data centers.
{rules}
7. summary: a 4-6 sentence summary covering which body met, which data center item was discussed,
   what residents and officials said, any votes taken and what happens next.
{output_format}
Source: {source_name}
Title: {title}

Description:
{description}

Transcript:
{transcript}
"""

def parse_classification(text: str) -> ClassificationResult:
    """Decodes a model reply into a ClassificationResult or raises ClassificationError."""
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, TypeError) as e:
        raise ClassificationError(f"Reply is not JSON: {e}") from e
    if not isinstance(data, dict):
        raise ClassificationError(f"Reply is not a JSON object: {type(data).__name__}")
    try:
        return ClassificationResult.model_validate(data)
    except ValidationError as e:
        raise ClassificationError(f"Reply failed validation: {e.error_count()} errors: {e.errors()[0]['msg']}") from e

def should_persist(result: ClassificationResult | None, threshold: int) -> bool:
    if result is None:
        return False
    return result.relevance_score >= threshold

class ClassificationClient:
    def __init__(self, llm, news_transcript_limit: int = None, meeting_transcript_limit: int = None,
                 description_limit: int = None):
        self.llm = llm
        self.news_transcript_limit = news_transcript_limit or settings.NEWS_TRANSCRIPT_LIMIT
        self.meeting_transcript_limit = meeting_transcript_limit or settings.MEETING_TRANSCRIPT_LIMIT
        self.description_limit = description_limit or settings.DESCRIPTION_LIMIT

    def build_prompt(self, title: str, description: str | None, source_name: str,
                     transcript: str | None, bucket: Bucket | None) -> str:
        if bucket == Bucket.PUBLIC_MEETING:
            template, limit = PUBLIC_MEETING_PROMPT, self.meeting_transcript_limit
        else:
            template, limit = NEWS_CLIP_PROMPT, self.news_transcript_limit

        return template.format(
            rules=_SHARED_RULES,
            output_format=_OUTPUT_FORMAT,
            source_name=source_name,
            title=title,
            description=(description or title)[:self.description_limit],
            transcript=transcript[:limit] if transcript else NO_TRANSCRIPT,
        )

    async def classify(self, title: str, description: str | None, source_name: str,
                       transcript: str | None = None, bucket: Bucket | None = None) -> ClassificationResult | None:
        """One LLM call per item. Any failure is logged and comes back as None."""
        prompt = self.build_prompt(title, description, source_name, transcript, bucket)
        try:
            reply = await self.llm.generate_json(prompt)
            return parse_classification(reply)
        except ClassificationError as e:
            logger.warning(f"Invalid classification for '{title[:60]}': {e}")
            return None
        except Exception as e:
            logger.error(f"Classification failed for '{title[:60]}': {e}")
            return None
