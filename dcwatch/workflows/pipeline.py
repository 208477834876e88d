import asyncio
from typing import List
from dcwatch.tools.base_adapter import SourceAdapter
from dcwatch.tools.captions import TranscriptFetcher
from dcwatch.tools.classifier import ClassificationClient, should_persist
from dcwatch.tools.thumbnails import ThumbnailCache
from dcwatch.models.items import RawItem, PersistedClip, CycleStats
from dcwatch.services.database import Database
from dcwatch.services.locations import LocationResolver
from dcwatch.services.notifier import Notifier, NullNotifier
from dcwatch.services.logger import logger

STORED = "stored"
DUPLICATE = "duplicate"
IRRELEVANT = "irrelevant"

class Pipeline:
    """
    One ingestion cycle: fan out to every source, then push each raw item
    through dedup -> transcript -> classify -> relevance gate -> thumbnail
    -> location -> store, one item at a time.
    """

    def __init__(self,
                 sources: List[SourceAdapter],
                 db: Database,
                 classifier: ClassificationClient,
                 locations: LocationResolver,
                 transcripts: TranscriptFetcher | None = None,
                 thumbnails: ThumbnailCache | None = None,
                 notifier: Notifier | None = None,
                 relevance_threshold: int = 7):
        self.sources = sources
        self.db = db
        self.classifier = classifier
        self.locations = locations
        self.transcripts = transcripts
        self.thumbnails = thumbnails
        self.notifier = notifier or NullNotifier()
        self.relevance_threshold = relevance_threshold

    async def fetch_all(self) -> List[RawItem]:
        """Runs every source concurrently. A source that raises contributes nothing."""
        if not self.sources:
            logger.warning("No sources enabled! Skipping ingestion.")
            return []

        results = await asyncio.gather(*[s.fetch_items() for s in self.sources], return_exceptions=True)

        items = []
        for source, res in zip(self.sources, results):
            if isinstance(res, BaseException):
                logger.error(f"Adapter {source.name} failed: {res}")
                continue
            logger.info(f"{source.name}: {len(res)} raw items")
            items.extend(res)
        return items

    async def run_cycle(self) -> CycleStats:
        logger.info("Ingestion cycle started")
        stats = CycleStats()

        items = await self.fetch_all()
        stats.fetched = len(items)
        logger.info(f"Fetched {len(items)} raw items.")

        for item in items:
            try:
                outcome = await self.process_item(item)
            except Exception as e:
                logger.exception(f"Failed to process {item.url}: {e}")
                stats.errors += 1
                continue

            if outcome == STORED:
                stats.processed += 1
            elif outcome == DUPLICATE:
                stats.skipped_duplicate += 1
            elif outcome == IRRELEVANT:
                stats.skipped_relevance += 1

        logger.info(
            f"Cycle complete: {stats.processed} stored, {stats.skipped_relevance} low-relevance, "
            f"{stats.skipped_duplicate} duplicates, {stats.errors} errors"
        )
        return stats

    async def process_item(self, item: RawItem) -> str:
        if await self.db.clip_exists(item.url, item.external_id):
            return DUPLICATE

        transcript = None
        if item.external_id and self.transcripts is not None:
            transcript = await self.transcripts.fetch(item.external_id)

        classification = await self.classifier.classify(
            item.title, item.content, item.source_name, transcript, item.bucket
        )
        if not should_persist(classification, self.relevance_threshold):
            score = classification.relevance_score if classification else "n/a"
            logger.info(f"Skipped (relevance {score}): {item.title[:60]}")
            return IRRELEVANT

        thumbnail_path = None
        if item.external_id and item.thumbnail_url and self.thumbnails is not None:
            thumbnail_path = await self.thumbnails.ensure(item.external_id, item.thumbnail_url)

        clip = PersistedClip(
            url=item.url,
            external_id=item.external_id,
            title=item.title,
            content=item.content,
            summary=classification.summary,
            source_type=item.source_type,
            source_name=item.source_name,
            published_at=item.published_at,
            bucket=item.bucket,
            duration_secs=item.duration_secs,
            transcript=transcript,
            thumbnail_path=thumbnail_path,
            importance=classification.importance,
            topics=classification.topics,
            companies=classification.companies,
            gov_entities=classification.gov_entities,
            relevance_score=classification.relevance_score,
            raw_data=item.raw_payload,
        )
        location = await self.locations.save_clip(clip, classification.location)
        logger.info(f"✅ Stored [{clip.importance}] {clip.title[:60]} (relevance {clip.relevance_score})")

        label = ", ".join(p for p in (location.city, location.county, location.state) if p)
        await self.notifier.notify(clip, label)
        return STORED
