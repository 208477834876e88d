import asyncio
import sys
from dcwatch.config import settings, Settings
from dcwatch.errors import ConfigurationError
from dcwatch.services.database import Database
from dcwatch.services.http import new_client
from dcwatch.services.llm import LLMService
from dcwatch.services.locations import LocationResolver
from dcwatch.services.notifier import build_notifier
from dcwatch.services.logger import logger
from dcwatch.tools.captions import TranscriptFetcher
from dcwatch.tools.classifier import ClassificationClient
from dcwatch.tools.geocoder import Geocoder
from dcwatch.tools.sources import build_sources
from dcwatch.tools.thumbnails import ThumbnailCache
from dcwatch.workflows.pipeline import Pipeline
from dcwatch.workflows.scheduler import Schedule, run_forever
from dcwatch.api import serve_health

async def build_pipeline(settings: Settings, client) -> Pipeline:
    """Constructs every service once and wires them into the pipeline."""
    db = Database(settings.database_path)
    try:
        settings.ensure_dirs()
        await db.init()
    except Exception as e:
        raise ConfigurationError(f"Cannot open clip store at {settings.database_path}: {e}") from e

    return Pipeline(
        sources=build_sources(settings, client),
        db=db,
        classifier=ClassificationClient(LLMService()),
        locations=LocationResolver(db, Geocoder(settings.GEOCODIO_API_KEY, client)),
        transcripts=TranscriptFetcher(client),
        thumbnails=ThumbnailCache(settings.thumbnails_dir, client),
        notifier=build_notifier(settings),
        relevance_threshold=settings.RELEVANCE_THRESHOLD,
    )

def build_schedule(settings: Settings) -> Schedule:
    return Schedule(
        interval_minutes=settings.POLL_INTERVAL_MINUTES,
        hours=settings.SCHEDULE_HOURS,
        tz=settings.SCHEDULE_TIMEZONE,
        check_interval_seconds=settings.CHECK_INTERVAL_SECONDS,
    )

async def run():
    async with new_client() as client:
        pipeline = await build_pipeline(settings, client)
        await asyncio.gather(
            serve_health(settings.HEALTH_PORT),
            run_forever(pipeline, build_schedule(settings)),
        )

def main():
    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        logger.info("Stopped by user")
    except ConfigurationError as e:
        logger.error(f"Startup failed: {e}")
        sys.exit(1)
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        sys.exit(1)

if __name__ == "__main__":
    main()
