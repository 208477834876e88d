from dcwatch.models.items import Location, LocationRef, PersistedClip
from dcwatch.services.database import Database
from dcwatch.tools.geocoder import Coordinates, Geocoder
from dcwatch.services.logger import logger

def location_key(ref: LocationRef) -> tuple[str, str, str]:
    """(city, county, state) with missing parts as ''."""
    return (ref.city or "", ref.county or "", ref.state)

class LocationResolver:
    def __init__(self, db: Database, geocoder: Geocoder | None = None):
        self.db = db
        self.geocoder = geocoder

    async def _geocode(self, ref: LocationRef) -> Coordinates | None:
        if self.geocoder is None:
            return None
        return await self.geocoder.geocode(ref.city, ref.county, ref.state)

    async def resolve(self, ref: LocationRef) -> Location:
        """
        Upserts the location on its own. New rows start at clip_count=1;
        existing rows are incremented. Fresh coordinates overwrite stored
        ones, a failed geocode leaves them alone.
        """
        city, county, state = location_key(ref)
        coords = await self._geocode(ref)
        location = await self.db.upsert_location(
            city, county, state,
            latitude=coords.latitude if coords else None,
            longitude=coords.longitude if coords else None,
        )
        logger.debug(f"Location {location.id} ({city or '-'}, {county or '-'}, {state}) count={location.clip_count}")
        return location

    async def save_clip(self, clip: PersistedClip, ref: LocationRef) -> Location:
        """Same upsert as resolve(), committed together with the clip insert."""
        city, county, state = location_key(ref)
        coords = await self._geocode(ref)
        location = await self.db.save_clip_with_location(
            clip, city, county, state,
            latitude=coords.latitude if coords else None,
            longitude=coords.longitude if coords else None,
        )
        logger.debug(f"Location {location.id} ({city or '-'}, {county or '-'}, {state}) count={location.clip_count}")
        return location
