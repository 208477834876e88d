from typing import NamedTuple
import httpx
from dcwatch.services.http import http_session
from dcwatch.services.logger import logger

GEOCODIO_URL = "https://api.geocod.io/v1.7/geocode"

class Coordinates(NamedTuple):
    latitude: float
    longitude: float

def build_query(city: str | None, county: str | None, state: str) -> str | None:
    """'city, ST' preferred over 'county, ST'. State alone is too coarse for a map pin."""
    if city:
        return f"{city}, {state}"
    if county:
        return f"{county}, {state}"
    return None

class Geocoder:
    def __init__(self, api_key: str | None, client: httpx.AsyncClient | None = None):
        self.api_key = api_key
        self.client = client
        if not api_key:
            logger.warning("GEOCODIO_API_KEY not set, skipping geocoding")

    async def geocode(self, city: str | None, county: str | None, state: str) -> Coordinates | None:
        """First Geocodio match for the place, or None. Never raises."""
        if not self.api_key:
            return None
        query = build_query(city, county, state)
        if query is None:
            return None

        try:
            async with http_session(self.client) as client:
                resp = await client.get(GEOCODIO_URL, params={"q": query, "api_key": self.api_key})
                if resp.status_code != 200:
                    logger.warning(f"Geocodio returned {resp.status_code} for '{query}'")
                    return None
                results = resp.json().get("results") or []
                if not results:
                    logger.warning(f"Geocodio returned no results for '{query}'")
                    return None
                location = results[0]["location"]
                return Coordinates(float(location["lat"]), float(location["lng"]))
        except Exception as e:
            logger.warning(f"Geocodio failed for '{query}': {e}")
            return None
