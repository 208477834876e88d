from abc import ABC, abstractmethod
from typing import List
import httpx
from dcwatch.models.items import RawItem

class SourceAdapter(ABC):
    name: str = ""
    source_type: str = ""

    def __init__(self, client: httpx.AsyncClient | None = None):
        self.client = client

    @abstractmethod
    async def fetch_items(self) -> List[RawItem]:
        """Returns everything gathered. Per-query failures are logged, never raised."""
        pass
