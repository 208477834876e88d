import os
import tempfile

# Keep logs and default paths out of the working tree
os.environ.setdefault("DATA_DIR", tempfile.mkdtemp(prefix="dcwatch-test-"))

import json
import httpx
import pytest
from dcwatch.services.database import Database


def classification_json(**overrides) -> str:
    data = {
        "location": {"city": None, "county": "Loudoun", "state": "VA"},
        "companies": ["Amazon Web Services"],
        "govEntities": ["Loudoun County Board of Supervisors"],
        "topics": ["zoning", "opposition"],
        "importance": "high",
        "summary": "Residents packed a hearing on a proposed data center campus.",
        "relevanceScore": 8,
    }
    data.update(overrides)
    return json.dumps(data)


class FakeLLM:
    """Returns queued replies in order; the last one repeats."""

    def __init__(self, *replies):
        self.replies = list(replies) or [classification_json()]
        self.prompts = []

    async def generate_json(self, prompt: str) -> str:
        self.prompts.append(prompt)
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        return reply


def mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def db(tmp_path):
    import asyncio
    database = Database(tmp_path / "clips.db")
    asyncio.run(database.init())
    return database
