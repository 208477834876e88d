import asyncio
from dcwatch.config import settings
from dcwatch.services.http import new_client
from dcwatch.main import build_pipeline

async def main():
    print(">>> Starting Debug Pipeline Run (single cycle)...")
    async with new_client() as client:
        pipeline = await build_pipeline(settings, client)
        stats = await pipeline.run_cycle()
    print(f"\n[OK] Run Complete: {stats.model_dump()}")

if __name__ == "__main__":
    asyncio.run(main())
