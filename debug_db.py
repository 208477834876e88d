import asyncio
from dcwatch.services.database import Database

async def show_store():
    db = Database()
    await db.init()
    async with db.get_connection() as conn:
        cursor = await conn.execute(
            "SELECT city, county, state, clip_count, latitude, longitude FROM locations ORDER BY clip_count DESC"
        )
        rows = await cursor.fetchall()
        print("Locations:")
        for city, county, state, count, lat, lng in rows:
            print(f"{city or '-'} / {county or '-'} / {state}: {count} clips ({lat}, {lng})")

    print(f"\nClips stored: {await db.count_clips()}")
    for row in await db.get_recent_clips(limit=10):
        print(f"[{row['importance']}] {row['relevance_score']}/10 {row['title'][:70]}")

if __name__ == "__main__":
    asyncio.run(show_store())
