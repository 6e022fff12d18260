"""Create every table directly from the model metadata, bypassing migrations."""

import asyncio

from sqlalchemy import text

from carebook.database import engine
from carebook.models import metadata


async def init_db(drop: bool = False) -> None:
    """Create the scheduling tables, optionally dropping them first."""
    async with engine.begin() as conn:
        await conn.execute(text('CREATE EXTENSION IF NOT EXISTS "pgcrypto"'))
        if drop:
            await conn.run_sync(metadata.drop_all)
        await conn.run_sync(metadata.create_all)

    await engine.dispose()
    print(f"✓ Created {len(metadata.tables)} tables")


if __name__ == "__main__":
    import sys

    asyncio.run(init_db(drop="--drop" in sys.argv[1:]))
