"""Soft-delete notifications older than the retention window.

Usage: python scripts/expire_notifications.py [--days N]
Defaults to NOTIFICATION_RETENTION_DAYS (365). Run daily from cron.
"""
import argparse
import asyncio
import logging
import sys
from datetime import timedelta
from pathlib import Path

# Add parent directory to path to import pitchnet modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from pitchnet.domain.common.types import utcnow
from pitchnet.infra.db.base import AsyncSessionLocal, engine
from pitchnet.infra.db.repositories.notification_repo import NotificationRepositoryImpl
from pitchnet.settings import settings

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("expire_notifications")


async def expire_notifications(days: int) -> int:
    """Soft-delete notifications created more than `days` days ago."""
    cutoff = utcnow() - timedelta(days=days)
    async with AsyncSessionLocal() as session:
        expired = await NotificationRepositoryImpl(session).expire_older_than(cutoff)
    logger.info("Expired %d notification(s) created before %s", expired, cutoff.isoformat())
    await engine.dispose()
    return expired


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--days", type=int, default=settings.notification_retention_days)
    args = parser.parse_args()
    if args.days < 1:
        parser.error("--days must be at least 1")
    asyncio.run(expire_notifications(args.days))
