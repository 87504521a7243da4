"""
Fetch a sample of Supabase patient profiles to verify connectivity
Usage: python check_supabase_profiles.py [limit]
"""
import asyncio
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from ukuqala.services.supabase_service import SupabaseError, SupabaseService

logging.basicConfig(level=logging.INFO, format='%(message)s')
logger = logging.getLogger(__name__)


async def check_profiles(limit: int):
    service = SupabaseService()
    if not service.configured:
        raise SupabaseError("SUPABASE_URL or SUPABASE_ANON_KEY missing")

    profiles = await service.list_profiles(limit=limit)
    logger.info(f"✅ Fetched {len(profiles)} profile(s):")
    for profile in profiles:
        logger.info(f"   {profile.get('id')}: {profile.get('full_name') or profile.get('name') or '-'}")


if __name__ == "__main__":
    limit = int(sys.argv[1]) if len(sys.argv) > 1 else 5

    try:
        asyncio.run(check_profiles(limit))
    except SupabaseError as e:
        logger.error(f"❌ Supabase check failed: {e.message}")
        sys.exit(1)
