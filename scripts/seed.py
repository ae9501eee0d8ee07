#!/usr/bin/env python3
"""
Seed script: mirror the site's YouTube channels into the video catalog by
calling the running API's sync endpoint once per channel.

Channels come from SEED_CHANNELS (comma separated IDs, @handles or URLs).
"""

import asyncio
import httpx
import os
from datetime import datetime

# Configuration
API_BASE_URL = os.getenv("API_URL", "http://localhost:8000/api")

SEED_CHANNELS = [
    channel.strip()
    for channel in os.getenv("SEED_CHANNELS", "@Asthawaani").split(",")
    if channel.strip()
]


async def wait_for_api(client: httpx.AsyncClient, max_retries: int = 30) -> bool:
    """Wait for the API to be ready."""
    health_url = f"{API_BASE_URL.rsplit('/api', 1)[0]}/health"
    for i in range(max_retries):
        try:
            response = await client.get(health_url)
            if response.status_code == 200:
                print("✅ API is ready!")
                return True
        except httpx.TransportError:
            pass
        print(f"⏳ Waiting for API... ({i + 1}/{max_retries})")
        await asyncio.sleep(2)
    return False


async def sync_channel(client: httpx.AsyncClient, channel: str) -> bool:
    """Ask the API to sync one channel and report the counts."""
    print(f"\n🔄 Syncing {channel}...")

    try:
        response = await client.post(
            f"{API_BASE_URL}/sync-youtube",
            json={"channelId": channel},
        )
    except httpx.HTTPError as e:
        print(f"  ❌ Error: {e}")
        return False

    if response.status_code == 200:
        data = response.json()
        print(f"  ✅ {data['channel']['channelName']}")
        print(f"     fetched {data['totalFetched']}, "
              f"created {data['createdCount']}, updated {data['updatedCount']}")
        return True

    detail = response.json().get("detail", response.text)
    print(f"  ❌ {response.status_code}: {detail}")
    return False


async def main():
    print("=" * 60)
    print("🎯 Video catalog seed")
    print(f"   Started at: {datetime.now().isoformat()}")
    print("=" * 60)

    # Syncs page through the YouTube API; give them room
    async with httpx.AsyncClient(timeout=300.0) as client:
        if not await wait_for_api(client):
            print("❌ API is not available. Please start the services first.")
            return

        results = [await sync_channel(client, channel) for channel in SEED_CHANNELS]

    print("\n" + "=" * 60)
    print(f"🚀 Seed complete: {sum(results)}/{len(results)} channels synced")
    print("   Re-running is safe; existing videos are updated in place.")
    print("=" * 60)


if __name__ == "__main__":
    asyncio.run(main())
