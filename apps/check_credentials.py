"""
Credential smoke check for the Apple Search Ads API.

Loads ``SEARCH_ADS_*`` settings, obtains an access token and lists the
organizations the key can access (``GET /acls``).

Usage:
    python -m apps.check_credentials
"""

import asyncio
import json
import logging
import os
import sys

from searchads_core.client import create_client
from searchads_core.config import load_settings
from searchads_core.errors import SearchAdsError

# Configure logging
logging.basicConfig(
    level=os.getenv("APP_LOG_LEVEL", "INFO"),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


async def check_credentials() -> int:
    """Fetch the user ACLs through an authenticated client and print them."""
    settings = load_settings()

    async with create_client(settings) as client:
        response = await client.get("acls")

    if response.is_error:
        logger.error(f"ACL request failed with HTTP {response.status_code}: {response.text}")
        return 1

    try:
        acls = response.json()
    except ValueError:
        logger.error(f"ACL response is not JSON: {response.text[:200]}")
        return 1

    print(json.dumps(acls, indent=2))
    return 0


def main() -> int:
    try:
        return asyncio.run(check_credentials())
    except SearchAdsError as e:
        logger.error(f"Credential check failed: {e}")
        logger.debug(json.dumps(e.error_detail.to_dict()))
        return 2


if __name__ == "__main__":
    sys.exit(main())
