# quake_dashboard/usgs.py
from __future__ import annotations
import logging
import time
from typing import List, Optional

import httpx

from quake_dashboard.records import Quake, parse_csv, parse_geojson

logger = logging.getLogger(__name__)

BASE_URL = "https://earthquake.usgs.gov/earthquakes/feed/v1.0/summary"

FEEDS = {
    "all_hour":  f"{BASE_URL}/all_hour.csv",
    "all_day":   f"{BASE_URL}/all_day.csv",
    "all_week":  f"{BASE_URL}/all_week.csv",
    "all_month": f"{BASE_URL}/all_month.csv",

    "all_day_geojson":   f"{BASE_URL}/all_day.geojson",
    "all_month_geojson": f"{BASE_URL}/all_month.geojson",

    "2.5_day":   f"{BASE_URL}/2.5_day.csv",
    "4.5_day":   f"{BASE_URL}/4.5_day.csv",
    "significant_week": f"{BASE_URL}/significant_week.geojson",
}

# the two choices offered by the period gate
PERIOD_FEEDS = {
    "day":   FEEDS["all_day"],
    "month": FEEDS["all_month"],
}

DEFAULT_TIMEOUT = 30.0

class FeedError(Exception):
    """The feed could not be fetched or decoded."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code

def is_json_response(url: str, content_type: str) -> bool:
    ctype = content_type.lower()
    return (
        "application/json" in ctype
        or "geo+json" in ctype
        or url.endswith(".json")
        or url.endswith(".geojson")
    )

def fetch_quakes(feed: str = "all_day",
                 timeout: Optional[float] = None,
                 client: Optional[httpx.Client] = None) -> List[Quake]:
    """
    One GET against a feed key from FEEDS or a full URL; the response
    content type picks the GeoJSON or CSV decoder.
    """
    url = FEEDS.get(feed, feed)
    close_client = False
    if client is None:
        client = httpx.Client(timeout=timeout or DEFAULT_TIMEOUT)
        close_client = True

    start = time.perf_counter()
    try:
        try:
            resp = client.get(url)
        except httpx.HTTPError as exc:
            logger.error("feed request failed url=%s error=%s", url, exc)
            raise FeedError(f"Failed to fetch earthquakes: {exc}") from exc

        if resp.is_error:
            logger.error("feed request failed url=%s status=%s", url, resp.status_code)
            raise FeedError(
                f"Failed to fetch earthquakes: {resp.status_code} {resp.reason_phrase}",
                status_code=resp.status_code,
            )

        try:
            if is_json_response(url, resp.headers.get("content-type", "")):
                quakes = parse_geojson(resp.json())
            else:
                quakes = parse_csv(resp.text)
        except Exception as exc:
            logger.error("feed decode failed url=%s error=%r", url, exc)
            raise FeedError(f"Failed to decode earthquake feed: {exc}") from exc

        logger.info(
            "fetched feed url=%s status=%s records=%d elapsed=%.3fs",
            url, resp.status_code, len(quakes), time.perf_counter() - start,
        )
        return quakes
    finally:
        if close_client:
            client.close()


if __name__ == "__main__":
    import sys
    target = sys.argv[1] if len(sys.argv) > 1 else "all_day"
    url = FEEDS.get(target, target)
    try:
        quakes = fetch_quakes(target)
    except FeedError as exc:
        print(exc, file=sys.stderr)
        sys.exit(1)
    print(f"{len(quakes)} records from {url}")
    for q in quakes[:5]:
        print(f"{q.id or '-':<14} M{q.mag:<5.2f} {q.time:<25} {q.place or '-'}")
