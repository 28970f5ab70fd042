"""
Reverse geocoding for punch locations.

Source: OpenStreetMap Nominatim. When the service is disabled, slow or
returns nothing useful, the coordinates themselves are used as the
location label.
"""

import logging
from decimal import Decimal

import httpx

from ponto.core.config import settings

logger = logging.getLogger(__name__)


def format_coordinates(lat: float | Decimal, lng: float | Decimal) -> str:
    return f"{float(lat):.6f}, {float(lng):.6f}"


async def reverse_geocode(lat: float | Decimal, lng: float | Decimal) -> str:
    """Human-readable address for the coordinates, or "lat, lng" as a fallback."""
    fallback = format_coordinates(lat, lng)
    if not settings.GEOCODING_ENABLED:
        return fallback

    params = {
        "format": "json",
        "lat": str(lat),
        "lon": str(lng),
        "addressdetails": "1",
    }
    try:
        async with httpx.AsyncClient(
            timeout=settings.GEOCODING_TIMEOUT_SEC,
            follow_redirects=True,
            headers={"User-Agent": settings.GEOCODING_USER_AGENT},
        ) as client:
            resp = await client.get(settings.GEOCODING_API_URL, params=params)
            resp.raise_for_status()
            data = resp.json()
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning("Reverse geocoding failed for (%s, %s): %s", lat, lng, exc)
        return fallback

    display_name = data.get("display_name") if isinstance(data, dict) else None
    if not display_name:
        logger.debug("Reverse geocoding returned no address for (%s, %s)", lat, lng)
        return fallback
    return display_name
