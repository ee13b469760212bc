from __future__ import annotations

import json
import logging
from typing import Any
from urllib import parse as urllib_parse
from urllib import request as urllib_request

from badge.settings import get_settings

logger = logging.getLogger("badge.geocoding")

_CITY_KEYS = ("city", "town", "village")


def _get_json(*, url: str, timeout_seconds: int, user_agent: str) -> dict[str, Any]:
    request = urllib_request.Request(
        url=url,
        method="GET",
        headers={"Accept": "application/json", "User-Agent": user_agent},
    )
    with urllib_request.urlopen(request, timeout=max(1, timeout_seconds)) as response:
        body = response.read().decode("utf-8", errors="ignore")
    payload = json.loads(body)
    if not isinstance(payload, dict):
        raise ValueError("Unexpected geocoding payload")
    return payload


def format_place_name(payload: dict[str, Any]) -> str | None:
    address = payload.get("address")
    if not isinstance(address, dict):
        return None
    city = next(
        (str(address[key]).strip() for key in _CITY_KEYS if str(address.get(key) or "").strip()),
        None,
    )
    if not city:
        return None
    province = str(address.get("state") or "").strip()
    return f"{city} ({province})" if province else city


def reverse_geocode(latitude: float, longitude: float) -> str:
    settings = get_settings()
    fallback = settings.location_fallback_name
    if not settings.geocoding_enabled:
        return fallback

    query = urllib_parse.urlencode(
        {
            "format": "json",
            "lat": f"{latitude:.6f}",
            "lon": f"{longitude:.6f}",
            "zoom": 10,
            "addressdetails": 1,
        }
    )
    try:
        payload = _get_json(
            url=f"{settings.geocoding_url}?{query}",
            timeout_seconds=settings.geocoding_timeout_seconds,
            user_agent=settings.geocoding_user_agent,
        )
    except Exception as exc:  # clock actions proceed without a place name
        logger.warning(
            "reverse_geocode_failed",
            extra={"latitude": latitude, "longitude": longitude, "error": str(exc)},
        )
        return fallback

    return format_place_name(payload) or fallback
