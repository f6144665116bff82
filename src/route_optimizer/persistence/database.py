"""Database persistence for saved routes and route usage."""

from __future__ import annotations

import logging
import random
import string
import time
from typing import Any, Sequence

from ..db.supabase import get_supabase_client
from ..models.domain import SavedRoute, StartingPoint, Stop

ROUTES_TABLE = "routes"
ROUTE_USAGE_TABLE = "route_usage"

_TOKEN_ALPHABET = string.ascii_lowercase + string.digits


def _base36(value: int) -> str:
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_TOKEN_ALPHABET[remainder])
    return "".join(reversed(digits)) or "0"


def generate_share_token() -> str:
    """Random prefix plus a base-36 timestamp, unique enough for share links."""
    prefix = "".join(random.choices(_TOKEN_ALPHABET, k=9))
    return prefix + _base36(int(time.time() * 1000))


def generate_user_id() -> str:
    suffix = "".join(random.choices(_TOKEN_ALPHABET, k=9))
    return f"anon_{int(time.time() * 1000)}_{suffix}"


def route_from_row(row: dict[str, Any]) -> SavedRoute:
    known = {"id", "name", "stops", "starting_point", "round_trip", "user_id", "share_token", "is_public", "created_at"}
    return SavedRoute(
        id=str(row["id"]),
        name=str(row.get("name") or ""),
        stops=[Stop.from_dict(item) for item in row.get("stops") or []],
        starting_point=StartingPoint.from_dict(row.get("starting_point")),
        round_trip=bool(row.get("round_trip") or False),
        user_id=row.get("user_id"),
        share_token=row.get("share_token"),
        is_public=bool(row.get("is_public") or False),
        created_at=row.get("created_at"),
        extra={key: value for key, value in row.items() if key not in known},
    )


def route_to_row(route: SavedRoute) -> dict[str, Any]:
    return {
        "id": route.id,
        "name": route.name,
        "stops": [stop.to_dict() for stop in route.stops],
        "starting_point": route.starting_point.to_dict() if route.starting_point else None,
        "round_trip": route.round_trip,
        "user_id": route.user_id,
        "share_token": route.share_token,
        "is_public": route.is_public,
        "created_at": route.created_at,
    }


def _require_client():
    supabase = get_supabase_client()
    if not supabase:
        raise RuntimeError("Supabase is not configured. Set RO_SUPABASE_URL and RO_SUPABASE_KEY.")
    return supabase


def save_route(
    user_id: str,
    name: str,
    stops: Sequence[Stop],
    starting_point: StartingPoint | None,
    round_trip: bool,
) -> SavedRoute:
    """Insert a named route for ``user_id`` and return the stored row."""

    supabase = _require_client()
    logging.info(f"Saving route '{name}' for user {user_id}")
    response = supabase.table(ROUTES_TABLE).insert(
        {
            "user_id": user_id,
            "name": name,
            "stops": [stop.to_dict() for stop in stops],
            "starting_point": starting_point.to_dict() if starting_point else None,
            "round_trip": round_trip,
            "share_token": generate_share_token(),
        }
    ).execute()
    rows = response.data or []
    if not rows:
        raise RuntimeError(f"Route '{name}' was not stored.")
    return route_from_row(rows[0])


def load_routes(user_id: str) -> list[SavedRoute]:
    """The user's own routes followed by public ones, newest first, without repeats."""

    supabase = get_supabase_client()
    if not supabase:
        logging.info("Supabase not configured - no saved routes available")
        return []

    try:
        own = (
            supabase.table(ROUTES_TABLE)
            .select("*")
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .execute()
        )
    except Exception as e:
        logging.error(f"Error loading routes for user {user_id}: {e}")
        return []

    public_rows: list[dict] = []
    try:
        public = (
            supabase.table(ROUTES_TABLE)
            .select("*")
            .eq("is_public", True)
            .order("created_at", desc=True)
            .execute()
        )
        public_rows = public.data or []
    except Exception as e:
        logging.warning(f"Error loading public routes: {e}")

    routes: list[SavedRoute] = []
    seen: set[str] = set()
    for row in [*(own.data or []), *public_rows]:
        route_id = str(row.get("id"))
        if route_id in seen:
            continue
        seen.add(route_id)
        routes.append(route_from_row(row))
    logging.info(f"Loaded {len(routes)} saved routes for user {user_id}")
    return routes


def delete_route(route_id: str, user_id: str) -> bool:
    """Delete a route; only its owner can delete it."""

    supabase = _require_client()
    response = (
        supabase.table(ROUTES_TABLE)
        .delete()
        .eq("id", route_id)
        .eq("user_id", user_id)
        .execute()
    )
    return bool(response.data)


def load_shared_route(share_token: str) -> SavedRoute | None:
    supabase = _require_client()
    response = (
        supabase.table(ROUTES_TABLE)
        .select("*")
        .eq("share_token", share_token)
        .limit(1)
        .execute()
    )
    rows = response.data or []
    return route_from_row(rows[0]) if rows else None


def track_route_usage(route_id: str, user_id: str, action: str) -> None:
    """Record that a route was used; tracking failures are only logged."""

    supabase = get_supabase_client()
    if not supabase:
        return
    try:
        supabase.table(ROUTE_USAGE_TABLE).insert(
            {"route_id": route_id, "user_id": user_id, "action": action}
        ).execute()
    except Exception as e:
        logging.warning(f"Error tracking route usage for {route_id}: {e}")


def merge_routes(local_routes: Sequence[SavedRoute], remote_routes: Sequence[SavedRoute]) -> list[SavedRoute]:
    """Remote routes first; local ones are kept only when the remote side lacks them."""

    merged = list(remote_routes)
    remote_ids = {route.id for route in remote_routes}
    merged.extend(route for route in local_routes if route.id not in remote_ids)
    return merged
