"""Per-user session state endpoints (local key-value storage)."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from ...persistence.database import generate_user_id
from ...persistence.filesystem import SessionStore
from ...schemas.saved_routes import SessionStateModel
from ...services.routing.service import RouteSession

router = APIRouter(prefix="/sessions", tags=["sessions"])


@router.post("", status_code=status.HTTP_201_CREATED)
def create_session() -> dict:
    """Issue an anonymous user id for a new device."""
    return {"user_id": generate_user_id()}


@router.get("/{user_id}", response_model=SessionStateModel, status_code=status.HTTP_200_OK)
def get_session(user_id: str) -> SessionStateModel:
    try:
        state = SessionStore().load(user_id)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    if state is None:
        return SessionStateModel()
    # Round-trip through the session so older documents gain defaults.
    session = RouteSession.from_state(state)
    return SessionStateModel(**session.to_state(), saved_routes=state.get("saved_routes") or [])


@router.put("/{user_id}", response_model=SessionStateModel, status_code=status.HTTP_200_OK)
def put_session(user_id: str, payload: SessionStateModel) -> SessionStateModel:
    try:
        SessionStore().save(user_id, payload.model_dump())
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return payload


@router.delete("/{user_id}", status_code=status.HTTP_200_OK)
def delete_session(user_id: str) -> dict:
    removed = SessionStore().delete(user_id)
    return {"success": removed}
