"""Dependency definitions for the Barcoder API server."""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request, status

from barcoder.composition import Services
from barcoder.config import get_settings
from barcoder.db.cards import CardStore
from barcoder.db.lists import ListStore
from barcoder.models.shopping import ShoppingList
from barcoder.products.cache import ProductLookupCache
from barcoder.replay.sequencer import ReplaySequencer
from barcoder.replay.sessions import ReplaySessions


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_list_store(services: Services = Depends(get_services)) -> ListStore:
    return services.lists


def get_card_store(services: Services = Depends(get_services)) -> CardStore:
    return services.cards


def get_product_cache(services: Services = Depends(get_services)) -> ProductLookupCache:
    return services.products


def get_replay_sessions(services: Services = Depends(get_services)) -> ReplaySessions:
    return services.replays


def require_list(list_id: str, store: ListStore = Depends(get_list_store)) -> ShoppingList:
    """Resolve the path's list or answer 404 so the client can navigate away."""

    shopping_list = store.get_list(list_id)
    if shopping_list is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="List not found")
    return shopping_list


def require_replay(
    list_id: str,
    sessions: ReplaySessions = Depends(get_replay_sessions),
) -> ReplaySequencer:
    sequencer = sessions.get(list_id)
    if sequencer is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No active replay")
    return sequencer


def require_api_token(
    request: Request,
    settings = Depends(get_settings),
) -> None:
    """Ensure requests carry the configured API token when required."""

    token = settings.api_token
    if not token:
        return

    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.split("Bearer ")[-1].strip() == token:
        return

    if request.headers.get("X-API-Key") == token:
        return

    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
