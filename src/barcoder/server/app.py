"""ASGI application for Barcoder."""

from __future__ import annotations

import logging
from time import perf_counter
from typing import Any, Optional
from uuid import uuid4

from fastapi import Body, Depends, FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from barcoder import __version__, metrics
from barcoder.barcode import barcode_format, is_valid_barcode
from barcoder.composition import Services, build_services
from barcoder.config import Settings, get_settings
from barcoder.db.cards import CardStore
from barcoder.db.lists import ListStore
from barcoder.logging_utils import configure_logging as configure_app_logging
from barcoder.models.cards import SavedCard
from barcoder.models.product import ProductInfo
from barcoder.models.replay import ReplayState
from barcoder.models.shopping import ShoppingList
from barcoder.products.cache import ProductLookupCache
from barcoder.replay.sequencer import ReplaySequencer, StepResult
from barcoder.replay.sessions import ReplaySessions
from barcoder.scanning import submit_scan
from barcoder.server import deps

logger = logging.getLogger(__name__)


def _json_safe(value: Any) -> Any:
    """Convert non-serializable values into JSON-safe representations."""

    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    if isinstance(value, bytes):
        try:
            return value.decode("utf-8")
        except UnicodeDecodeError:
            return value.hex()
    if isinstance(value, (list, tuple)):
        return [_json_safe(entry) for entry in value]
    if isinstance(value, dict):
        return {key: _json_safe(sub_value) for key, sub_value in value.items()}
    return repr(value)


def _normalize_validation_errors(errors: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return [{key: _json_safe(value) for key, value in error.items()} for error in errors]


def _configure_logging(settings: Settings) -> None:
    configure_app_logging(settings.log_level, settings.log_format, [settings.api_token or ""])


class ListCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)

    @model_validator(mode="after")
    def reject_blank_name(self) -> "ListCreateRequest":
        if not self.name.strip():
            raise ValueError("List name must not be blank")
        return self


class ScanRequest(BaseModel):
    barcode: str = Field(max_length=64)


class ItemUpdateRequest(BaseModel):
    delta: Optional[int] = None
    defect: Optional[bool] = None


class CardCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    barcode: str = Field(min_length=1, max_length=255)


class ReplayMoveRequest(BaseModel):
    animate: bool = False


class ReplayStepResponse(BaseModel):
    result: StepResult
    state: ReplayState


class BarcodeCheck(BaseModel):
    barcode: str
    valid: bool
    format: Optional[str] = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def create_app(services: Optional[Services] = None) -> FastAPI:
    """Create and configure a FastAPI application instance.

    ``services`` is the composition root; when omitted it is built from settings.
    """

    settings = get_settings()
    _configure_logging(settings)

    application = FastAPI(title="Barcoder", version=__version__)
    application.state.services = services or build_services(settings)
    logger.debug("Application created with log level %s", settings.log_level)

    if settings.log_requests:
        access_logger = logging.getLogger("barcoder.access")

        @application.middleware("http")
        async def log_request_response(request: Request, call_next):
            """Log request/response details and record request metrics."""

            request_id = request.headers.get("X-Request-ID") or uuid4().hex
            request.state.request_id = request_id
            start = perf_counter()
            method = request.method
            path = request.url.path
            try:
                response: Response = await call_next(request)
            except Exception:
                duration_ms = (perf_counter() - start) * 1000
                access_logger.exception(
                    "HTTP %s %s status=500 duration_ms=%.2f",
                    method,
                    path,
                    duration_ms,
                    extra={"request_id": request_id},
                )
                metrics.REQUEST_COUNT.labels(method=method, path=path, status="500").inc()
                metrics.REQUEST_LATENCY.labels(method=method, path=path).observe(
                    duration_ms / 1000.0
                )
                raise

            duration_ms = (perf_counter() - start) * 1000
            response.headers.setdefault("X-Request-ID", request_id)
            access_logger.info(
                "HTTP %s %s status=%s duration_ms=%.2f",
                method,
                path,
                response.status_code,
                duration_ms,
                extra={"request_id": request_id},
            )
            metrics.REQUEST_COUNT.labels(
                method=method, path=path, status=str(response.status_code)
            ).inc()
            metrics.REQUEST_LATENCY.labels(method=method, path=path).observe(duration_ms / 1000.0)
            return response

    @application.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        log_kwargs: dict[str, Any] = {}
        request_id = getattr(request.state, "request_id", None)
        if request_id:
            log_kwargs["extra"] = {"request_id": request_id}

        logger.warning(
            "Validation error on %s %s: %s",
            request.method,
            request.url.path,
            exc.errors(),
            **log_kwargs,
        )
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": _normalize_validation_errors(exc.errors())},
        )

    @application.get("/health", summary="Liveness probe")
    async def health() -> dict[str, str]:
        return {"status": "ok", "version": __version__}

    @application.get("/metrics", include_in_schema=False)
    def metrics_endpoint() -> Response:
        payload = generate_latest()
        return Response(content=payload, media_type=CONTENT_TYPE_LATEST)

    # Store endpoints are coroutines so every read-modify-write runs to completion
    # on the event loop before the next one starts.

    @application.get("/lists", response_model=list[ShoppingList], summary="List shopping lists")
    async def lists_index(store: ListStore = Depends(deps.get_list_store)) -> list[ShoppingList]:
        return store.all_lists()

    @application.post(
        "/lists",
        response_model=ShoppingList,
        status_code=status.HTTP_201_CREATED,
        summary="Create shopping list",
    )
    async def lists_create(
        payload: ListCreateRequest = Body(...),
        auth: None = Depends(deps.require_api_token),
        store: ListStore = Depends(deps.get_list_store),
    ) -> ShoppingList:
        return store.create_list(payload.name)

    @application.get("/lists/{list_id}", response_model=ShoppingList, summary="Get shopping list")
    async def lists_get(shopping_list: ShoppingList = Depends(deps.require_list)) -> ShoppingList:
        return shopping_list

    @application.delete(
        "/lists/{list_id}",
        status_code=status.HTTP_204_NO_CONTENT,
        summary="Delete shopping list",
    )
    async def lists_delete(
        list_id: str,
        auth: None = Depends(deps.require_api_token),
        store: ListStore = Depends(deps.get_list_store),
        sessions: ReplaySessions = Depends(deps.get_replay_sessions),
    ) -> None:
        store.delete_list(list_id)
        sessions.end(list_id)

    @application.post(
        "/lists/{list_id}/items",
        response_model=ShoppingList,
        status_code=status.HTTP_201_CREATED,
        summary="Add a scanned barcode",
    )
    async def items_scan(
        list_id: str,
        payload: ScanRequest = Body(...),
        auth: None = Depends(deps.require_api_token),
        shopping_list: ShoppingList = Depends(deps.require_list),
        store: ListStore = Depends(deps.get_list_store),
    ) -> ShoppingList:
        result = submit_scan(store, list_id, payload.barcode)
        if not result.accepted:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=result.message or "Barcode is required",
            )
        assert result.shopping_list is not None
        return result.shopping_list

    @application.patch(
        "/lists/{list_id}/items/{barcode}",
        response_model=ShoppingList,
        summary="Adjust quantity or defect flag",
    )
    async def items_update(
        list_id: str,
        barcode: str,
        payload: ItemUpdateRequest = Body(...),
        auth: None = Depends(deps.require_api_token),
        shopping_list: ShoppingList = Depends(deps.require_list),
        store: ListStore = Depends(deps.get_list_store),
    ) -> ShoppingList:
        if payload.delta is None and payload.defect is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="No fields provided for update",
            )
        if shopping_list.find(barcode) is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Item not found")

        updated: Optional[ShoppingList] = shopping_list
        if payload.defect is not None:
            updated = store.mark_defect(list_id, barcode, payload.defect)
        if payload.delta is not None:
            updated = store.update_quantity(list_id, barcode, payload.delta)
        if updated is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="List not found")
        return updated

    @application.delete(
        "/lists/{list_id}/items/{barcode}",
        status_code=status.HTTP_204_NO_CONTENT,
        summary="Remove item regardless of quantity",
    )
    async def items_delete(
        list_id: str,
        barcode: str,
        auth: None = Depends(deps.require_api_token),
        shopping_list: ShoppingList = Depends(deps.require_list),
        store: ListStore = Depends(deps.get_list_store),
    ) -> None:
        store.remove_item(list_id, barcode)

    @application.get(
        "/lists/{list_id}/products",
        response_model=dict[str, ProductInfo],
        summary="Product metadata for every item on the list",
    )
    async def list_products(
        shopping_list: ShoppingList = Depends(deps.require_list),
        cache: ProductLookupCache = Depends(deps.get_product_cache),
    ) -> dict[str, ProductInfo]:
        return await cache.lookup_many(item.barcode for item in shopping_list.items)

    @application.post(
        "/lists/{list_id}/replay",
        response_model=ReplayState,
        status_code=status.HTTP_201_CREATED,
        summary="Start replaying a list",
    )
    async def replay_start(
        list_id: str,
        shopping_list: ShoppingList = Depends(deps.require_list),
        sessions: ReplaySessions = Depends(deps.get_replay_sessions),
    ) -> ReplayState:
        sequencer = sessions.start(list_id)
        if sequencer is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="List not found")
        return sequencer.snapshot()

    @application.get(
        "/lists/{list_id}/replay",
        response_model=ReplayState,
        summary="Current replay state",
    )
    async def replay_state(
        sequencer: ReplaySequencer = Depends(deps.require_replay),
    ) -> ReplayState:
        return sequencer.snapshot()

    @application.delete(
        "/lists/{list_id}/replay",
        status_code=status.HTTP_204_NO_CONTENT,
        summary="Stop replaying a list",
    )
    async def replay_stop(
        list_id: str,
        sessions: ReplaySessions = Depends(deps.get_replay_sessions),
    ) -> None:
        sessions.end(list_id)

    @application.post(
        "/lists/{list_id}/replay/advance",
        response_model=ReplayStepResponse,
        summary="Show the next barcode",
    )
    async def replay_advance(
        payload: Optional[ReplayMoveRequest] = Body(default=None),
        sequencer: ReplaySequencer = Depends(deps.require_replay),
    ) -> ReplayStepResponse:
        move = payload or ReplayMoveRequest()
        result = sequencer.advance(animate=move.animate)
        return ReplayStepResponse(result=result, state=sequencer.snapshot())

    @application.post(
        "/lists/{list_id}/replay/retreat",
        response_model=ReplayStepResponse,
        summary="Show the previous barcode",
    )
    async def replay_retreat(
        payload: Optional[ReplayMoveRequest] = Body(default=None),
        sequencer: ReplaySequencer = Depends(deps.require_replay),
    ) -> ReplayStepResponse:
        move = payload or ReplayMoveRequest()
        result = sequencer.retreat(animate=move.animate)
        return ReplayStepResponse(result=result, state=sequencer.snapshot())

    @application.post(
        "/lists/{list_id}/replay/settle",
        response_model=ReplayState,
        summary="Finish the presentation transition",
    )
    async def replay_settle(
        sequencer: ReplaySequencer = Depends(deps.require_replay),
    ) -> ReplayState:
        sequencer.settle()
        return sequencer.snapshot()

    @application.post(
        "/lists/{list_id}/replay/defect",
        response_model=ReplayState,
        summary="Toggle the defect flag of the displayed barcode",
    )
    async def replay_defect(
        auth: None = Depends(deps.require_api_token),
        sequencer: ReplaySequencer = Depends(deps.require_replay),
    ) -> ReplayState:
        sequencer.toggle_defect()
        return sequencer.snapshot()

    @application.get("/cards", response_model=list[SavedCard], summary="List saved cards")
    async def cards_index(store: CardStore = Depends(deps.get_card_store)) -> list[SavedCard]:
        return store.all_cards()

    @application.post(
        "/cards",
        response_model=SavedCard,
        status_code=status.HTTP_201_CREATED,
        summary="Save a membership card",
    )
    async def cards_create(
        payload: CardCreateRequest = Body(...),
        auth: None = Depends(deps.require_api_token),
        store: CardStore = Depends(deps.get_card_store),
    ) -> SavedCard:
        return store.add_card(payload.name, payload.barcode)

    @application.get("/cards/{card_id}", response_model=SavedCard, summary="Get saved card")
    async def cards_get(card_id: str, store: CardStore = Depends(deps.get_card_store)) -> SavedCard:
        card = store.get_card(card_id)
        if card is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Card not found")
        return card

    @application.delete(
        "/cards/{card_id}",
        status_code=status.HTTP_204_NO_CONTENT,
        summary="Delete saved card",
    )
    async def cards_delete(
        card_id: str,
        auth: None = Depends(deps.require_api_token),
        store: CardStore = Depends(deps.get_card_store),
    ) -> None:
        store.delete_card(card_id)

    @application.get(
        "/products/{barcode}",
        response_model=ProductInfo,
        summary="Look up product metadata",
    )
    async def products_get(
        barcode: str,
        cache: ProductLookupCache = Depends(deps.get_product_cache),
    ) -> ProductInfo:
        if not is_valid_barcode(barcode):
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Invalid barcode"
            )
        return await cache.lookup(barcode)

    @application.get(
        "/barcodes/{code}",
        response_model=BarcodeCheck,
        summary="Validate a barcode check digit",
    )
    async def barcodes_check(code: str) -> BarcodeCheck:
        return BarcodeCheck(barcode=code, valid=is_valid_barcode(code), format=barcode_format(code))

    return application


__all__ = ["create_app"]
