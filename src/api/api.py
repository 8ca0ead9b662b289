import logging
from contextlib import asynccontextmanager
from time import perf_counter
from typing import AsyncGenerator, Awaitable, Callable

from fastapi import FastAPI, HTTPException, Request, Response

from api.dependencies import LedgerServiceDep
from config import EFFECTS_CACHE_DB, config
from domain.ledger import Digest, LedgerEntry, LedgerState, SuiAddress
from main import build_node
from services.ledger_service import LedgerService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI) -> AsyncGenerator[None, None]:
    if not hasattr(fastapi_app.state, "ledger_service"):
        settings = config()
        node = build_node(
            settings.sui_rpc_url,
            timeout=settings.sui_rpc_timeout,
            effects_cache=EFFECTS_CACHE_DB if settings.effects_cache_enabled else None,
        )
        fastapi_app.state.ledger_service = LedgerService(node)
    yield


app = FastAPI(lifespan=lifespan)


@app.middleware("http")
async def log_process_time(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
    start_time = perf_counter()
    response = await call_next(request)
    logger.info("Request time: %s %s: %.4fs", request.method, request.url, perf_counter() - start_time)
    return response


@app.get("/ledger")
def get_ledger(service: LedgerServiceDep) -> LedgerState:
    return service.state


@app.post("/ledger/{address}/refresh")
def refresh_ledger(address: str, service: LedgerServiceDep) -> LedgerState:
    return service.refresh(SuiAddress(address))


@app.get("/ledger/entries/{digest}")
def get_entry(digest: str, service: LedgerServiceDep) -> LedgerEntry:
    entry = service.find_entry(Digest(digest))
    if entry is None:
        raise HTTPException(status_code=404, detail=f"Transaction {digest} not in the loaded ledger")
    return entry
