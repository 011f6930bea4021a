# api/main.py

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging

from history_indexer import create_indexer
from history_indexer.core.errors import NotFoundError, UsageError
from history_indexer.core.logging import IndexerLogger, log_with_context
from history_indexer.database.connection import DatabaseManager
from history_indexer.services import GraphService, HistoryService

from .routers import graph, history
from .dependencies import set_dependencies


@asynccontextmanager
async def lifespan(app: FastAPI):
    container = create_indexer()
    logger = IndexerLogger.get_logger('api.main')

    set_dependencies(
        graph_service=container.get(GraphService),
        history_service=container.get(HistoryService),
    )

    log_with_context(logger, logging.INFO, "API startup completed",
                    services=len(container.get_service_info()['services']))

    yield

    logger.info("API shutting down")
    container.get(DatabaseManager).shutdown()


app = FastAPI(
    title="Pair Liquidity History API",
    description="Graphs and history over the pair liquidity ledger",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET"],
    allow_headers=["*"],
)


@app.exception_handler(UsageError)
async def usage_error_handler(request: Request, exc: UsageError):
    return JSONResponse(status_code=400, content={"message": str(exc)})


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"message": str(exc)})


app.include_router(graph.router, prefix="/graph", tags=["graph"])
app.include_router(history.router, prefix="/history", tags=["history"])


@app.get("/health")
async def health_check():
    return {"status": "healthy"}
