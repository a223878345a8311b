"""Orders FastAPI application.

Web server that processes order commands synchronously via HTTP. Each
request is wrapped in the orders domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV controls which config overlay is applied:
#   - "test"       → event_processing = "sync"  (notifications fire after commit, in-process)
#   - "production" → event_processing = "async" (notifications fire via Engine)
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from orders.domain import orders  # noqa: E402
from orders.exceptions import ConflictError
from orders.utils.logging import add_context, clear_context
from protean.integrations.fastapi import register_exception_handlers

orders.init()

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Orders API",
    description="B2B marketplace — order lifecycle and fulfillment tracking",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the orders domain context and bind request details to the log context."""
    add_context(method=request.method, path=request.url.path)
    try:
        with orders.domain_context():
            response = await call_next(request)
        return response
    finally:
        clear_context()


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from orders.api import (  # noqa: E402
    conflict_error_handler,
    inventory_router,
    order_router,
    service_order_router,
)

app.include_router(order_router)
app.include_router(service_order_router)
app.include_router(inventory_router)

register_exception_handlers(app)
app.add_exception_handler(ConflictError, conflict_error_handler)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(
        content={
            "status": "ok",
            "domains": {
                "orders": {"name": orders.name},
            },
        }
    )
