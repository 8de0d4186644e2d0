import logging
import os
from contextlib import asynccontextmanager
from fastapi import FastAPI

from .routes.sql_retention import router as sql_retention_router


log = logging.getLogger("sqlretention.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure logging and report missing Azure settings on startup."""
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    if not os.environ.get("AZURE_SUBSCRIPTION_ID"):
        log.warning("AZURE_SUBSCRIPTION_ID not set; policy calls will fail until it is configured")
    yield


app = FastAPI(title="SQL Retention Policy API", version="0.1.0", lifespan=lifespan)
app.include_router(sql_retention_router)


@app.get("/api/health")
def health():
    """Minimal liveness endpoint for the orchestration host."""
    return {"status": "ok"}


@app.get("/api/azure/health")
def azure_health():
    """Report whether the settings needed to build a SQL client are present.

    Returns:
        { status: "ok" | "misconfigured", details?: str, broker_configured?: bool }

    The credential itself is chosen per request: X-Credential-Id selects the
    Auth service broker, otherwise DefaultAzureCredential is used.
    """
    if not os.environ.get("AZURE_SUBSCRIPTION_ID"):
        return {"status": "misconfigured", "details": "AZURE_SUBSCRIPTION_ID not set"}
    return {"status": "ok", "broker_configured": bool(os.environ.get("SERVICE_SECRET"))}
