"""Decision audit FastAPI application."""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from dmn_audit.api.decision_executions import router as decision_executions_router
from dmn_audit.api.health import router as health_router
from dmn_audit.api.history_jobs import router as history_jobs_router
from dmn_audit.config import settings

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="DMN Audit - Decision Execution Audit Trail",
    description="Stores decision execution audits and recovers stalled history jobs",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_router, tags=["Health"])
app.include_router(decision_executions_router, prefix="/v1", tags=["Decision executions"])
app.include_router(history_jobs_router, prefix="/v1/admin", tags=["Admin"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {"service": "dmn-audit", "version": "0.1.0", "docs": "/docs"}
