# app.py
import logging
import json
import os
from typing import Any, Dict

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from asyncio import Lock

from configurations.config import DEBUG
from agents.completion_agent import complete_prompt
from models.api import UserRequest
from models.transaction import LedgerAccount
from services.ledger import InMemoryLedger
from services.orchestrator import Orchestrator, build_orchestrator


# -----------------------------
# Structured Logging Setup
# -----------------------------
class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        return json.dumps(
            {
                "time": self.formatTime(record, self.datefmt),
                "level": record.levelname,
                "name": record.name,
                "message": record.getMessage(),
                "exception": record.exc_text,
            }
        )


logger = logging.getLogger("concierge_api")
logger.setLevel(logging.INFO)
handler = logging.StreamHandler()
handler.setFormatter(JSONFormatter())
if not logger.handlers:
    logger.addHandler(handler)

# -----------------------------
# FastAPI App
# -----------------------------
app = FastAPI(title="Concierge Bot API", version="1.0")

# -----------------------------
# Orchestrator (Lifecycle managed)
# -----------------------------
orchestrator: Orchestrator | None = None

# -----------------------------
# Metrics
# -----------------------------
metrics_lock = Lock()
request_counters = {
    "total": 0,
    "handled": 0,
    "approval_required": 0,
    "confirmation_required": 0,
    "errors": 0,
}


def default_ledger() -> InMemoryLedger:
    return InMemoryLedger(
        accounts=[
            LedgerAccount(id="checking", name="Checking", type="checking"),
            LedgerAccount(id="savings", name="Savings", type="savings"),
        ]
    )


# -----------------------------
# Failure Envelope
# -----------------------------
@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": {"type": "http_error", "message": str(exc.detail)}},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"[UNHANDLED] path={request.url.path}")
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "type": "internal_error",
                "message": str(exc) if DEBUG else "An unexpected error occurred",
            }
        },
    )


# -----------------------------
# Startup Events
# -----------------------------
@app.on_event("startup")
async def startup():
    global orchestrator
    if orchestrator is None:
        orchestrator = build_orchestrator(complete_prompt=complete_prompt, ledger=default_ledger())
        logger.info("✅ Orchestrator ready")


# -----------------------------
# API Endpoints
# -----------------------------
@app.get("/")
async def root():
    return {"message": "Concierge Bot API is running."}


@app.get("/health")
async def health() -> Dict[str, Any]:
    return {"status": "ok", "orchestrator_ready": orchestrator is not None}


@app.get("/status")
async def status() -> Dict[str, Any]:
    if orchestrator is None:
        raise HTTPException(status_code=503, detail="Orchestrator not ready")
    return orchestrator.status()


@app.get("/metrics")
async def metrics() -> Dict[str, Any]:
    async with metrics_lock:
        return request_counters.copy()


@app.post("/process")
async def process_request(request: UserRequest):
    if orchestrator is None:
        raise HTTPException(status_code=503, detail="Orchestrator not ready")

    async with metrics_lock:
        request_counters["total"] += 1

    response = await orchestrator.handle_user_request(
        request.user_id,
        {"message": request.message, "context": request.context},
    )

    async with metrics_lock:
        if response.get("handled"):
            request_counters["handled"] += 1
        else:
            request_counters["errors"] += 1
        if response.get("requiresApproval"):
            request_counters["approval_required"] += 1
        if response.get("requiresConfirmation"):
            request_counters["confirmation_required"] += 1

    logger.info(
        f"[RESPONSE] user_id={request.user_id}, agent={response.get('agent')}, "
        f"handled={response.get('handled')}, requiresApproval={response.get('requiresApproval')}"
    )
    return response


# -----------------------------
# Entrypoint
# -----------------------------
import uvicorn

if __name__ == "__main__":
    port = int(os.environ.get("PORT", 8000))
    uvicorn.run("API_LAYER.app:app", host="0.0.0.0", port=port, workers=1)
