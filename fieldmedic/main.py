"""
FieldMedic - FastAPI Application Entry Point

Local field-note capture and protocol Q&A for prehospital care.
"""

import logging
import os
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from fieldmedic import __version__
from fieldmedic.calculators import (
    gtt_per_minute,
    ml_per_hour,
    weight_based_ml_per_hour,
)
from fieldmedic.observability.metrics import (
    get_metrics_text,
    record_mark,
    record_utterance,
)
from fieldmedic.pipelines.protocol_qa import ProtocolQAPipeline
from fieldmedic.security.input_validation import (
    GttRequest,
    InputValidator,
    MarkRequest,
    MlPerHourRequest,
    ProtocolRequest,
    QueryRequest,
    UtteranceRequest,
    WeightBasedRequest,
)
from fieldmedic.session.call_log import QUICK_MARKS, CallLog

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

CORS_ORIGINS = os.environ.get(
    "CORS_ORIGINS", "http://localhost:3000,http://localhost:8000"
).split(",")

TIMELINE_LIMIT = 20


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup/shutdown events."""
    logger.info("Starting FieldMedic API v%s", __version__)
    app.state.call_log = CallLog()
    app.state.protocol_qa = ProtocolQAPipeline()

    yield

    logger.info("Shutting down FieldMedic API")


# Create FastAPI application
app = FastAPI(
    title="FieldMedic",
    description="Offline field-note capture and protocol Q&A",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in CORS_ORIGINS if origin.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _call_log() -> CallLog:
    return app.state.call_log


def _protocol_qa() -> ProtocolQAPipeline:
    return app.state.protocol_qa


def _require_safe(text: str) -> None:
    if not InputValidator().is_safe(text):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Input contains potentially unsafe content",
        )


# ============================================
# Health Check Endpoints
# ============================================


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, Any]:
    """Health check endpoint."""
    return {
        "status": "healthy",
        "version": __version__,
        "service": "fieldmedic-api",
    }


@app.get("/metrics", tags=["Health"], response_class=PlainTextResponse)
async def metrics() -> str:
    """Prometheus metrics."""
    return get_metrics_text()


# ============================================
# Call Log Routes
# ============================================


@app.post("/api/v1/utterances", tags=["Call"], status_code=status.HTTP_201_CREATED)
async def commit_utterance(body: UtteranceRequest) -> dict[str, Any]:
    """
    Commit one finalized utterance.

    Appends it to the timeline and records any vitals and medication the
    extractor finds, all stamped with the utterance's capture time.
    """
    _require_safe(body.text)
    # UtteranceRequest rejects blank text, so commit always records
    event, result = _call_log().commit_utterance(body.text, body.captured_at)
    record_utterance(
        vitals=len(result.vitals),
        medications=0 if result.medication is None else 1,
    )
    return {
        "event": event.model_dump(mode="json"),
        "vitals": [v.model_dump(mode="json") for v in result.vitals],
        "medication": (
            result.medication.model_dump(mode="json") if result.medication else None
        ),
    }


@app.get("/api/v1/marks/quick", tags=["Call"])
async def quick_marks() -> dict[str, Any]:
    """Labels offered as one-tap marks."""
    return {"labels": list(QUICK_MARKS)}


@app.post("/api/v1/marks", tags=["Call"], status_code=status.HTTP_201_CREATED)
async def add_mark(body: MarkRequest) -> dict[str, Any]:
    """Append a quick mark ("ROSC", "On scene", ...) to the timeline."""
    _require_safe(body.label)
    # MarkRequest rejects blank labels, so mark always records
    event = _call_log().mark(body.label, body.captured_at)
    record_mark()
    return {"event": event.model_dump(mode="json")}


@app.get("/api/v1/timeline", tags=["Call"])
async def timeline(limit: int = TIMELINE_LIMIT) -> dict[str, Any]:
    """Newest-first timeline events."""
    if limit < 1:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="limit must be positive",
        )
    events = _call_log().events()
    return {
        "events": [e.model_dump(mode="json") for e in events[:limit]],
        "total": len(events),
    }


@app.get("/api/v1/vitals", tags=["Call"])
async def list_vitals() -> dict[str, Any]:
    """Newest-first vital records."""
    return {"vitals": [v.model_dump(mode="json") for v in _call_log().vitals()]}


@app.get("/api/v1/medications", tags=["Call"])
async def list_medications() -> dict[str, Any]:
    """Newest-first medication records."""
    return {
        "medications": [m.model_dump(mode="json") for m in _call_log().medications()]
    }


@app.get("/api/v1/summary", tags=["Call"], response_class=PlainTextResponse)
async def export_summary() -> str:
    """Plain-text run summary for sharing."""
    return _call_log().export_summary()


@app.delete("/api/v1/session", tags=["Call"])
async def new_session() -> dict[str, Any]:
    """Start a new call, discarding the current log."""
    _call_log().clear()
    return {"status": "cleared"}


# ============================================
# Protocol Q&A Routes
# ============================================


@app.put("/api/v1/protocol", tags=["Protocol"])
async def load_protocol(body: ProtocolRequest) -> dict[str, Any]:
    """Replace the protocol text and rebuild the local index."""
    snapshot = _protocol_qa().load(body.text)
    return {
        "chunks": len(snapshot.chunks),
        "hints": [c.hint for c in snapshot.chunks if c.hint],
        "terms": len(snapshot.index.inverse_document_frequency),
    }


@app.post("/api/v1/protocol/query", tags=["Protocol"])
async def query_protocol(body: QueryRequest) -> dict[str, Any]:
    """
    Ask a question of the loaded protocol text.

    Returns ranked chunks with supporting sentences, a composed top-line
    answer, and formatted citation lines. No match is an empty result,
    not an error.
    """
    _require_safe(body.query)
    result = _protocol_qa().run(body.query, max_results=body.max_results)
    return result.to_dict()


# ============================================
# Calculator Routes
# ============================================


@app.post("/api/v1/calculators/gtt-per-minute", tags=["Calculators"])
async def calc_gtt_per_minute(body: GttRequest) -> dict[str, Any]:
    """Gravity drip rate."""
    return {
        "result": gtt_per_minute(body.total_ml, body.minutes, body.drop_factor),
        "unit": "gtt/min",
    }


@app.post("/api/v1/calculators/ml-per-hour", tags=["Calculators"])
async def calc_ml_per_hour(body: MlPerHourRequest) -> dict[str, Any]:
    """Pump rate for a mg/hr order."""
    return {
        "result": ml_per_hour(body.dose_mg_per_hour, body.concentration_mg_per_ml),
        "unit": "mL/hr",
    }


@app.post("/api/v1/calculators/weight-based-ml-per-hour", tags=["Calculators"])
async def calc_weight_based(body: WeightBasedRequest) -> dict[str, Any]:
    """Pump rate for a mcg/kg/min order."""
    return {
        "result": weight_based_ml_per_hour(
            body.mcg_per_kg_per_min, body.weight_kg, body.concentration_mg_per_ml
        ),
        "unit": "mL/hr",
    }


# ============================================
# Error Handlers
# ============================================


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler for unhandled errors."""
    logger.exception("Unhandled exception: %s", exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal server error",
            "detail": str(exc) if app.debug else "An unexpected error occurred",
        },
    )


# ============================================
# Main Entry Point
# ============================================


def main():
    """Run the application using uvicorn."""
    import uvicorn

    uvicorn.run(
        "fieldmedic.main:app",
        host="0.0.0.0",
        port=8000,
        reload=False,
    )


if __name__ == "__main__":
    main()
