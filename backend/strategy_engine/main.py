"""
Constituency Strategy Engine - FastAPI Main Application.

Provides REST APIs for:
- Constituency listing
- Winning-strategy synthesis (by id, from a partial record, in batches)
- District roll-ups
- LLM narratives over a strategy (cached, with template fallback)
"""
from __future__ import annotations

import logging
from typing import Dict, List, Optional

import structlog
from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from . import __version__
from .config import settings
from .engine import StrategyPipeline
from .engine.district import summarize_district
from .errors import MalformedProfile, UnknownConstituency
from .factory import build_pipeline
from .models import DistrictSummary, Narrative, SourceRecord, WinningStrategy
from .services.narrative import NarrativeGenerator
from .services.narrative_cache import NarrativeCache

_level = logging.getLevelName(settings.log_level.upper())
if not isinstance(_level, int):
    _level = logging.INFO
logging.basicConfig(level=_level)

# Configure logging - simple config compatible with PrintLogger
structlog.configure(
    processors=[
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer()
    ],
    wrapper_class=structlog.make_filtering_bound_logger(_level),
    context_class=dict,
    logger_factory=structlog.PrintLoggerFactory(),
    cache_logger_on_first_use=True,
)
logger = structlog.get_logger()

# Initialize FastAPI
app = FastAPI(
    title="Constituency Strategy Engine",
    description="Deterministic winning-strategy synthesis for assembly constituencies",
    version=__version__,
)


@app.on_event("startup")
async def startup_event():
    """Log configuration on startup."""
    logger.info("Constituency Strategy Engine - Starting Up")
    logger.info("configuration",
                app_env=settings.app_env,
                llm_provider=settings.llm_provider,
                record_store=settings.record_store_url or "local files",
                data_dir=settings.data_dir,
                focus_party=settings.focus_party,
                narrative_cache_ttl=settings.narrative_cache_ttl)


# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Services (lazy loaded)
_pipeline: Optional[StrategyPipeline] = None
_narratives: Optional[NarrativeGenerator] = None
narrative_cache = NarrativeCache(ttl_seconds=settings.narrative_cache_ttl)


def get_pipeline() -> StrategyPipeline:
    global _pipeline
    if _pipeline is None:
        _pipeline = build_pipeline(settings)
    return _pipeline


def get_narrative_generator() -> NarrativeGenerator:
    global _narratives
    if _narratives is None:
        _narratives = NarrativeGenerator()
    return _narratives


# ============= Error Mapping =============

@app.exception_handler(UnknownConstituency)
async def unknown_constituency_handler(request: Request, exc: UnknownConstituency):
    logger.info("unknown_constituency", constituency_id=exc.constituency_id, path=request.url.path)
    return JSONResponse(
        status_code=404,
        content={"error": "unknown_constituency", "constituency_id": exc.constituency_id, "detail": str(exc)},
    )


@app.exception_handler(MalformedProfile)
async def malformed_profile_handler(request: Request, exc: MalformedProfile):
    logger.warning("malformed_profile", constituency_id=exc.constituency_id, field=exc.field, reason=exc.reason)
    return JSONResponse(
        status_code=422,
        content={
            "error": "insufficient_data",
            "constituency_id": exc.constituency_id,
            "field": exc.field,
            "detail": exc.reason,
        },
    )


# ============= Request / Response Models =============

class BatchRequest(BaseModel):
    constituency_ids: List[str] = Field(..., min_length=1)


class NarrativeResponse(BaseModel):
    narrative: Narrative
    cached: bool


# ============= Health Check =============

@app.get("/health")
async def health():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "env": settings.app_env,
        "llm_provider": settings.llm_provider,
        "version": __version__,
    }


# ============= Constituencies =============

@app.get("/constituencies")
def list_constituencies(
    district: Optional[str] = Query(None),
    region: Optional[str] = Query(None),
) -> List[Dict]:
    """List known constituencies with optional filters."""
    registry = get_pipeline().resolver.registry
    entries = registry.in_district(district) if district else registry.all()
    if region:
        entries = [e for e in entries if e.region == region]
    return [
        {
            "constituency_id": e.constituency_id,
            "name": e.name,
            "district": e.district,
            "region": e.region,
            "assembly_number": e.assembly_number,
        }
        for e in entries
    ]


# ============= Strategy =============

@app.get("/strategy/{constituency_id}", response_model=WinningStrategy)
def get_strategy(constituency_id: str):
    """Synthesize the winning strategy for a known constituency."""
    strategy = get_pipeline().synthesize(constituency_id)
    logger.info("strategy_synthesized",
                constituency_id=constituency_id,
                status=strategy.status.value,
                priority_score=strategy.priority_score)
    return strategy


@app.post("/strategy", response_model=WinningStrategy)
def post_strategy(record: SourceRecord):
    """Synthesize a strategy from a caller-supplied partial record."""
    return get_pipeline().synthesize_record(record)


@app.post("/strategy/batch", response_model=List[WinningStrategy])
def batch_strategy(request: BatchRequest):
    """Synthesize several constituencies in parallel; results keep request order."""
    strategies = get_pipeline().synthesize_many(request.constituency_ids)
    logger.info("batch_synthesized", count=len(strategies))
    return strategies


@app.get("/district/{district}", response_model=DistrictSummary)
def get_district(district: str):
    """Rank a district's constituencies and total their resource needs."""
    pipeline = get_pipeline()
    entries = pipeline.resolver.registry.in_district(district)
    if not entries:
        raise HTTPException(status_code=404, detail=f"District not found: {district}")
    strategies = pipeline.synthesize_many([e.constituency_id for e in entries])
    return summarize_district(entries[0].district, strategies)


@app.get("/strategy/{constituency_id}/narrative", response_model=NarrativeResponse)
def get_narrative(constituency_id: str, refresh: bool = Query(False)):
    """Free-text briefing for a strategy; LLM output is cached per constituency."""
    if not refresh:
        cached = narrative_cache.get(constituency_id)
        if cached is not None:
            return NarrativeResponse(narrative=cached, cached=True)

    strategy = get_pipeline().synthesize(constituency_id)
    narrative = get_narrative_generator().generate(strategy)
    # Template fallbacks are not cached so the next call retries the LLM.
    if narrative.source == "llm":
        narrative_cache.put(narrative)
    logger.info("narrative_generated", constituency_id=constituency_id, source=narrative.source)
    return NarrativeResponse(narrative=narrative, cached=False)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
