"""HTTP trigger surface for the synchronization jobs."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from . import __version__
from .auth import job_rate_limit, limiter, verify_api_key
from .config import Settings, get_settings
from .jobs import JOB_NAMES, JobDefinition, JobReportGenerator, build_jobs

logger = logging.getLogger(__name__)

app = FastAPI(title="Payouts Sync - Job API", version=__version__)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

_jobs: Optional[Dict[str, JobDefinition]] = None


def get_jobs(settings: Settings = Depends(get_settings)) -> Dict[str, JobDefinition]:
    """Jobs share connectors for the lifetime of the process."""
    global _jobs
    if _jobs is None:
        _jobs = build_jobs(settings)
    return _jobs


class RunJobBody(BaseModel):
    """Request body for a delta run."""
    delta: Optional[datetime] = Field(
        None, description="Process items changed since this time; the configured lookback by default"
    )


class ExtractByIdsBody(BaseModel):
    """Request body for a run restricted to document ids."""
    ids: List[str] = Field(..., min_length=1, description="Marketplace document ids")


def _job(jobs: Dict[str, JobDefinition], job: str) -> JobDefinition:
    definition = jobs.get(job)
    if definition is None:
        raise HTTPException(status_code=404, detail=f"Unknown job '{job}'. Known jobs: {', '.join(JOB_NAMES)}")
    return definition


def _check_format(format: str) -> None:
    if format not in ("json", "text", "detailed_text"):
        raise HTTPException(status_code=400, detail="format must be one of: json, text, detailed_text")


def _render(result, format: str, include_details: bool):
    if format == "json":
        return result.to_full_dict() if include_details else result.to_summary_dict()
    return PlainTextResponse(content=JobReportGenerator(result).render(format), media_type="text/plain")


@app.post("/jobs/{job}/run")
@limiter.limit(job_rate_limit)
def run_job(
    request: Request,
    job: str,
    body: Optional[RunJobBody] = None,
    include_details: bool = Query(default=True, description="Include per-item results"),
    format: str = Query(default="json", description="Output format: json, text, detailed_text"),
    jobs: Dict[str, JobDefinition] = Depends(get_jobs),
    settings: Settings = Depends(get_settings),
    api_key: str = Depends(verify_api_key),
):
    """Run a job once over the items changed since ``delta``."""
    definition = _job(jobs, job)
    _check_format(format)
    delta = body.delta if body and body.delta else None
    if delta is None:
        delta = datetime.now(timezone.utc) - timedelta(minutes=settings.default_lookback_minutes)
    elif delta.tzinfo is None:
        delta = delta.replace(tzinfo=timezone.utc)
    logger.info(f"Running job {job} from the API with delta {delta}")
    return _render(definition.run(delta), format, include_details)


@app.post("/jobs/{job}/extract-by-ids")
@limiter.limit(job_rate_limit)
def run_job_by_ids(
    request: Request,
    job: str,
    body: ExtractByIdsBody,
    include_details: bool = Query(default=True, description="Include per-item results"),
    format: str = Query(default="json", description="Output format: json, text, detailed_text"),
    jobs: Dict[str, JobDefinition] = Depends(get_jobs),
    api_key: str = Depends(verify_api_key),
):
    """Run a document job over the given ids only."""
    definition = _job(jobs, job)
    _check_format(format)
    if not definition.supports_ids:
        raise HTTPException(status_code=400, detail=f"Job '{job}' does not support extraction by ids")
    logger.info(f"Running job {job} from the API for {len(body.ids)} ids")
    return _render(definition.run_by_ids(body.ids), format, include_details)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "service": "payouts-sync", "jobs": JOB_NAMES}
