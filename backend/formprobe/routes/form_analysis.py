"""
Form Analysis API Routes
========================

REST API endpoints for HTML form field detection.

Endpoints:
- POST /api/v1/forms/analyze-html - Detect fields (inference + heuristics)
- POST /api/v1/forms/parse-html - Detect fields with heuristics only
- GET /api/v1/forms/data-types - Get the closed data type vocabulary
"""

import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException

from formprobe.models import (
    AnalyzeHtmlRequest, AnalyzeHtmlResponse, DataTypesResponse,
    DetectedField, ParseHtmlRequest
)
from formprobe.services.field_detection import (
    CATALOG, FormAnalysisPipeline, AnalysisResult, parse_fields
)
from formprobe.services.field_detection.pipeline import GENERIC_ANALYSIS_ERROR, NO_FIELDS_ERROR
from formprobe.utils.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/forms", tags=["Form Analysis"])


# ============================================================================
# Pipeline Singleton
# ============================================================================

_pipeline_instance: Optional[FormAnalysisPipeline] = None
_rate_limiter: Optional[RateLimiter] = None


def set_rate_limiter(rate_limiter: RateLimiter):
    """Share the application's rate limiter with the pipeline clients."""
    global _rate_limiter
    _rate_limiter = rate_limiter


def get_pipeline() -> FormAnalysisPipeline:
    """Get or create the pipeline instance."""
    global _pipeline_instance

    if _pipeline_instance is None:
        _pipeline_instance = FormAnalysisPipeline.from_config(rate_limiter=_rate_limiter)
        logger.info("Initialized FormAnalysisPipeline singleton")

    return _pipeline_instance


def _to_response(result: AnalysisResult) -> AnalyzeHtmlResponse:
    return AnalyzeHtmlResponse(
        success=result.success,
        fields=[DetectedField(**f.to_dict()) for f in result.fields],
        error=result.error,
        warnings=result.warnings
    )


# ============================================================================
# API Endpoints
# ============================================================================

@router.post("/analyze-html", response_model=AnalyzeHtmlResponse, response_model_exclude_none=True)
async def analyze_html(
    request: AnalyzeHtmlRequest,
    pipeline: FormAnalysisPipeline = Depends(get_pipeline)
) -> AnalyzeHtmlResponse:
    """
    Detect the fields of an HTML form.

    The inference service reads the sanitized markup while the heuristic
    parser reads the raw markup, concurrently; both candidate lists are reconciled
    into one list of uniquely named, typed fields. When both markup and
    a URL are given, the URL is fetched and analyzed.
    """
    try:
        result = await pipeline.analyze_html(html_content=request.html_content, url=request.url)
    except Exception as e:
        logger.error(f"Analysis error: {e}", exc_info=True)
        return AnalyzeHtmlResponse(success=False, error=GENERIC_ANALYSIS_ERROR)

    if result.success:
        logger.info(f"Analysis detected {len(result.fields)} field(s)")
    else:
        logger.warning(f"Analysis failed: {result.error}")
    return _to_response(result)


@router.post("/parse-html", response_model=AnalyzeHtmlResponse, response_model_exclude_none=True)
async def parse_html(request: ParseHtmlRequest) -> AnalyzeHtmlResponse:
    """
    Detect fields with the heuristic parser only.

    No external service is called.
    """
    if not request.html_content.strip():
        raise HTTPException(status_code=400, detail="html_content must not be empty")

    fields = parse_fields(request.html_content)
    if not fields:
        return _to_response(AnalysisResult.fail(NO_FIELDS_ERROR))
    return _to_response(AnalysisResult.ok(fields))


@router.get("/data-types", response_model=DataTypesResponse)
async def get_data_types() -> DataTypesResponse:
    """
    Get the closed vocabulary of field data types.

    Useful for:
    - Building data type pickers in a UI
    - Validating edited field lists before data generation
    """
    return DataTypesResponse(
        total=len(CATALOG.values),
        categories=CATALOG.groups
    )
