"""
Pydantic models for API request/response schemas.
"""
from typing import Optional, List, Dict
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime


class RateLimitStatus(BaseModel):
    """Rate limit status response model."""
    total_calls: int
    max_calls: int
    remaining_calls: int
    calls_by_service: Dict[str, int]


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str
    timestamp: datetime
    inference_configured: bool = False


class AnalyzeHtmlRequest(BaseModel):
    """Request model for HTML form analysis. Give markup or a URL."""
    html_content: Optional[str] = Field(None, description="Raw HTML of a page containing a form")
    url: Optional[str] = Field(None, description="Address of a page to fetch and analyze")


class ParseHtmlRequest(BaseModel):
    """Request model for heuristic-only parsing."""
    html_content: str = Field(..., description="Raw HTML of a page containing a form")


class DetectedField(BaseModel):
    """A detected form field, in the wire format shared with data generation."""
    model_config = ConfigDict(populate_by_name=True)

    field_name: str = Field(..., alias="fieldName", description="camelCase field identifier")
    data_type: str = Field(..., alias="dataType", description="One of the closed data type values")
    label: Optional[str] = Field(None, description="Visible label text, when known")


class AnalyzeHtmlResponse(BaseModel):
    """Response model for HTML form analysis."""
    success: bool
    fields: List[DetectedField] = Field(default_factory=list)
    error: Optional[str] = None
    warnings: List[str] = Field(default_factory=list)


class DataTypesResponse(BaseModel):
    """The closed data type vocabulary, grouped by category."""
    total: int
    categories: Dict[str, List[str]]
