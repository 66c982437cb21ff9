"""
Form Analysis Pipeline
======================

Orchestrates one HTML analysis request from input to final field list.

Stages:
1. INPUT: inline markup, or markup fetched from a URL
2. SANITIZE: strip non-semantic elements, keep the <body> content
3. DETECT: inference service (sanitized markup) and heuristic parser
   (raw markup, so <noscript> fallback forms stay visible) run concurrently
4. RECONCILE: union, prune, canonicalize, refine generic names, dedupe

Failure policy:
- The heuristic parser is the safety net. Inference failures and timeouts
  degrade to heuristic-only results with a warning.
- An input the inference service rejects as too large is reported as
  such, never silently degraded.
- Refinement failures keep the unrefined names with a warning.
- Anything unexpected becomes a generic failure result; no exception
  escapes ``analyze_html``.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from formprobe.config import Config
from formprobe.services.html_fetcher import FetchError, HtmlFetcher
from formprobe.utils.rate_limiter import RateLimiter

from .errors import ContentTooLargeError, InferenceError, RefinementError
from .fields import Field
from .heuristic_parser import HeuristicFieldParser
from .inference_client import FieldInferenceClient, FieldInferenceService
from .name_refiner import NameRefinementClient, NameRefiner
from .reconciliation import Reconciler, union_fields
from .sanitizer import sanitize

logger = logging.getLogger(__name__)

GENERIC_ANALYSIS_ERROR = (
    "An error occurred during analysis. The HTML may be malformed, "
    "or the AI service may be temporarily unavailable."
)
CONTENT_TOO_LARGE_ERROR = (
    "The provided HTML file is too large for the AI to process. "
    "Please try with a smaller file or a different URL."
)
NO_FIELDS_ERROR = "Failed to detect any fields from the HTML."
NO_INPUT_ERROR = "No HTML content or URL provided."

INFERENCE_UNAVAILABLE_WARNING = "AI inference is not configured; fields were detected heuristically."
INFERENCE_TIMEOUT_WARNING = "AI inference timed out; fields were detected heuristically."
INFERENCE_FAILED_WARNING = "AI inference failed; fields were detected heuristically."
REFINEMENT_FAILED_WARNING = "Field name refinement was unavailable; generic field names were kept."


@dataclass
class AnalysisResult:
    """Outcome of one analysis request."""
    success: bool
    fields: List[Field] = field(default_factory=list)
    error: Optional[str] = None
    warnings: List[str] = field(default_factory=list)

    @classmethod
    def ok(cls, fields: List[Field], warnings: Optional[List[str]] = None) -> 'AnalysisResult':
        return cls(success=True, fields=list(fields), warnings=list(warnings or []))

    @classmethod
    def fail(cls, error: str, warnings: Optional[List[str]] = None) -> 'AnalysisResult':
        return cls(success=False, error=error, warnings=list(warnings or []))

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            'success': self.success,
            'fields': [f.to_dict() for f in self.fields],
            'warnings': list(self.warnings),
        }
        if self.error:
            data['error'] = self.error
        return data


class FormAnalysisPipeline:
    """
    Detects the logical fields of an HTML form.

    Collaborators are injected so the pipeline can run with stubs; use
    ``from_config`` for the configured production clients.
    """

    def __init__(
        self,
        inference_service: Optional[FieldInferenceService] = None,
        refiner: Optional[NameRefiner] = None,
        fetcher: Optional[HtmlFetcher] = None,
        parser: Optional[HeuristicFieldParser] = None,
        inference_timeout: Optional[float] = None,
        refinement_timeout: Optional[float] = None
    ):
        """
        Initialize the pipeline.

        Args:
            inference_service: Field inference collaborator (None = heuristics only)
            refiner: Name refinement collaborator (None = keep generic names)
            fetcher: Remote document fetcher
            parser: Heuristic field parser
            inference_timeout: Seconds allowed for inference
            refinement_timeout: Seconds allowed for reconciliation incl. refinement
        """
        self.inference_service = inference_service
        self.refiner = refiner
        self.fetcher = fetcher or HtmlFetcher()
        self.parser = parser or HeuristicFieldParser()
        self.inference_timeout = inference_timeout or Config.INFERENCE_TIMEOUT_SECONDS
        self.refinement_timeout = refinement_timeout or Config.REFINEMENT_TIMEOUT_SECONDS

        logger.info(
            f"Form analysis pipeline initialized: "
            f"inference={'on' if inference_service else 'off'}, "
            f"refinement={'on' if refiner else 'off'}"
        )

    @classmethod
    def from_config(cls, rate_limiter: Optional[RateLimiter] = None) -> 'FormAnalysisPipeline':
        """Build a pipeline with the external clients configured in Config."""
        if not Config.has_inference_credentials():
            logger.warning("No inference credentials configured; running heuristic detection only")
            return cls()

        return cls(
            inference_service=FieldInferenceClient(rate_limiter=rate_limiter),
            refiner=NameRefinementClient(rate_limiter=rate_limiter)
        )

    async def analyze_html(
        self,
        html_content: Optional[str] = None,
        url: Optional[str] = None
    ) -> AnalysisResult:
        """
        Analyze inline markup or the document at ``url``.

        When both are given the URL wins. Never raises.
        """
        try:
            return await self._analyze(html_content, url)
        except Exception as e:
            logger.error(f"HTML analysis failed: {e}", exc_info=True)
            return AnalysisResult.fail(GENERIC_ANALYSIS_ERROR)

    async def _analyze(self, html_content: Optional[str], url: Optional[str]) -> AnalysisResult:
        warnings: List[str] = []

        content = html_content
        if url:
            try:
                content = await asyncio.to_thread(self.fetcher.fetch, url)
            except FetchError as e:
                logger.warning(f"Could not fetch {url}: {e}")
                return AnalysisResult.fail(str(e))

        if not content:
            return AnalysisResult.fail(NO_INPUT_ERROR)

        sanitized = sanitize(content)
        logger.info(f"Sanitized markup: {len(content)} -> {len(sanitized)} characters")

        try:
            ai_fields, heuristic_fields = await asyncio.gather(
                self._infer(sanitized, warnings),
                asyncio.to_thread(self.parser.parse, content)
            )
        except ContentTooLargeError as e:
            logger.warning(f"Inference rejected the markup as too large: {e}")
            return AnalysisResult.fail(CONTENT_TOO_LARGE_ERROR, warnings)

        logger.info(f"Detected {len(ai_fields)} AI field(s), {len(heuristic_fields)} heuristic field(s)")

        if not union_fields(ai_fields, heuristic_fields):
            return AnalysisResult.fail(NO_FIELDS_ERROR, warnings)

        fields = await self._reconcile(ai_fields, heuristic_fields, url, warnings)
        return AnalysisResult.ok(fields, warnings)

    async def _infer(self, sanitized: str, warnings: List[str]) -> List[Field]:
        """Run inference; degrade to [] on anything but a size-limit error."""
        if self.inference_service is None:
            warnings.append(INFERENCE_UNAVAILABLE_WARNING)
            return []

        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self.inference_service.infer_fields, sanitized),
                timeout=self.inference_timeout
            )
        except ContentTooLargeError:
            raise
        except asyncio.TimeoutError:
            logger.warning(f"Inference timed out after {self.inference_timeout}s")
            warnings.append(INFERENCE_TIMEOUT_WARNING)
        except InferenceError as e:
            logger.warning(f"Inference failed: {e}")
            warnings.append(INFERENCE_FAILED_WARNING)
        except Exception as e:
            logger.error(f"Unexpected inference error: {e}", exc_info=True)
            warnings.append(INFERENCE_FAILED_WARNING)
        return []

    async def _reconcile(
        self,
        ai_fields: List[Field],
        heuristic_fields: List[Field],
        url: Optional[str],
        warnings: List[str]
    ) -> List[Field]:
        if self.refiner is None:
            return Reconciler().reconcile(ai_fields, heuristic_fields, url)

        try:
            return await asyncio.wait_for(
                asyncio.to_thread(Reconciler(self.refiner).reconcile, ai_fields, heuristic_fields, url),
                timeout=self.refinement_timeout
            )
        except (RefinementError, asyncio.TimeoutError) as e:
            logger.warning(f"Name refinement unavailable, keeping generic names: {e!r}")
            warnings.append(REFINEMENT_FAILED_WARNING)
            return Reconciler().reconcile(ai_fields, heuristic_fields, url)
