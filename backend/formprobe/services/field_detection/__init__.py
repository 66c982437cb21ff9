"""
HTML Form Field Detection
=========================

Discovers the logical fields of an HTML form and classifies each one into
a closed vocabulary of data types.

Pipeline Stages:
1. SANITIZE: reduce markup to the <body> content without scripts/styles
2. HEURISTICS: deterministic label/name/type rules (always available)
3. INFERENCE: external text-to-structure service (advisory)
4. RECONCILE: union, prune misdetections, canonicalize addresses,
   refine generic names

Design Principles:
- Closed vocabulary (unknown data types are coerced to Word)
- Heuristics are the safety net for every external failure
- Unique, non-empty field names in every result
"""

from .data_types import DataType, DataTypeCatalog, CATALOG
from .fields import Field, to_camel_case
from .sanitizer import sanitize
from .heuristic_parser import HeuristicFieldParser, parse_fields
from .reconciliation import Reconciler, reconcile
from .name_refiner import NameRefiner, NameRefinementClient, RefinementRequestItem
from .inference_client import FieldInferenceService, FieldInferenceClient
from .errors import (
    ExternalServiceError,
    InferenceError,
    ContentTooLargeError,
    RefinementError
)
from .pipeline import FormAnalysisPipeline, AnalysisResult

__all__ = [
    'FormAnalysisPipeline',
    'AnalysisResult',
    'DataType',
    'DataTypeCatalog',
    'CATALOG',
    'Field',
    'to_camel_case',
    'sanitize',
    'HeuristicFieldParser',
    'parse_fields',
    'Reconciler',
    'reconcile',
    # Collaborators
    'NameRefiner',
    'NameRefinementClient',
    'RefinementRequestItem',
    'FieldInferenceService',
    'FieldInferenceClient',
    # Errors
    'ExternalServiceError',
    'InferenceError',
    'ContentTooLargeError',
    'RefinementError',
]
