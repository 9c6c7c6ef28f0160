"""
Field Extraction Module.

Schema-driven extraction of typed records from OCR text: declarative
field specs, the generic engine that runs them, cross-field rules, and
the result shell shared by every document type.

Author: ML Engineering Team
"""

from .schema import Capture, DocumentSchema, FieldKind, FieldSpec, LineItemSpec, Rule
from .engine import EngineOutcome, FieldExtractionEngine, segment_lines
from .extraction_result import (
    ConsistencyWarning,
    ExtractionIssue,
    ExtractionResult,
    FieldCoercionWarning,
    LineItemWarning,
    MissingFieldWarning,
    to_jsonable,
)
from . import rules

__all__ = [
    'Capture',
    'DocumentSchema',
    'FieldKind',
    'FieldSpec',
    'LineItemSpec',
    'Rule',
    'EngineOutcome',
    'FieldExtractionEngine',
    'segment_lines',
    'ConsistencyWarning',
    'ExtractionIssue',
    'ExtractionResult',
    'FieldCoercionWarning',
    'LineItemWarning',
    'MissingFieldWarning',
    'to_jsonable',
    'rules',
]
