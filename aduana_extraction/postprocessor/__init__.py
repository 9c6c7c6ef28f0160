"""
Post-Processor Module.

Normalization and validation of raw field values captured from OCR text.

Author: ML Engineering Team
"""

from .normalizers import (
    fold_text,
    clean_text,
    DateNormalizer,
    AmountNormalizer,
    Money,
    RutNormalizer,
    ContainerNormalizer,
)
from .validators import (
    rut_check_digit,
    container_check_digit,
    RutValidator,
    ContainerValidator,
    DateValidator,
    AmountValidator,
    FieldValidator,
)

__all__ = [
    'fold_text',
    'clean_text',
    'DateNormalizer',
    'AmountNormalizer',
    'Money',
    'RutNormalizer',
    'ContainerNormalizer',
    'rut_check_digit',
    'container_check_digit',
    'RutValidator',
    'ContainerValidator',
    'DateValidator',
    'AmountValidator',
    'FieldValidator',
]
