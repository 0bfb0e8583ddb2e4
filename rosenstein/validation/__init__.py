"""
Validation Module

Validates the manifest and observations before estimation.

Exports:
    - validate_manifest_paths: Check manifest input/output paths
    - validate_observations: Check observations schema and data quality
    - ValidationError: Raised when input validation fails
    - InputValidationReport: Collected errors and warnings
"""

from .input_validation import (
    validate_manifest_paths,
    validate_observations,
    ValidationError,
    InputValidationReport,
)

__all__ = [
    'validate_manifest_paths',
    'validate_observations',
    'ValidationError',
    'InputValidationReport',
]
