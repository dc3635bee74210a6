# src/circuitsim_core/validation/__init__.py
from .issues import ValidationIssue, ValidationIssueLevel, first_error, make_issue, warnings_of
from .issue_codes import StructuralIssueCode
from .structural_validator import StructuralValidator

__all__ = [
    "ValidationIssue", "ValidationIssueLevel", "first_error", "make_issue", "warnings_of",
    "StructuralIssueCode",
    "StructuralValidator",
]
