# src/circuitsim_core/parser/exceptions.py
"""
Diagnosable exceptions for loading a circuit snapshot.

`ParsingError` covers file-level and syntax problems (missing file, invalid YAML,
a value that is not a valid quantity); `SchemaValidationError` covers documents
that load fine but do not match the snapshot schema. Both map onto
`ErrorKind.CONFIGURATION`, since the fix is always in the user's input.
"""
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from ..errors import DiagnosableError, ErrorKind, format_diagnostic_report


class BaseParsingError(DiagnosableError):
    """Common base of every snapshot loading error."""
    error_kind = ErrorKind.CONFIGURATION

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Generic Parsing Error",
            details=str(self),
            suggestion="Please check the format and content of the circuit snapshot.",
            context={}
        )


@dataclass()
class ParsingError(BaseParsingError):
    """
    A snapshot that cannot be read or interpreted: unreadable file, invalid YAML,
    a non-mapping root, or a value that is not a valid quantity for its component.
    """
    details: str
    file_path: Optional[Path] = None
    component_id: Optional[str] = None

    def __str__(self):
        where = f"file '{self.file_path}'" if self.file_path is not None else "circuit snapshot"
        return f"Parsing error in {where}: {self.details}"

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Snapshot Parsing Error",
            details=self.details,
            suggestion="Ensure the file exists and contains valid YAML, and that every value carries a unit "
                       "compatible with its component (e.g. '1 kohm', '100 uF', '60 Hz').",
            context={'source_file': self.file_path, 'component': self.component_id}
        )


@dataclass()
class SchemaValidationError(BaseParsingError):
    """
    Raised when a snapshot does not conform to the expected structure (missing
    keys, unknown component kinds, malformed wire endpoints, duplicate ids).
    """
    errors: Dict[str, Any]
    file_path: Optional[Path] = None

    def _error_lines(self, prefix: str):
        return [
            f"  - {prefix} '{field}': {messages[0] if isinstance(messages, list) and messages else messages}"
            for field, messages in sorted(self.errors.items(), key=lambda kv: str(kv[0]))
        ]

    def __str__(self):
        where = f"file '{self.file_path}'" if self.file_path is not None else "circuit snapshot"
        return f"Schema validation failed for {where}:\n" + "\n".join(self._error_lines("In field"))

    def get_diagnostic_report(self) -> str:
        details = (
            "The structure of the snapshot does not conform to the required schema.\n"
            f"See details for {len(self.errors)} issue(s) below:\n\n" + "\n".join(self._error_lines("Field"))
        )
        return format_diagnostic_report(
            error_type="Snapshot Schema Validation Error",
            details=details,
            suggestion="Correct the listed fields. Every component needs an 'id' and a known 'kind'; every wire "
                       "needs 'from' and 'to' endpoints written as 'componentId:portId'.",
            context={'source_file': self.file_path}
        )
