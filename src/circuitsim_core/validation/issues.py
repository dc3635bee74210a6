# src/circuitsim_core/validation/issues.py
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from .issue_codes import StructuralIssueCode

logger = logging.getLogger(__name__)


class ValidationIssueLevel(Enum):
    """Severity level of a validation issue."""
    ERROR = "ERROR"
    WARNING = "WARNING"
    INFO = "INFO"

    def __str__(self):
        return self.value


@dataclass
class ValidationIssue:
    """
    A single finding about a netlist or an analysis run. ERROR issues block the
    analysis; WARNING issues travel with an otherwise successful result.
    """
    level: ValidationIssueLevel
    code: str
    message: str
    component_id: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        parts = [f"[{self.level.name} - {self.code}]"]
        if self.component_id:
            parts.append(f"Component: {self.component_id}")
        parts.append(f"Message: {self.message}")
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in sorted(self.details.items()))
            parts.append(f"Details: ({details_str})")
        return " ".join(parts)

    @property
    def is_error(self) -> bool:
        return self.level == ValidationIssueLevel.ERROR


def first_error(issues: Iterable[ValidationIssue]) -> Optional[ValidationIssue]:
    return next((i for i in issues if i.is_error), None)


def warnings_of(issues: Iterable[ValidationIssue]) -> List[ValidationIssue]:
    return [i for i in issues if i.level == ValidationIssueLevel.WARNING]


def make_issue(
    level: ValidationIssueLevel,
    code_enum: StructuralIssueCode,
    component_id: Optional[str] = None,
    **kwargs
) -> ValidationIssue:
    """Builds an issue whose message is rendered from the code's template."""
    return ValidationIssue(
        level=level,
        code=code_enum.code,
        message=code_enum.format_message(**kwargs),
        component_id=component_id,
        details=kwargs,
    )
