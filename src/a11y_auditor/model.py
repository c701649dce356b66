from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class ParentContext(BaseModel):
    """Short description of the element wrapping a finding's target."""
    model_config = ConfigDict(frozen=True)

    tag: str
    id: Optional[str] = None
    classes: Optional[str] = None


class ElementContext(BaseModel):
    """
    Target descriptor of a finding.

    Holds just enough of the offending element (tag, identifying attributes and
    a truncated text sample) to re-locate it in the template source and to
    describe it in a report.
    """
    model_config = ConfigDict(frozen=True)

    tag: str
    id: Optional[str] = None
    classes: Optional[str] = None
    href: Optional[str] = None
    src: Optional[str] = None
    input_type: Optional[str] = None
    text: str = ""
    parent: Optional[ParentContext] = None
    details: Dict[str, Any] = Field(default_factory=dict)


class Finding(BaseModel):
    """
    A single accessibility defect reported by a rule check.

    Findings are immutable: locating a finding in a source file produces a
    copy through `located()`.
    """
    model_config = ConfigDict(frozen=True)

    rule_id: str
    message: str
    severity: Severity = Severity.ERROR
    element: ElementContext
    file: Optional[str] = None
    line: Optional[int] = None
    remediation: str = ""
    wcag: Optional[str] = None
    page_level: bool = False

    @field_validator("line")
    @classmethod
    def validate_line(cls, v: Optional[int]) -> Optional[int]:
        """Line numbers are 1-based."""
        if v is not None and v < 1:
            raise ValueError("line must be >= 1")
        return v

    @property
    def is_error(self) -> bool:
        return self.severity == Severity.ERROR

    def located(self, file: Optional[str], line: Optional[int]) -> "Finding":
        return self.model_copy(update={"file": file, "line": line})

    def key(self) -> str:
        """Stable identity used to drop repeated findings within one scan run."""
        return self.model_dump_json()


class IgnoreOverride(BaseModel):
    model_config = ConfigDict(frozen=True)

    rule: str
    reason: str = "No reason provided"
    comment: Optional[str] = None


class RuleConfiguration(BaseModel):
    """
    Resolved rule configuration consumed by the RuleEngine.

    `checks` maps rule ids to their enabled state; rules not listed fall back
    to the default declared by the check itself.
    """
    model_config = ConfigDict(frozen=True)

    checks: Dict[str, bool] = Field(default_factory=dict)
    ignored_rules: List[IgnoreOverride] = Field(default_factory=list)

    @field_validator("ignored_rules", mode="before")
    @classmethod
    def parse_ignored_rules(cls, v: Any) -> List[Any]:
        """Accepts bare rule ids next to {rule, reason} mappings."""
        if not v:
            return []
        return [{"rule": item} if isinstance(item, str) else item for item in v]

    def is_enabled(self, rule_id: str, default: bool = True) -> bool:
        return bool(self.checks.get(rule_id, default))

    def is_ignored(self, rule_id: str) -> bool:
        return any(override.rule == rule_id for override in self.ignored_rules)

    def is_active(self, rule_id: str, default: bool = True) -> bool:
        return self.is_enabled(rule_id, default) and not self.is_ignored(rule_id)
