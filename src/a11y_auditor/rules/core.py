from typing import Any, Callable, List, Optional, Set

from pydantic import BaseModel, ConfigDict

from a11y_auditor.dom.core import Document, DomNode
from a11y_auditor.model import ElementContext, Finding, ParentContext, Severity


def check_spec(wcag: List[str]):
    """
    Decorator to declare which WCAG success criteria a check function reports on.
    Facilitates auto-discovery by the RuleRegistry.
    """
    def decorator(func):
        func.wcag_refs = wcag
        return func
    return decorator


class CheckContext(BaseModel):
    """
    Where the document under test came from.

    `file` is set for template scans, `url` for live sessions.
    """
    model_config = ConfigDict(frozen=True)

    file: Optional[str] = None
    url: Optional[str] = None
    text_limit: int = 100


# evaluate(document, context) -> findings
CheckFunction = Callable[[Document, CheckContext], List[Finding]]


class CheckDefinition:
    """
    Configuration object binding a rule id to its evaluation function and defaults.

    `page_scope` marks checks whose result is only meaningful for a whole
    composed page (layout plus view plus partials). When pages are composed,
    those checks are evaluated by the PageScanner instead of per file.
    """

    def __init__(
            self,
            rule_id: str,
            title: str,
            evaluate: CheckFunction,
            default_enabled: bool = True,
            page_scope: bool = False,
            wcag: Optional[List[str]] = None
    ):
        self.rule_id = rule_id
        self.title = title
        self.evaluate = evaluate
        self.default_enabled = default_enabled
        self.page_scope = page_scope

        # --- Auto-Discovery of WCAG references ---
        final_refs: Set[str] = set(wcag or [])
        if hasattr(evaluate, "wcag_refs"):
            final_refs.update(evaluate.wcag_refs)
        self.wcag = sorted(final_refs)

    def __repr__(self) -> str:
        return f"CheckDefinition({self.rule_id!r})"


# --- Helpers shared by the checks ---

def css_string(value: str) -> str:
    """
    Quotes a value for use inside an attribute selector.

    Control characters (a newline in an id is valid HTML) are written as CSS
    hex escapes; a raw newline is not allowed inside a selector string.
    """
    parts = []
    for ch in value:
        if ch in ('"', "\\"):
            parts.append("\\" + ch)
        elif ch == "\x00":
            parts.append("\ufffd")
        elif ord(ch) < 0x20 or ord(ch) == 0x7f:
            parts.append(f"\\{ord(ch):x} ")
        else:
            parts.append(ch)
    return '"' + "".join(parts) + '"'


def normalized_text(node: DomNode) -> str:
    return " ".join(node.text.split())


def is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def element_context(node: DomNode, text_limit: int = 100, **details: Any) -> ElementContext:
    """Builds the target descriptor of a finding from a node."""
    parent_ctx = None
    parent = node.parent()
    if parent is not None:
        parent_ctx = ParentContext(
            tag=parent.tag_name,
            id=parent.attribute("id"),
            classes=parent.attribute("class")
        )

    return ElementContext(
        tag=node.tag_name,
        id=node.attribute("id"),
        classes=node.attribute("class"),
        href=node.attribute("href"),
        src=node.attribute("src"),
        input_type=node.attribute("type"),
        text=normalized_text(node)[:text_limit],
        parent=parent_ctx,
        details=details
    )


def page_context(text: str) -> ElementContext:
    """Target descriptor for findings about the page as a whole."""
    return ElementContext(tag="page", text=text)


def finding(
        rule_id: str,
        message: str,
        target: ElementContext,
        context: CheckContext,
        wcag: Optional[str] = None,
        remediation: str = "",
        severity: Severity = Severity.ERROR
) -> Finding:
    return Finding(
        rule_id=rule_id,
        message=message,
        severity=severity,
        element=target,
        file=context.file,
        remediation=remediation,
        wcag=wcag
    )


def heading_level(node: DomNode) -> int:
    """Heading level from the tag name, e.g. 'h3' -> 3."""
    try:
        return int(node.tag_name[1])
    except (ValueError, IndexError, TypeError):
        return 0
