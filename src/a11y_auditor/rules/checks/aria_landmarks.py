from typing import List

from a11y_auditor.dom.core import Document
from a11y_auditor.model import Finding, Severity
from ..core import CheckContext, CheckDefinition, check_spec, finding, page_context

RULE_ID = "aria_landmarks"

MAIN_LANDMARK_SELECTOR = 'main, [role="main"]'


def missing_main_finding(context: CheckContext) -> Finding:
    return finding(
        RULE_ID,
        "Page missing MAIN landmark",
        page_context("Page has no MAIN landmark"),
        context,
        wcag="1.3.1",
        remediation="Wrap the main content in a <main> tag, usually in the layout:\n\n<main>\n  <%= yield %>\n</main>",
        severity=Severity.WARNING
    )


@check_spec(wcag=["1.3.1"])
def check_main_landmark(document: Document, context: CheckContext) -> List[Finding]:
    if document.exists(MAIN_LANDMARK_SELECTOR):
        return []
    return [missing_main_finding(context)]


DEFINITION = CheckDefinition(
    rule_id=RULE_ID,
    title="Page has a main landmark",
    evaluate=check_main_landmark,
    page_scope=True
)
