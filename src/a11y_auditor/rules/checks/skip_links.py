from typing import List

from a11y_auditor.dom.core import Document
from a11y_auditor.model import Finding, Severity
from ..core import CheckContext, CheckDefinition, check_spec, finding, page_context

RULE_ID = "skip_links"

SKIP_LINK_SELECTOR = ", ".join([
    'a[href="#main"]',
    'a[href*="main-content" i]',
    'a[href*="maincontent" i]',
    'a[href^="#content"]',
    "a.skip-link",
])

# Blocks repeated on every page that a keyboard user wants to bypass
REPEATED_BLOCK_SELECTOR = 'nav, header, [role="navigation"], [role="banner"]'


def missing_skip_link_finding(context: CheckContext) -> Finding:
    return finding(
        RULE_ID,
        "Page has navigation but no skip link",
        page_context("Page has no skip-to-content link"),
        context,
        wcag="2.4.1",
        remediation=(
            "Add a skip link as the first focusable element of the layout:\n\n"
            "<a href=\"#main-content\" class=\"skip-link\">Skip to main content</a>\n"
            "<main id=\"main-content\">...</main>"
        ),
        severity=Severity.WARNING
    )


@check_spec(wcag=["2.4.1"])
def check_skip_links(document: Document, context: CheckContext) -> List[Finding]:
    if not document.exists(REPEATED_BLOCK_SELECTOR) or document.exists(SKIP_LINK_SELECTOR):
        return []
    return [missing_skip_link_finding(context)]


DEFINITION = CheckDefinition(
    rule_id=RULE_ID,
    title="Page offers a skip link",
    evaluate=check_skip_links,
    page_scope=True
)
