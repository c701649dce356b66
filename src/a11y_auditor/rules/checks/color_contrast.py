from typing import List

from a11y_auditor.dom.core import Document
from a11y_auditor.model import Finding
from ..core import CheckContext, CheckDefinition, check_spec

RULE_ID = "color_contrast"


@check_spec(wcag=["1.4.3"])
def check_contrast(document: Document, context: CheckContext) -> List[Finding]:
    """
    Placeholder for text contrast.

    Real contrast needs computed styles and rendered colours, which a static
    template scan does not have; it always reports nothing.
    """
    return []


DEFINITION = CheckDefinition(
    rule_id=RULE_ID,
    title="Text colour contrast",
    evaluate=check_contrast,
    default_enabled=False
)
