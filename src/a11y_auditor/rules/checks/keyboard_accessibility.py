from typing import List

from a11y_auditor.dom.core import Document
from a11y_auditor.model import Finding
from ..core import CheckContext, CheckDefinition, check_spec, element_context, finding

RULE_ID = "keyboard_accessibility"

DIALOG_SELECTOR = '[role="dialog"], [role="alertdialog"]'
FOCUSABLE_SELECTOR = 'button, a, input, textarea, select, [tabindex]:not([tabindex="-1"])'


@check_spec(wcag=["2.1.1"])
def check_dialog_focus(document: Document, context: CheckContext) -> List[Finding]:
    results = []
    for dialog in document.query(DIALOG_SELECTOR):
        if dialog.query(FOCUSABLE_SELECTOR):
            continue
        results.append(finding(
            RULE_ID,
            "Modal dialog has no focusable elements",
            element_context(dialog, context.text_limit),
            context,
            wcag="2.1.1",
            remediation="Add focusable elements to the modal (buttons, links, inputs), at least a close button."
        ))
    return results


DEFINITION = CheckDefinition(
    rule_id=RULE_ID,
    title="Dialogs are keyboard accessible",
    evaluate=check_dialog_focus
)
