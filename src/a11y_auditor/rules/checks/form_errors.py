from typing import List

from a11y_auditor.dom.core import Document, DomNode
from a11y_auditor.model import Finding
from ..core import CheckContext, CheckDefinition, check_spec, css_string, element_context, finding, is_blank

RULE_ID = "form_errors"

INVALID_FIELD_SELECTOR = ", ".join([
    ".field_with_errors input",
    ".field_with_errors textarea",
    ".field_with_errors select",
    ".is-invalid",
    '[aria-invalid="true"]',
])


def _has_error_message(document: Document, field: DomNode, field_id: str) -> bool:
    if not is_blank(field.attribute("aria-describedby")):
        return True
    quoted = css_string(field_id)
    return document.exists(", ".join([
        f"[aria-describedby*={quoted}]",
        f"label[for={quoted}] + .error",
        f"label[for={quoted}] + .invalid-feedback",
    ]))


@check_spec(wcag=["3.3.1"])
def check_error_association(document: Document, context: CheckContext) -> List[Finding]:
    results = []
    for field in document.query(INVALID_FIELD_SELECTOR):
        field_id = field.attribute("id")
        if is_blank(field_id):
            continue
        if _has_error_message(document, field, field_id):
            continue
        results.append(finding(
            RULE_ID,
            "Form input error message not associated",
            element_context(field, context.text_limit),
            context,
            wcag="3.3.1",
            remediation=(
                "Associate the error message with the input using aria-describedby:\n\n"
                f"<input id=\"{field_id}\" aria-invalid=\"true\" aria-describedby=\"{field_id}_error\">\n"
                f"<span id=\"{field_id}_error\" class=\"error\">...</span>"
            )
        ))
    return results


DEFINITION = CheckDefinition(
    rule_id=RULE_ID,
    title="Form errors are associated with their inputs",
    evaluate=check_error_association
)
