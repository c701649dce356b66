from typing import List

from a11y_auditor.dom.core import Document
from a11y_auditor.model import Finding
from ..core import CheckContext, CheckDefinition, check_spec, css_string, element_context, finding, is_blank

RULE_ID = "form_labels"

FIELD_SELECTOR = ", ".join([
    'input:not([type])',
    'input[type="text"]',
    'input[type="email"]',
    'input[type="password"]',
    'input[type="number"]',
    'input[type="tel"]',
    'input[type="url"]',
    'input[type="search"]',
    'input[type="date"]',
    'input[type="time"]',
    'input[type="datetime-local"]',
    'textarea',
    'select',
])


@check_spec(wcag=["1.3.1"])
def check_form_labels(document: Document, context: CheckContext) -> List[Finding]:
    """
    Rule: every form field with an id needs a programmatic label.

    Satisfied by a <label for="id">, a non-empty aria-label or a non-empty
    aria-labelledby. Fields without an id cannot be matched to a label and
    are skipped.
    """
    results = []

    for field in document.query(FIELD_SELECTOR):
        field_id = field.attribute("id")
        if is_blank(field_id):
            continue

        if document.exists(f"label[for={css_string(field_id)}]"):
            continue
        if not is_blank(field.attribute("aria-label")) or not is_blank(field.attribute("aria-labelledby")):
            continue

        results.append(finding(
            RULE_ID,
            "Form input missing label",
            element_context(field, context.text_limit),
            context,
            wcag="1.3.1",
            remediation=(
                "Choose ONE of these solutions:\n\n"
                f"1. Add a label: <%= label_tag :{field_id}, \"Field name\" %>\n"
                f"2. Use a wrapping <label for=\"{field_id}\"> element\n"
                "3. Add aria-label: <%= text_field_tag :name, nil, aria: { label: \"Field name\" } %>"
            )
        ))

    return results


DEFINITION = CheckDefinition(
    rule_id=RULE_ID,
    title="Form inputs have labels",
    evaluate=check_form_labels
)
