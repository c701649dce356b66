from typing import List

from a11y_auditor.dom.core import Document, DomNode
from a11y_auditor.model import Finding
from ..core import CheckContext, CheckDefinition, check_spec, element_context, finding, is_blank, normalized_text

RULE_ID = "interactive_elements"

INTERACTIVE_SELECTOR = 'button, a[href], [role="button"], [role="link"]'
HEADING_SELECTOR = "h1, h2, h3, h4, h5, h6"


def has_accessible_name(node: DomNode) -> bool:
    """Text, aria-label, aria-labelledby, title, or a wrapped image with alt text."""
    if normalized_text(node):
        return True
    for attr in ("aria-label", "aria-labelledby", "title"):
        if not is_blank(node.attribute(attr)):
            return True
    return any(not is_blank(img.attribute("alt")) for img in node.query("img"))


def _is_button(node: DomNode) -> bool:
    return node.tag_name == "button" or node.attribute("role") == "button"


@check_spec(wcag=["2.4.4", "4.1.2"])
def check_accessible_names(document: Document, context: CheckContext) -> List[Finding]:
    results = []

    for node in document.query(INTERACTIVE_SELECTOR):
        # Headings inside buttons break both the button name and the outline
        if _is_button(node):
            for heading in node.query(HEADING_SELECTOR):
                heading_text = normalized_text(heading)
                results.append(finding(
                    RULE_ID,
                    f"Button contains {heading.tag_name.upper()} heading - headings should not be nested inside buttons",
                    element_context(node, context.text_limit, nested_heading=heading.tag_name, heading_text=heading_text),
                    context,
                    wcag="4.1.2",
                    remediation=(
                        "Remove the heading from inside the button. Use plain text or aria-label instead:\n\n"
                        f"<button aria-label=\"{heading_text}\">{heading_text}</button>"
                    )
                ))

        if has_accessible_name(node):
            continue

        tag = node.tag_name
        if tag == "a":
            remediation = (
                "Add visible link text (<%= link_to \"Descriptive text\", path %>) or, for icon-only "
                "links, an aria-label: <%= link_to path, aria: { label: \"Action\" } do %>"
            )
        else:
            remediation = (
                "Add visible button text (<button>Save</button>) or, for icon-only buttons, "
                "an aria-label: <button aria-label=\"Save\">"
            )
        results.append(finding(
            RULE_ID,
            f"{tag.capitalize()} missing accessible name",
            element_context(node, context.text_limit),
            context,
            wcag="2.4.4" if tag == "a" else "4.1.2",
            remediation=remediation
        ))

    return results


DEFINITION = CheckDefinition(
    rule_id=RULE_ID,
    title="Interactive elements have accessible names",
    evaluate=check_accessible_names
)
