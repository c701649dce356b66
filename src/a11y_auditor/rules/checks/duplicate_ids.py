from typing import Dict, List, Optional

from a11y_auditor.dom.core import Document, DomNode
from a11y_auditor.extract.helpers import PLACEHOLDER
from a11y_auditor.model import Finding
from ..core import CheckContext, CheckDefinition, check_spec, element_context, finding, is_blank

RULE_ID = "duplicate_ids"


def comparable_id(node: DomNode) -> Optional[str]:
    """
    The node's id, or None when it cannot take part in duplicate detection.

    Ids containing the placeholder were built from runtime values; two of them
    sharing a literal skeleton (item_ERB_OUTPUT) are expected, not a collision.
    """
    value = node.attribute("id")
    if is_blank(value) or PLACEHOLDER in value:
        return None
    return value


def duplicate_finding(node: DomNode, context: CheckContext, total: int, occurrence: int) -> Finding:
    """`occurrence` is the index of the node among same-id nodes of its own template."""
    value = node.attribute("id")
    return finding(
        RULE_ID,
        f"Duplicate ID '{value}' found",
        element_context(node, context.text_limit, occurrences=total, occurrence=occurrence),
        context,
        wcag="4.1.1",
        remediation=(
            "Ensure each ID is unique on the page. For ids built in a loop, include the record: "
            "id: \"item_#{item.id}\""
        )
    )


@check_spec(wcag=["4.1.1"])
def check_duplicate_ids(document: Document, context: CheckContext) -> List[Finding]:
    nodes = document.query("[id]")
    counts: Dict[str, int] = {}
    for node in nodes:
        value = comparable_id(node)
        if value is not None:
            counts[value] = counts.get(value, 0) + 1

    results = []
    seen: Dict[str, int] = {}
    for node in nodes:
        value = comparable_id(node)
        if value is None:
            continue
        occurrence = seen.get(value, 0)
        seen[value] = occurrence + 1
        if occurrence > 0:
            results.append(duplicate_finding(node, context, counts[value], occurrence))
    return results


DEFINITION = CheckDefinition(
    rule_id=RULE_ID,
    title="Element ids are unique",
    evaluate=check_duplicate_ids,
    page_scope=True
)

