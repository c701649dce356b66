from typing import List

from a11y_auditor.dom.core import Document
from a11y_auditor.model import Finding
from ..core import CheckContext, CheckDefinition, check_spec, element_context, finding

RULE_ID = "table_structure"


@check_spec(wcag=["1.3.1"])
def check_table_headers(document: Document, context: CheckContext) -> List[Finding]:
    results = []
    for table in document.query("table"):
        # Layout tables opt out explicitly
        if table.attribute("role") in ("presentation", "none"):
            continue
        if table.query("th"):
            continue
        results.append(finding(
            RULE_ID,
            "Table missing headers",
            element_context(table, context.text_limit),
            context,
            wcag="1.3.1",
            remediation="Add <th> headers to your table:\n\n<table>\n  <thead>\n    <tr><th>Column 1</th></tr>\n  </thead>\n</table>"
        ))
    return results


DEFINITION = CheckDefinition(
    rule_id=RULE_ID,
    title="Tables have header cells",
    evaluate=check_table_headers
)
