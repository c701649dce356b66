from typing import List

from a11y_auditor.dom.core import Document
from a11y_auditor.model import Finding
from ..core import CheckContext, CheckDefinition, check_spec, element_context, finding

RULE_ID = "image_alt_text"


@check_spec(wcag=["1.1.1"])
def check_alt_text(document: Document, context: CheckContext) -> List[Finding]:
    results = []
    # alt=None means the attribute is missing; alt="" marks a decorative image and is valid
    for image in document.query("img"):
        if image.attribute("alt") is not None:
            continue
        results.append(finding(
            RULE_ID,
            "Image missing alt attribute",
            element_context(image, context.text_limit),
            context,
            wcag="1.1.1",
            remediation=(
                "Add an alt attribute describing the image:\n\n"
                "<%= image_tag \"logo.png\", alt: \"Company logo\" %>\n\n"
                "Use alt: \"\" for purely decorative images."
            )
        ))
    return results


DEFINITION = CheckDefinition(
    rule_id=RULE_ID,
    title="Images have alt text",
    evaluate=check_alt_text
)
