import re
from typing import List, Sequence, Tuple

from a11y_auditor.dom.core import Document, DomNode
from a11y_auditor.model import Finding, Severity
from ..core import CheckContext, CheckDefinition, check_spec, element_context, finding, heading_level, is_blank, normalized_text

RULE_ID = "heading"

HEADING_SELECTOR = "h1, h2, h3, h4, h5, h6"

# Glyphs that suggest a heading is only used for its visual weight
_STYLING_ONLY_RE = re.compile(r"^[•→…\s\-_=]+$")


def _has_content(heading: DomNode) -> bool:
    if normalized_text(heading):
        return True
    return any(not is_blank(img.attribute("alt")) for img in heading.query("img"))


def analyze_headings(headings: Sequence[DomNode], context: CheckContext) -> List[Tuple[DomNode, Finding]]:
    """
    Evaluates heading structure over an ordered heading sequence.

    Used for a single document and for the concatenated headings of a composed
    page. Each finding is returned with the heading it is about, so a caller
    can attribute it to the file the heading came from.

    The first heading is never reported as a skipped level: a page that starts
    at h2 is reported once, as missing its h1.
    """
    results: List[Tuple[DomNode, Finding]] = []
    if not headings:
        return results

    def add(node: DomNode, message: str, wcag: str, remediation: str, severity: Severity = Severity.ERROR):
        results.append((node, finding(
            RULE_ID, message, element_context(node, context.text_limit), context,
            wcag=wcag, remediation=remediation, severity=severity
        )))

    levels = [heading_level(h) for h in headings]
    h1_nodes = [h for h, level in zip(headings, levels) if level == 1]

    # --- Missing H1 ---
    if not h1_nodes:
        first_level = levels[0]
        add(
            headings[0],
            f"Page has h{first_level} but no h1 heading",
            "1.3.1",
            f"Add an <h1> heading before the first h{first_level}:\n\n<h1>Main Page Title</h1>"
        )

    # --- Multiple H1s ---
    if len(h1_nodes) > 1:
        for h1 in h1_nodes[1:]:
            add(
                h1,
                f"Page has multiple h1 headings ({len(h1_nodes)} total) - only one h1 should be used per page",
                "1.3.1",
                "Use only one <h1> per page. Convert additional h1s to h2 or lower."
            )

    # --- Skipped levels, each heading against its predecessor ---
    for index in range(1, len(headings)):
        previous_level, current_level = levels[index - 1], levels[index]
        if current_level > previous_level + 1:
            add(
                headings[index],
                f"Heading hierarchy skipped (h{previous_level} to h{current_level})",
                "1.3.1",
                f"Don't skip heading levels. Use h{previous_level + 1} instead of h{current_level}."
            )

    # --- Empty and decorative headings ---
    for heading in headings:
        tag = heading.tag_name
        if not _has_content(heading):
            add(
                heading,
                f"Empty heading detected (<{tag}>) - headings must have accessible text",
                "4.1.2",
                f"Add descriptive text to the heading:\n\n<{tag}>Descriptive Heading Text</{tag}>"
            )
            continue

        text = heading.text.strip()
        if len(text) <= 2 and _STYLING_ONLY_RE.match(text):
            add(
                heading,
                f"Heading appears to be used for styling only (text: '{text}') - headings should be descriptive",
                "2.4.6",
                "Use CSS for styling instead of headings. Replace it with a <div> or <span>.",
                severity=Severity.WARNING
            )

    return results


@check_spec(wcag=["1.3.1", "2.4.6", "4.1.2"])
def check_headings(document: Document, context: CheckContext) -> List[Finding]:
    return [f for _, f in analyze_headings(document.query(HEADING_SELECTOR), context)]


DEFINITION = CheckDefinition(
    rule_id=RULE_ID,
    title="Heading structure",
    evaluate=check_headings,
    page_scope=True
)
