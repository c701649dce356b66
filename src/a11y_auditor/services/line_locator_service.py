import re
from collections import Counter
from typing import Callable, Iterable, List, Optional, Pattern, Tuple

from a11y_auditor.extract.helpers import PLACEHOLDER, helpers_for_tag
from a11y_auditor.model import ElementContext, Finding

# What a placeholder stood for in the source: an ERB print tag or a Ruby interpolation
_RUNTIME_VALUE = r"(?:<%=?.*?%>|#\{[^}]*\})"

_TEXT_PREFIX_LENGTH = 20


def value_pattern(value: str) -> str:
    """Regex for an attribute value as extracted, with placeholders matching any runtime value."""
    return _RUNTIME_VALUE.join(re.escape(part) for part in value.split(PLACEHOLDER))


def _attribute_re(name: str, value: str) -> Pattern:
    return re.compile(rf"(?<![\w-]){name}\s*=\s*[\"']?{value_pattern(value)}(?:[\"'\s/>]|$)", re.I)


def _literal(value: Optional[str]) -> Optional[str]:
    """The longest literal run of a value, or None if it has none worth matching."""
    if not value:
        return None
    longest = max((part.strip() for part in value.split(PLACEHOLDER)), key=len)
    return longest if len(longest) >= 2 else None


class LineLocator:
    """
    Finds the source line of an element reported on extracted markup.

    This is a best-effort re-match against the template text, not a source map:
    structurally identical elements can be attributed to the same line unless
    the caller passes the occurrence index.
    """

    def __init__(self, source: str):
        self.lines = (source or "").split("\n")

    def find_line(self, element: ElementContext, occurrence: int = 0) -> Optional[int]:
        """
        Returns the 1-based line of the element, or None when nothing matches.

        Heuristics in priority order; the first one with a match wins:
          1. tag-open and an exactly matching id
          2. tag-open and matching src
          3. tag-open and matching href
          4. tag-open and matching type
          5a. tag-open and the start of the element's text
          6a. a helper call known to render the tag, containing the id/src/href literal
          5. the first tag-open
          6. the first helper call known to render the tag

        `occurrence` selects the n-th match of the winning heuristic (the last
        one when there are fewer matches).
        """
        tag = element.tag
        if not tag or tag == "page":
            return None

        tag_open = re.compile(rf"<{re.escape(tag)}(?=[\s>/]|$)", re.I)
        helper_names = helpers_for_tag(tag)
        helper_call = re.compile(rf"\b(?:{'|'.join(map(re.escape, helper_names))})\b") if helper_names else None

        def with_tag(extra: Callable[[str], bool]) -> Callable[[str], bool]:
            return lambda line: bool(tag_open.search(line)) and extra(line)

        def with_helper(extra: Callable[[str], bool]) -> Callable[[str], bool]:
            return lambda line: helper_call is not None and bool(helper_call.search(line)) and extra(line)

        heuristics: List[Callable[[str], bool]] = []
        for name, value in (("id", element.id), ("src", element.src), ("href", element.href),
                            ("type", element.input_type)):
            if value:
                heuristics.append(with_tag(_attribute_re(name, value).search))

        text_prefix = element.text.split(PLACEHOLDER)[0].strip()[:_TEXT_PREFIX_LENGTH]
        if len(text_prefix) >= 3:
            heuristics.append(with_tag(lambda line: text_prefix in line))

        literals = [lit for lit in (_literal(element.id), _literal(element.src), _literal(element.href)) if lit]
        if literals:
            heuristics.append(with_helper(lambda line: any(lit in line for lit in literals)))

        heuristics.append(with_tag(lambda line: True))
        heuristics.append(with_helper(lambda line: True))

        for matches_line in heuristics:
            found = [index + 1 for index, line in enumerate(self.lines) if matches_line(line)]
            if found:
                return found[min(max(occurrence, 0), len(found) - 1)]
        return None


def _signature(f: Finding) -> Tuple:
    e = f.element
    return f.rule_id, e.tag, e.id, e.src, e.href, e.input_type, e.text


def locate_findings(findings: Iterable[Finding], source: str, file: Optional[str]) -> List[Finding]:
    """
    Attaches file and line to every finding reported on one template.

    Findings about identical-looking elements are matched to successive source
    occurrences, unless the check recorded the occurrence itself.
    """
    locator = LineLocator(source)
    seen: Counter = Counter()
    located = []
    for f in findings:
        if "occurrence" in f.element.details:
            occurrence = int(f.element.details["occurrence"])
        else:
            signature = _signature(f)
            occurrence = seen[signature]
            seen[signature] += 1
        located.append(f.located(file, locator.find_line(f.element, occurrence)))
    return located
