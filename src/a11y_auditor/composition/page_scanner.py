import logging
from pathlib import Path
from typing import Dict, List, NamedTuple, Optional, Tuple, Union

from a11y_auditor.dom.builder import DOMBuilder
from a11y_auditor.dom.core import Document, DomNode
from a11y_auditor.extract.erb_extractor import ErbExtractor
from a11y_auditor.model import Finding, RuleConfiguration
from a11y_auditor.rules.checks import aria_landmarks, duplicate_ids, heading, skip_links
from a11y_auditor.rules.core import CheckContext, normalized_text
from a11y_auditor.rules.registry import RuleRegistry
from a11y_auditor.services.line_locator_service import LineLocator
from a11y_auditor.utils.config_loader import ScannerSettings
from .graph_builder import CompositionGraph, CompositionGraphBuilder

logger = logging.getLogger(__name__)


class PageMember(NamedTuple):
    """One file of a composed page, read, extracted and parsed once per scan."""
    index: int
    path: str
    source: str
    document: Document


def _occurrences(nodes: List[DomNode]) -> Dict[DomNode, int]:
    """Index of each node among the earlier nodes of the same template that look identical."""
    seen: Dict[Tuple, int] = {}
    result: Dict[DomNode, int] = {}
    for node in nodes:
        signature = (node.tag_name, node.attribute("id"), node.attribute("src"), node.attribute("href"),
                     node.attribute("type"), normalized_text(node))
        result[node] = seen.get(signature, 0)
        seen[signature] = result[node] + 1
    return result


class PageScanner:
    """
    Runs the whole-page checks over the composition graph of an entry template.

    Headings, ids, the main landmark and skip links are evaluated across the
    layout, the view and every partial together, so that an h1 in the layout
    satisfies a view that only has h2s. Every finding is attributed to the
    member file its element lives in and sorted by (graph position, line).
    """

    PAGE_RULES = (heading.RULE_ID, duplicate_ids.RULE_ID, aria_landmarks.RULE_ID, skip_links.RULE_ID)

    def __init__(
            self,
            template_root: Union[str, Path],
            config: Optional[RuleConfiguration] = None,
            settings: Optional[ScannerSettings] = None,
            graph_builder: Optional[CompositionGraphBuilder] = None,
            dom_builder: Optional[DOMBuilder] = None
    ):
        self.config = config or RuleConfiguration()
        self.settings = settings or ScannerSettings()
        self.graph_builder = graph_builder or CompositionGraphBuilder(template_root, self.settings)
        self.dom_builder = dom_builder or DOMBuilder()

    def scan(self, entry: Union[str, Path]) -> List[Finding]:
        graph = self.graph_builder.build(entry)
        if not graph.files:
            return []
        return self.scan_graph(graph)

    def scan_graph(self, graph: CompositionGraph, members: Optional[List[PageMember]] = None) -> List[Finding]:
        """`members` lets a caller reuse documents it already parsed from `graph`."""
        if members is None:
            members = self.load_members(graph)
        findings: List[Finding] = []

        if self._is_active(heading.RULE_ID):
            findings.extend(self.scan_headings(members))
        if self._is_active(duplicate_ids.RULE_ID):
            findings.extend(self.scan_duplicate_ids(members))
        if self._is_active(aria_landmarks.RULE_ID):
            findings.extend(self.scan_landmarks(members, graph))
        if self._is_active(skip_links.RULE_ID):
            findings.extend(self.scan_skip_links(members, graph))

        logger.debug(f"Page scan of {Path(graph.entry).name}: {len(findings)} finding(s) over {len(members)} file(s).")
        return sorted(findings, key=lambda f: (graph.index_of(f.file), f.line or 0))

    def load_members(self, graph: CompositionGraph) -> List[PageMember]:
        members = []
        for index, path in enumerate(graph.files):
            source = graph.sources.get(path)
            if source is None:
                continue
            document = self.dom_builder.parse(ErbExtractor.extract_html(source))
            members.append(PageMember(index, path, source, document))
        return members

    # --- Sub-scans ---

    def scan_headings(self, members: List[PageMember]) -> List[Finding]:
        sequence: List[DomNode] = []
        owners: Dict[DomNode, PageMember] = {}
        occurrences: Dict[DomNode, int] = {}

        for member in members:
            nodes = member.document.query(heading.HEADING_SELECTOR)
            occurrences.update(_occurrences(nodes))
            for node in nodes:
                owners[node] = member
                sequence.append(node)

        results = []
        for node, f in heading.analyze_headings(sequence, CheckContext(text_limit=self.settings.text_limit)):
            results.append(self._place(f, owners[node], occurrences[node]))
        return results

    def scan_duplicate_ids(self, members: List[PageMember]) -> List[Finding]:
        entries: List[Tuple[PageMember, DomNode, str]] = []
        totals: Dict[str, int] = {}
        for member in members:
            for node in member.document.query("[id]"):
                value = duplicate_ids.comparable_id(node)
                if value is None:
                    continue
                entries.append((member, node, value))
                totals[value] = totals.get(value, 0) + 1

        results = []
        seen_on_page: Dict[str, int] = {}
        seen_in_member: Dict[Tuple[int, str], int] = {}
        for member, node, value in entries:
            occurrence = seen_in_member.get((member.index, value), 0)
            seen_in_member[(member.index, value)] = occurrence + 1
            seen_on_page[value] = seen_on_page.get(value, 0) + 1
            if seen_on_page[value] == 1:
                continue

            context = CheckContext(file=member.path, text_limit=self.settings.text_limit)
            f = duplicate_ids.duplicate_finding(node, context, totals[value], occurrence)
            results.append(self._place(f, member, occurrence))
        return results

    def scan_landmarks(self, members: List[PageMember], graph: CompositionGraph) -> List[Finding]:
        if any(m.document.exists(aria_landmarks.MAIN_LANDMARK_SELECTOR) for m in members):
            return []
        f = aria_landmarks.missing_main_finding(CheckContext(file=graph.entry))
        return [f.model_copy(update={"page_level": True})]

    def scan_skip_links(self, members: List[PageMember], graph: CompositionGraph) -> List[Finding]:
        if any(m.document.exists(skip_links.SKIP_LINK_SELECTOR) for m in members):
            return []
        with_blocks = [m for m in members if m.document.exists(skip_links.REPEATED_BLOCK_SELECTOR)]
        if not with_blocks:
            return []
        f = skip_links.missing_skip_link_finding(CheckContext(file=with_blocks[0].path))
        return [f.model_copy(update={"page_level": True})]

    # --- Helpers ---

    def _is_active(self, rule_id: str) -> bool:
        defn = RuleRegistry.get_check(rule_id)
        default = defn.default_enabled if defn else True
        return self.config.is_active(rule_id, default)

    def _place(self, f: Finding, member: PageMember, occurrence: int) -> Finding:
        line = LineLocator(member.source).find_line(f.element, occurrence)
        return f.model_copy(update={"file": member.path, "line": line, "page_level": True})
