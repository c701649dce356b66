import logging
import time
from collections import Counter
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from tqdm.auto import tqdm

from a11y_auditor.composition.graph_builder import CompositionGraphBuilder
from a11y_auditor.composition.page_scanner import PageScanner
from a11y_auditor.dom.builder import DOMBuilder
from a11y_auditor.engine.finding_collector import FindingCollector
from a11y_auditor.engine.rule_engine import RuleEngine
from a11y_auditor.extract.erb_extractor import ErbExtractor
from a11y_auditor.managers.page_scan_cache import PageScanCache
from a11y_auditor.managers.scan_state_manager import ScanStateManager
from a11y_auditor.model import Finding, RuleConfiguration, Severity
from a11y_auditor.rules.core import CheckContext
from a11y_auditor.rules.registry import RuleRegistry
from a11y_auditor.services.line_locator_service import locate_findings
from a11y_auditor.utils.config_loader import ScannerSettings, enabled_rules
from a11y_auditor.utils.template_loader import read_template

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class ScanController:
    """
    Orchestrates template scans: file-local checks, composed-page checks,
    de-duplication within a run and incremental re-scans of changed files.
    """

    def __init__(
            self,
            template_root: PathLike,
            config: Optional[RuleConfiguration] = None,
            settings: Optional[ScannerSettings] = None,
            state_manager: Optional[ScanStateManager] = None
    ):
        self.template_root = Path(template_root).resolve()
        self.config = config or RuleConfiguration()
        self.settings = settings or ScannerSettings()
        self.state_manager = state_manager or ScanStateManager(self.settings.resolve_state_file(self.template_root))

        self.dom_builder = DOMBuilder()
        self.engine = RuleEngine(self.config)
        self.graph_builder = CompositionGraphBuilder(self.template_root, self.settings)
        self.page_scanner = PageScanner(
            self.template_root, self.config, self.settings,
            graph_builder=self.graph_builder, dom_builder=self.dom_builder
        )
        self.cache = PageScanCache()
        self.last_changed: List[str] = []

    # --- Discovery ---

    def discover_templates(self) -> List[str]:
        """Every template file under the root, sorted."""
        if not self.template_root.is_dir():
            logger.warning(f"Template root {self.template_root} does not exist.")
            return []
        return sorted(
            str(path.resolve()) for path in self.template_root.rglob("*")
            if path.is_file() and self.settings.is_template(path)
        )

    def is_entry(self, path: PathLike) -> bool:
        """Views rendered as pages: not partials, not layouts."""
        p = Path(path)
        if p.name.startswith("_"):
            return False
        try:
            relative = p.resolve().relative_to(self.template_root)
        except ValueError:
            return True
        return self.settings.layouts_dir not in relative.parts[:-1]

    # --- Scanning ---

    def scan_file(self, path: PathLike) -> List[Finding]:
        """
        Scans one template.

        With page composition on, whole-page rules are left to the page scan
        that runs for entry views; partials and layouts only get file-local checks.
        """
        path = str(Path(path).resolve())
        source = read_template(path)
        if source is None:
            return []

        findings = self._check_source(path, source)
        if self.settings.compose_pages and self.is_entry(path):
            findings.extend(self.page_scanner.scan(path))
        return self._filter(findings)

    def scan_page(self, entry: PathLike) -> List[Finding]:
        """File-local findings of every member of the entry's composed page, plus the page-level findings."""
        graph = self.graph_builder.build(entry)
        if not graph.files:
            return []

        members = self.page_scanner.load_members(graph)
        findings: List[Finding] = []
        for member in members:
            context = CheckContext(file=member.path, text_limit=self.settings.text_limit)
            local = self.engine.check(member.document, context, exclude=PageScanner.PAGE_RULES)
            findings.extend(locate_findings(local, member.source, member.path))
        findings.extend(self.page_scanner.scan_graph(graph, members))
        return self._filter(findings)

    def scan_files(
            self,
            paths: List[PathLike],
            show_progress: bool = False,
            progress_callback: Optional[Callable[[int, int], None]] = None
    ) -> List[Finding]:
        """
        Scans many templates as one run.

        Findings coming from a shared layout or partial are reported once per
        run, however many pages include it.
        """
        self.cache.reset()
        total = len(paths)
        results: List[Finding] = []

        iterator = paths if not show_progress else tqdm(paths, desc="Scanning templates", unit="file", leave=False)
        for i, path in enumerate(iterator):
            resolved = str(Path(path).resolve())
            source = read_template(resolved)
            if source is not None:
                results.extend(self.cache.unseen(self._filter(self._check_source(resolved, source))))
                if self.settings.compose_pages and self.is_entry(resolved) and self.cache.mark_page(resolved):
                    results.extend(self.cache.unseen(self._filter(self.page_scanner.scan(resolved))))

            logger.debug(f"Scanned {resolved}")
            if progress_callback:
                progress_callback(i + 1, total)

        return results

    def scan_changed(self, paths: Optional[List[PathLike]] = None) -> List[Finding]:
        """
        Scans the templates changed since the last recorded state, then records the new state.

        A changed partial or layout also brings in the pages that include it,
        so its whole-page findings are not lost.
        """
        candidates = [str(Path(p).resolve()) for p in paths] if paths is not None else self.discover_templates()
        changed = self.state_manager.changed_files(candidates)
        self.last_changed = changed
        if not changed:
            return []

        affected = self.pages_including(changed) if self.settings.compose_pages else []
        logger.info(f"{len(changed)} changed template(s) to scan, {len(affected)} page(s) including them.")
        findings = self.scan_files(changed + affected)
        self.state_manager.update_state(changed)
        return findings

    def pages_including(self, paths: List[str]) -> List[str]:
        """Entry views not in `paths` whose composed page includes one of the partials or layouts in `paths`."""
        fragments = {p for p in paths if not self.is_entry(p)}
        if not fragments:
            return []

        listed = set(paths)
        pages = []
        for entry in self.discover_templates():
            if entry in listed or not self.is_entry(entry):
                continue
            if fragments.intersection(self.graph_builder.build(entry).files):
                pages.append(entry)
        return pages

    def watch(
            self,
            interval: float,
            on_findings: Callable[[List[str], List[Finding]], None],
            max_cycles: Optional[int] = None
    ) -> None:
        """
        Cooperative poll loop: scan changed templates, report, sleep.

        `on_findings(changed_files, findings)` is called for every cycle that
        saw changes. Runs until the process stops, or for `max_cycles` cycles.
        """
        cycles = 0
        while max_cycles is None or cycles < max_cycles:
            findings = self.scan_changed()
            if self.last_changed:
                on_findings(self.last_changed, findings)
            cycles += 1
            if max_cycles is not None and cycles >= max_cycles:
                break
            time.sleep(interval)

    # --- Reporting ---

    def summarize(self, findings: List[Finding]) -> Dict[str, Any]:
        """Serialisable counts by severity, rule and file."""
        collector = FindingCollector()
        collector.add(findings)
        summary = collector.summary()

        severities = Counter(f.severity.value for f in findings)
        summary["errors"] = severities.get(Severity.ERROR.value, 0)
        summary["warnings"] = severities.get(Severity.WARNING.value, 0)
        summary["by_file"] = dict(Counter(f.file for f in findings if f.file))
        summary["rules_run"] = enabled_rules(self.config, RuleRegistry.default_states())
        summary["failed_checks"] = dict(self.engine.failures)
        return summary

    # --- Helpers ---

    def _check_source(self, path: str, source: str) -> List[Finding]:
        exclude = PageScanner.PAGE_RULES if self.settings.compose_pages else ()
        document = self.dom_builder.parse(ErbExtractor.extract_html(source))
        context = CheckContext(file=path, text_limit=self.settings.text_limit)
        return locate_findings(self.engine.check(document, context, exclude=exclude), source, path)

    def _filter(self, findings: List[Finding]) -> List[Finding]:
        if not self.settings.ignore_warnings:
            return findings
        return [f for f in findings if f.is_error]
