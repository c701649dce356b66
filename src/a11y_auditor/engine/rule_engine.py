# src/a11y_auditor/engine/rule_engine.py
import logging
from typing import Callable, Dict, Iterable, List, Optional

from a11y_auditor.dom.core import Document
from a11y_auditor.model import Finding, RuleConfiguration
from a11y_auditor.rules.core import CheckContext, CheckDefinition
from a11y_auditor.rules.registry import RuleRegistry
from .finding_collector import FindingCollector

logger = logging.getLogger(__name__)

# progress_callback(check_number, total_checks, title, status) with status in
# "start", "passed", "found_issues", "error"
ProgressCallback = Callable[[int, int, str, str], None]


class RuleEngine:
    """
    Runs the configured rule checks against a Document.

    Each check runs in isolation: an exception inside one check is logged,
    recorded in `failures` and counts as zero findings, the remaining checks
    still run.
    """

    def __init__(self, config: Optional[RuleConfiguration] = None, checks: Optional[List[CheckDefinition]] = None):
        """
        Args:
            config: Resolved rule configuration; defaults to every check at its declared default.
            checks: Check definitions in evaluation order; defaults to everything the RuleRegistry discovers.
        """
        self.config = config or RuleConfiguration()
        self.checks = list(checks) if checks is not None else RuleRegistry.get_all_checks()
        self.collector = FindingCollector()
        self.failures: Dict[str, str] = {}

    def active_checks(self, exclude: Iterable[str] = ()) -> List[CheckDefinition]:
        """Checks that are enabled, not ignored and not excluded, in registration order."""
        excluded = set(exclude)
        return [
            defn for defn in self.checks
            if defn.rule_id not in excluded and self.config.is_active(defn.rule_id, defn.default_enabled)
        ]

    def check(
            self,
            document: Document,
            context: Optional[CheckContext] = None,
            exclude: Iterable[str] = (),
            progress_callback: Optional[ProgressCallback] = None
    ) -> List[Finding]:
        """
        Evaluates every active check and returns all findings in check-registration order.

        Args:
            document: The parsed document.
            context: Origin of the document (file or url).
            exclude: Rule ids to skip for this run, on top of the configuration.
            progress_callback: Optional per-check progress hook.
        """
        context = context or CheckContext()
        self.collector.reset()
        self.failures = {}

        checks_to_run = self.active_checks(exclude)
        total = len(checks_to_run)

        for number, defn in enumerate(checks_to_run, start=1):
            if progress_callback:
                progress_callback(number, total, defn.title, "start")

            try:
                findings = defn.evaluate(document, context)
            except Exception as e:
                logger.error(f"Check '{defn.rule_id}' failed on {context.file or context.url or 'document'}: {e}",
                             exc_info=True)
                self.failures[defn.rule_id] = str(e)
                if progress_callback:
                    progress_callback(number, total, defn.title, "error")
                continue

            self.collector.add(findings)
            if progress_callback:
                progress_callback(number, total, defn.title, "found_issues" if findings else "passed")

        return self.collector.findings
