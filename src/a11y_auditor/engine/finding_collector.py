from typing import Any, Dict, Iterable, List

from a11y_auditor.model import Finding


class FindingCollector:
    """Accumulates the findings of one engine run."""

    def __init__(self):
        self._findings: List[Finding] = []

    @property
    def findings(self) -> List[Finding]:
        return list(self._findings)

    def add(self, findings: Iterable[Finding]) -> None:
        self._findings.extend(findings)

    def reset(self) -> None:
        self._findings = []

    def any(self) -> bool:
        return bool(self._findings)

    def count(self) -> int:
        return len(self._findings)

    def grouped_by_rule(self) -> Dict[str, List[Finding]]:
        grouped: Dict[str, List[Finding]] = {}
        for f in self._findings:
            grouped.setdefault(f.rule_id, []).append(f)
        return grouped

    def summary(self) -> Dict[str, Any]:
        grouped = self.grouped_by_rule()
        return {
            "total": self.count(),
            "by_rule": {rule_id: len(items) for rule_id, items in grouped.items()},
            "rules_affected": len(grouped)
        }
