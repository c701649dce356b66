from typing import Iterable, List, Set

from a11y_auditor.model import Finding


class PageScanCache:
    """
    Findings already reported during one scan run.

    Pages sharing a layout or partial would otherwise report the same finding
    once per page. The controller owns one cache and resets it at the start of
    every run.
    """

    def __init__(self):
        self._seen: Set[str] = set()
        self._pages: Set[str] = set()

    def reset(self) -> None:
        self._seen.clear()
        self._pages.clear()

    def mark_page(self, entry: str) -> bool:
        """Returns False when the page was already scanned in this run."""
        if entry in self._pages:
            return False
        self._pages.add(entry)
        return True

    def unseen(self, findings: Iterable[Finding]) -> List[Finding]:
        """Filters out findings reported before in this run, and remembers the rest."""
        fresh = []
        for f in findings:
            key = f.key()
            if key in self._seen:
                continue
            self._seen.add(key)
            fresh.append(f)
        return fresh

    def __len__(self) -> int:
        return len(self._seen)
