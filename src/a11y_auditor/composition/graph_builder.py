import logging
import re
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Set, Tuple, Union

from pydantic import BaseModel, Field

from a11y_auditor.extract.erb_tokenizer import code_fragments
from a11y_auditor.utils.config_loader import ScannerSettings
from a11y_auditor.utils.template_loader import read_template

logger = logging.getLogger(__name__)

# layout "admin" / layout("admin")
_LAYOUT_RE = re.compile(r"(?<![\w-])layout\s*\(?\s*['\"]([^'\"]+)['\"]")

# Include shapes, matched against ERB code fragments only
_RENDER_NAME_RE = re.compile(r"\brender\s*\(?\s*['\"]([^'\"]+)['\"]")
_RENDER_PARTIAL_KEY_RE = re.compile(r"\brender\b.*?(?:\bpartial\s*:|:partial\s*=>)\s*['\"]([^'\"]+)['\"]", re.S)
_RENDER_MODEL_RE = re.compile(r"\brender\s*\(?\s*@(\w+)")


class CompositionGraph(BaseModel):
    """
    Ordered, de-duplicated set of template files rendering one logical page.

    Order: layout, entry, the entry's fragments depth-first, then the layout's
    fragments depth-first.
    """
    entry: Optional[str] = None
    layout: Optional[str] = None
    files: List[str] = Field(default_factory=list)

    # Text of every member, as read while building
    sources: Dict[str, str] = Field(default_factory=dict, exclude=True, repr=False)

    def index_of(self, path: str) -> int:
        try:
            return self.files.index(path)
        except ValueError:
            return len(self.files)

    def __len__(self) -> int:
        return len(self.files)

    def __contains__(self, path: object) -> bool:
        return path in self.files


def singularize(word: str) -> str:
    if word.endswith("ies") and len(word) > 3:
        return word[:-3] + "y"
    if word.endswith("s") and not word.endswith("ss"):
        return word[:-1]
    return word


def pluralize(word: str) -> str:
    if word.endswith("y") and len(word) > 1 and word[-2] not in "aeiou":
        return word[:-1] + "ies"
    if word.endswith("s"):
        return word
    return word + "s"


def find_references(source: str) -> List[Tuple[str, ...]]:
    """
    Partial names referenced from the ERB code of a template, in source order.

    Model shorthand (`render @items`) expands to two candidate names, the
    conventional `items/item` first and a plain `item` second; the first
    candidate that resolves wins.
    """
    references: List[Tuple[str, ...]] = []

    def add(*candidates: str):
        if candidates not in references:
            references.append(candidates)

    for token in code_fragments(source):
        code = token.value
        if "render" not in code:
            continue
        for m in _RENDER_NAME_RE.finditer(code):
            add(m.group(1))
        for m in _RENDER_PARTIAL_KEY_RE.finditer(code):
            add(m.group(1))
        for m in _RENDER_MODEL_RE.finditer(code):
            singular = singularize(m.group(1))
            add(f"{pluralize(singular)}/{singular}", singular)
    return references


class CompositionGraphBuilder:
    """
    Resolves the layout and every transitively included partial of an entry template.

    Traversal uses an explicit stack and a visited set, so include cycles
    terminate and no file is listed twice. `max_depth` and `max_files` bound
    the walk on pathological trees.
    """

    def __init__(self, template_root: Union[str, Path], settings: Optional[ScannerSettings] = None):
        self.template_root = Path(template_root).resolve()
        self.settings = settings or ScannerSettings()

    # --- Public API ---

    def build(self, entry: Union[str, Path]) -> CompositionGraph:
        entry_path = self._entry_path(entry)
        if entry_path is None:
            logger.debug(f"Entry template {entry} not found; empty composition graph.")
            return CompositionGraph()

        sources: Dict[str, str] = {}
        entry_source = self._read(entry_path, sources)
        if entry_source is None:
            return CompositionGraph()

        files: List[str] = []
        visited: Set[str] = set()

        layout_path = self.find_layout(entry_path, entry_source)
        if layout_path is not None and self._read(layout_path, sources) is None:
            layout_path = None

        if layout_path is not None:
            self._visit(layout_path, files, visited)
        self._visit(entry_path, files, visited)

        self._expand(entry_path, files, visited, sources)
        if layout_path is not None:
            self._expand(layout_path, files, visited, sources)

        logger.debug(f"Composition graph for {entry_path.name}: {len(files)} file(s).")
        return CompositionGraph(
            entry=str(entry_path),
            layout=str(layout_path) if layout_path else None,
            files=files,
            sources={path: sources[path] for path in files if path in sources}
        )

    def find_layout(self, entry_path: Path, source: str) -> Optional[Path]:
        """Explicit layout declaration first, then the conventional default layout."""
        names = []
        m = _LAYOUT_RE.search(source)
        if m:
            names.append(m.group(1))
        names.append(self.settings.default_layout)

        for name in names:
            for directory in self._layout_dirs(entry_path):
                candidate = self._with_extension(directory / name)
                if candidate is not None and candidate != entry_path:
                    return candidate
        return None

    def resolve_partial(self, name: str, referrer: Path) -> Optional[Path]:
        """
        Finds the file for a partial reference.

        Namespaced references ('shared/nav') resolve against the template root.
        Plain names are looked up next to the referrer, then in the shared
        directories, and finally by a recursive search that must match exactly
        one file.
        """
        name = name.strip().strip("/")
        if not name:
            return None

        if "/" in name:
            directory, _, base = name.rpartition("/")
            return self._with_extension(self.template_root / directory / f"_{base.lstrip('_')}")

        base = name.lstrip("_")
        for directory in [referrer.parent] + [self.template_root / d for d in self.settings.shared_dirs]:
            found = self._with_extension(directory / f"_{base}")
            if found is not None:
                return found

        return self._search(base)

    # --- Traversal ---

    def _visit(self, path: Path, files: List[str], visited: Set[str]) -> bool:
        key = str(path)
        if key in visited:
            return False
        visited.add(key)
        files.append(key)
        return True

    def _expand(self, start: Path, files: List[str], visited: Set[str], sources: Dict[str, str]) -> None:
        stack: List[Tuple[Path, int, Iterator[Tuple[str, ...]]]] = [(start, 0, iter(self._references(start, sources)))]

        while stack:
            path, depth, references = stack[-1]
            candidates = next(references, None)
            if candidates is None:
                stack.pop()
                continue

            resolved = self._resolve_first(candidates, path)
            if resolved is None:
                logger.debug(f"Unresolved partial '{candidates[-1]}' referenced from {path.name}; skipped.")
                continue
            if str(resolved) in visited:
                continue
            if len(files) >= self.settings.max_files:
                logger.warning(f"Composition graph for {start.name} reached max_files={self.settings.max_files}; "
                               f"remaining partials ignored.")
                return
            if self._read(resolved, sources) is None:
                continue

            self._visit(resolved, files, visited)
            if depth + 1 >= self.settings.max_depth:
                logger.warning(f"Partial nesting below {resolved.name} exceeds max_depth={self.settings.max_depth}; "
                               f"not expanded.")
                continue
            stack.append((resolved, depth + 1, iter(self._references(resolved, sources))))

    def _references(self, path: Path, sources: Dict[str, str]) -> List[Tuple[str, ...]]:
        source = self._read(path, sources)
        return find_references(source) if source else []

    def _read(self, path: Path, sources: Dict[str, str]) -> Optional[str]:
        key = str(path)
        if key not in sources:
            text = read_template(path)
            if text is None:
                return None
            sources[key] = text
        return sources[key]

    # --- Resolution ---

    def _entry_path(self, entry: Union[str, Path]) -> Optional[Path]:
        path = Path(entry)
        if not path.is_absolute() and not path.exists():
            path = self.template_root / path
        if not path.is_file():
            return None
        return path.resolve()

    def _layout_dirs(self, entry_path: Path) -> List[Path]:
        return [self.template_root / self.settings.layouts_dir, entry_path.parent, self.template_root]

    def _with_extension(self, base: Path) -> Optional[Path]:
        for ext in self.settings.template_extensions:
            candidate = base.parent / f"{base.name}{ext}"
            if candidate.is_file():
                return candidate.resolve()
        return None

    def _resolve_first(self, candidates: Tuple[str, ...], referrer: Path) -> Optional[Path]:
        for name in candidates:
            resolved = self.resolve_partial(name, referrer)
            if resolved is not None:
                return resolved
        return None

    def _search(self, name: str) -> Optional[Path]:
        target = f"_{name}"
        matches = sorted(
            path for path in self.template_root.rglob(f"{target}.*")
            if path.is_file() and self.settings.strip_extension(path.name) == target
        )
        if len(matches) == 1:
            return matches[0].resolve()
        if len(matches) > 1:
            logger.debug(f"Partial '{name}' is ambiguous ({len(matches)} candidates); skipped.")
        return None
