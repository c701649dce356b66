# src/a11y_auditor/managers/scan_state_manager.py
import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class ScanStateManager:
    """
    Beheert de scan-state: per templatebestand de mtime van de laatste scan.

    De state is een JSON object {pad: mtime}. Schrijven gaat via een tijdelijk
    bestand in dezelfde map gevolgd door os.replace, zodat een lezer nooit een
    half geschreven bestand ziet. Het bestand mag altijd verwijderd worden; dat
    forceert alleen een volledige scan.
    """

    def __init__(self, state_file: PathLike):
        self.state_file = Path(state_file)
        self._lock = threading.Lock()

    # --- Persistence ---

    def load_state(self) -> Dict[str, float]:
        """Laadt de state; een ontbrekend of corrupt bestand geeft een lege state."""
        if not self.state_file.exists():
            return {}
        try:
            with open(self.state_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Kon state file niet lezen {self.state_file}: {e}")
            return {}

        if not isinstance(data, dict):
            logger.warning(f"State file {self.state_file} bevat geen object; state wordt genegeerd.")
            return {}

        state: Dict[str, float] = {}
        for path, mtime in data.items():
            try:
                state[str(path)] = float(mtime)
            except (TypeError, ValueError):
                continue
        return state

    def save_state(self, state: Dict[str, float]) -> bool:
        """Slaat de state atomair op. Geeft False terug als schrijven mislukt."""
        tmp_name: Optional[str] = None
        try:
            self.state_file.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.state_file.parent, prefix=f".{self.state_file.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(state, f, indent=2, sort_keys=True)
            os.replace(tmp_name, self.state_file)
            return True
        except OSError as e:
            logger.warning(f"Kon state file niet opslaan {self.state_file}: {e}")
            if tmp_name and os.path.exists(tmp_name):
                os.remove(tmp_name)
            return False

    # --- Change tracking ---

    def changed_files(self, candidates: Iterable[PathLike]) -> List[str]:
        """Bestanden waarvan de mtime afwijkt van (of ontbreekt in) de laatst opgeslagen state."""
        state = self.load_state()
        changed = []
        for candidate in candidates:
            key = str(candidate)
            mtime = self._mtime(key)
            if mtime is None:
                continue
            if state.get(key) != mtime:
                changed.append(key)
        return changed

    def update_state(self, files: Iterable[PathLike]) -> None:
        """Legt de huidige mtimes vast en verwijdert entries van bestanden die niet meer bestaan."""
        with self._lock:
            state = self.load_state()
            for path in files:
                key = str(path)
                mtime = self._mtime(key)
                if mtime is not None:
                    state[key] = mtime
            state = {path: mtime for path, mtime in state.items() if os.path.exists(path)}
            self.save_state(state)

    def clear_state(self) -> None:
        with self._lock:
            try:
                self.state_file.unlink()
            except FileNotFoundError:
                pass
            except OSError as e:
                logger.warning(f"Kon state file niet verwijderen {self.state_file}: {e}")

    @staticmethod
    def _mtime(path: str) -> Optional[float]:
        try:
            return os.path.getmtime(path)
        except OSError:
            return None
