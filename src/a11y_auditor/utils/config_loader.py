import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, Field, ValidationError

from a11y_auditor.model import RuleConfiguration

logger = logging.getLogger(__name__)


class ScannerSettings(BaseModel):
    """
    Conventions and limits used while scanning a template tree.
    """
    # Longest suffix first: "index.html.erb" must not be read as "index.html" + ".erb"
    template_extensions: Tuple[str, ...] = (".html.erb", ".html.haml", ".html.slim", ".erb", ".html")
    layouts_dir: str = "layouts"
    default_layout: str = "application"
    shared_dirs: Tuple[str, ...] = ("layouts", "shared", "application")

    # Hardening for composition graphs built from hostile or broken trees
    max_depth: int = Field(default=25, ge=1)
    max_files: int = Field(default=200, ge=1)

    state_file: str = "tmp/.a11y_auditor_state.json"
    compose_pages: bool = True
    ignore_warnings: bool = False
    text_limit: int = Field(default=100, ge=1)

    def strip_extension(self, filename: str) -> Optional[str]:
        """Returns the template's base name, or None if it is not a template file."""
        for ext in self.template_extensions:
            if filename.endswith(ext) and len(filename) > len(ext):
                return filename[:-len(ext)]
        return None

    def is_template(self, path: Path) -> bool:
        return self.strip_extension(path.name) is not None

    def resolve_state_file(self, template_root: Path) -> Path:
        """Relative state file paths are anchored at the template root's parent."""
        path = Path(self.state_file)
        if path.is_absolute():
            return path
        return template_root.resolve().parent / path


def _read_json(path: Union[str, Path]) -> Optional[Dict[str, Any]]:
    config_path = Path(path)
    if not config_path.exists():
        logger.warning("Configuration file '%s' not found. Using defaults.", config_path)
        return None
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Failed to read configuration file %s: %s", config_path, e)
        return None
    if not isinstance(data, dict):
        logger.warning("Configuration file %s does not contain an object. Using defaults.", config_path)
        return None
    return data


def load_rule_configuration(path: Optional[Union[str, Path]] = None) -> RuleConfiguration:
    """
    Loads a resolved rule configuration from a JSON file.

    Expected shape:
        {"checks": {"color_contrast": true},
         "ignored_rules": [{"rule": "skip_links", "reason": "SPA shell"}]}

    Any failure falls back to the default configuration (every check at its
    declared default), so a broken file never stops a scan.
    """
    if path is None:
        return RuleConfiguration()

    data = _read_json(path)
    if data is None:
        return RuleConfiguration()

    try:
        return RuleConfiguration(
            checks=data.get("checks") or {},
            ignored_rules=data.get("ignored_rules") or []
        )
    except ValidationError as e:
        logger.warning("Invalid rule configuration in %s: %s", path, e)
        return RuleConfiguration()


def load_scanner_settings(path: Optional[Union[str, Path]] = None) -> ScannerSettings:
    """Loads ScannerSettings from a JSON file, falling back to defaults on any failure."""
    if path is None:
        return ScannerSettings()

    data = _read_json(path)
    if data is None:
        return ScannerSettings()

    try:
        return ScannerSettings(**data)
    except ValidationError as e:
        logger.warning("Invalid scanner settings in %s: %s", path, e)
        return ScannerSettings()


def enabled_rules(config: RuleConfiguration, defaults: Dict[str, bool]) -> List[str]:
    """Rule ids that would run under `config`, given each check's declared default."""
    return [rule_id for rule_id, default in defaults.items() if config.is_active(rule_id, default)]
