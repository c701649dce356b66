# src/a11y_auditor/rules/registry.py
import importlib
import pkgutil
import logging
from typing import Dict, List, Optional

from .core import CheckDefinition

logger = logging.getLogger(__name__)


class RuleRegistry:
    """
    Central registry for rule checks.

    Dynamically discovers and loads CheckDefinition modules from the
    'a11y_auditor.rules.checks' package. Registration order is the sorted order
    of the module names, so every run evaluates checks in the same order.
    """

    _checks: Dict[str, CheckDefinition] = {}
    _loaded: bool = False

    @classmethod
    def discover(cls) -> None:
        """
        Discovers and registers all check definitions found in the 'a11y_auditor.rules.checks' package.

        A module takes part when it exposes a `DEFINITION` attribute (instance of
        `CheckDefinition`). A module that fails to import is logged and skipped.
        """
        if cls._loaded:
            return

        try:
            import a11y_auditor.rules.checks as checks_pkg

            names = sorted(name for _, name, _ in pkgutil.iter_modules(checks_pkg.__path__))
            for name in names:
                full_name = f"a11y_auditor.rules.checks.{name}"
                try:
                    module = importlib.import_module(full_name)
                    defn = getattr(module, "DEFINITION", None)
                    if isinstance(defn, CheckDefinition):
                        cls.register(defn)
                except Exception as e:
                    logger.error(f"Error loading check module {name}: {e}")

            cls._loaded = True
        except ImportError as e:
            logger.error(f"Could not find checks package: {e}")

    @classmethod
    def register(cls, definition: CheckDefinition) -> None:
        if definition.rule_id in cls._checks:
            logger.warning(f"Check '{definition.rule_id}' registered twice; keeping the first definition.")
            return
        cls._checks[definition.rule_id] = definition
        logger.debug(f"Check loaded: {definition.rule_id}")

    @classmethod
    def get_all_checks(cls) -> List[CheckDefinition]:
        """Returns all registered checks in registration order."""
        cls.discover()
        return list(cls._checks.values())

    @classmethod
    def get_check(cls, rule_id: str) -> Optional[CheckDefinition]:
        cls.discover()
        return cls._checks.get(rule_id)

    @classmethod
    def get_all_rule_ids(cls) -> List[str]:
        return [defn.rule_id for defn in cls.get_all_checks()]

    @classmethod
    def default_states(cls) -> Dict[str, bool]:
        """Rule id -> declared default enabled state."""
        return {defn.rule_id: defn.default_enabled for defn in cls.get_all_checks()}
