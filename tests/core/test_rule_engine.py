# tests/core/test_rule_engine.py
import logging
from unittest.mock import MagicMock

import pytest

from a11y_auditor.engine.finding_collector import FindingCollector
from a11y_auditor.engine.rule_engine import RuleEngine
from a11y_auditor.model import RuleConfiguration
from a11y_auditor.rules.core import CheckDefinition, finding, page_context
from a11y_auditor.rules.registry import RuleRegistry


def check_broken(document, context):
    raise RuntimeError("kapot")


def check_one(document, context):
    return [finding("one", "Eerste", page_context("pagina"), context)]


def check_two(document, context):
    return [finding("two", "Tweede", page_context("pagina"), context)]


@pytest.fixture
def checks():
    return [
        CheckDefinition("broken", "Broken", check_broken),
        CheckDefinition("one", "One", check_one),
        CheckDefinition("two", "Two", check_two),
    ]


@pytest.fixture
def document(parse):
    return parse("<p>Hallo</p>")


def test_failing_check_does_not_stop_others(checks, document, context, caplog):
    """Test dat een falende check wordt gelogd en de rest gewoon draait."""
    engine = RuleEngine(RuleConfiguration(), checks=checks)

    with caplog.at_level(logging.ERROR):
        findings = engine.check(document, context)

    assert [f.rule_id for f in findings] == ["one", "two"]
    assert engine.failures == {"broken": "kapot"}
    assert "broken" in caplog.text


def test_disabled_and_ignored_rules_are_skipped(checks, document, context):
    config = RuleConfiguration(checks={"one": False}, ignored_rules=["two"])
    engine = RuleEngine(config, checks=checks)
    assert engine.check(document, context) == []


def test_default_disabled_check_needs_opt_in(document, context):
    """Test dat een check die standaard uit staat alleen via de configuratie draait."""
    optional = [CheckDefinition("one", "One", check_one, default_enabled=False)]

    assert RuleEngine(RuleConfiguration(), checks=optional).check(document, context) == []
    enabled = RuleEngine(RuleConfiguration(checks={"one": True}), checks=optional)
    assert len(enabled.check(document, context)) == 1


def test_exclude_skips_rules_for_one_run(checks, document, context):
    engine = RuleEngine(RuleConfiguration(), checks=checks)
    assert [f.rule_id for f in engine.check(document, context, exclude=("one",))] == ["two"]
    assert [f.rule_id for f in engine.check(document, context)] == ["one", "two"]


def test_collector_is_reset_between_runs(checks, document, context):
    engine = RuleEngine(RuleConfiguration(), checks=checks)
    engine.check(document, context)
    engine.check(document, context)
    assert engine.collector.count() == 2


def test_engine_is_idempotent(parse, context):
    """Test dat twee runs op hetzelfde document identieke findings geven."""
    document = parse('<img src="a.png"><input type="text" id="q"><div id="d"></div><div id="d"></div>')
    engine = RuleEngine()
    assert engine.check(document, context) == engine.check(document, context)


def test_progress_callback(checks, document, context):
    callback = MagicMock()
    engine = RuleEngine(RuleConfiguration(), checks=checks)
    engine.check(document, context, progress_callback=callback)

    statuses = [c.args[3] for c in callback.call_args_list]
    assert statuses == ["start", "error", "start", "found_issues", "start", "found_issues"]
    assert callback.call_args_list[0].args[:2] == (1, 3)


# --- Registry ---

def test_registry_discovers_all_checks_in_sorted_order():
    assert RuleRegistry.get_all_rule_ids() == [
        "aria_landmarks", "color_contrast", "duplicate_ids", "form_errors", "form_labels", "heading",
        "image_alt_text", "interactive_elements", "keyboard_accessibility", "skip_links", "table_structure",
    ]


def test_default_engine_leaves_contrast_off():
    active = [defn.rule_id for defn in RuleEngine().active_checks()]
    assert "color_contrast" not in active
    assert len(active) == 10


# --- Collector ---

def test_collector_summary(context):
    collector = FindingCollector()
    collector.add(check_one(None, context) + check_one(None, context) + check_two(None, context))

    assert collector.any()
    assert collector.summary() == {"total": 3, "by_rule": {"one": 2, "two": 1}, "rules_affected": 2}
    collector.reset()
    assert collector.count() == 0
