"""Tests for replaying compiled rules."""

from chronosweep.models import Filter, FilterCriteria, FilterExport
from chronosweep.replay import evaluate_rules
from chronosweep.rules import compile_rules


def _rules(*filters):
    return compile_rules(FilterExport(filters=tuple(filters)), {})


def test_matches_keep_sample_order(alert_messages):
    rules = _rules(Filter(name="alerts", criteria=FilterCriteria(list_id="alerts.example.com")))
    reordered = list(reversed(alert_messages))
    assert evaluate_rules(rules, alert_messages) == {"alerts": ["1", "2"]}
    assert evaluate_rules(rules, reordered) == {"alerts": ["2", "1"]}


def test_evaluable_rule_without_matches_has_empty_entry(alert_messages):
    rules = _rules(Filter(name="quiet", criteria=FilterCriteria(from_="nobody.invalid")))
    assert evaluate_rules(rules, alert_messages) == {"quiet": []}


def test_not_evaluable_rule_is_absent(alert_messages):
    rules = _rules(
        Filter(name="negated", criteria=FilterCriteria(query="-list:alerts.example.com")),
        Filter(name="empty"),
    )
    assert evaluate_rules(rules, alert_messages) == {}


def test_empty_sample(alert_messages):
    rules = _rules(Filter(name="alerts", criteria=FilterCriteria(list_id="alerts.example.com")))
    assert evaluate_rules(rules, []) == {"alerts": []}
