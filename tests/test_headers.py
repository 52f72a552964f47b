"""Tests for header normalization helpers."""

from chronosweep.headers import domain_of, normalize_list_id, split_candidates


def test_normalize_list_id_strips_brackets_and_case():
    assert normalize_list_id("<Alerts.Example.COM>") == "alerts.example.com"
    assert normalize_list_id('  "<news.example.net>" ') == "news.example.net"
    assert normalize_list_id("plain.example.org") == "plain.example.org"


def test_normalize_list_id_display_name_form():
    assert normalize_list_id("Example Alerts <alerts.example.com>") == "alerts.example.com"


def test_normalize_list_id_drops_display_text():
    assert normalize_list_id("'alerts.example.com'\t") == "alerts.example.com"
    assert normalize_list_id("a <b> <c.example.com>") == "c.example.com"


def test_normalize_list_id_empty():
    assert normalize_list_id("") == ""
    assert normalize_list_id("   ") == ""
    assert normalize_list_id("<>") == ""


def test_split_candidates_separators_and_or():
    assert split_candidates("a@x.com, b@y.com; c@z.com | d@w.com") == [
        "a@x.com",
        "b@y.com",
        "c@z.com",
        "d@w.com",
    ]
    assert split_candidates("(Foo OR \"Bar\")") == ["foo", "bar"]
    assert split_candidates("or OR") == []


def test_domain_of_address_forms():
    assert domain_of("alerts@Example.com") == "example.com"
    assert domain_of("Alice Smith <alice@Mail.Example.org>") == "mail.example.org"
    assert domain_of('"Doe, John" <john@example.net>, other@else.com') == "example.net"


def test_domain_of_fallback_and_trim():
    assert domain_of("alerts@example.com.") == "example.com"
    assert domain_of("no address here") == ""
    assert domain_of("") == ""
