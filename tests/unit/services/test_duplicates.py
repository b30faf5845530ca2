from __future__ import annotations

from app.services.duplicates import duplicate_report, duplicate_warning, find_duplicates


def test_matching_ignores_case_and_surrounding_space(record_factory):
    records = [
        record_factory("a", business_name="Kape Co."),
        record_factory("b", business_name="  kape co. "),
        record_factory("c", business_name="Kape Company"),
    ]

    assert [r.id for r in find_duplicates(records, "business_name", "a", "Kape Co.")] == ["b"]


def test_blank_values_never_match(record_factory):
    records = [record_factory("a", link=None), record_factory("b", link="  "), record_factory("c", link="")]

    assert find_duplicates(records, "link", "a", "  ") == []
    assert find_duplicates(records, "link", "a", None) == []


def test_report_lists_each_field_with_duplicates(record_factory):
    records = [
        record_factory("a", business_name="One", mobile_number="0917 000 0000", email="x@y.ph"),
        record_factory("b", business_name="Two", mobile_number="0917 000 0000"),
        record_factory("c", business_name="Three", email="X@Y.PH"),
    ]

    report = duplicate_report(records, records[0])

    assert [r.id for r in report["mobile_number"]] == ["b"]
    assert [r.id for r in report["email"]] == ["c"]
    assert "business_name" not in report


def test_warning_names_the_other_businesses(record_factory):
    duplicates = [record_factory("b", business_name="Two"), record_factory("c", business_name="")]

    assert duplicate_warning("business_name", duplicates) == "Duplicate business name found in: Two, Unnamed"
    assert duplicate_warning("email", []) is None
