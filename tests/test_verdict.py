import pytest

from analyzers.alerts import Alerts, Clear, FetchError, SecurityReport
from analyzers.verdict import InvalidReportList, classify_reports


def test_both_clear_is_safe():
    verdicts = classify_reports([
        {"repoFullName": "a/b", "codeql": "✅ No CodeQL alerts", "dependabot": "✅ No Dependabot alerts"}
    ])
    assert len(verdicts) == 1
    v = verdicts[0]
    assert v.repo_full_name == "a/b"
    assert v.safe_to_use is True
    assert v.message == "✅ a/b is safe to use."


def test_codeql_alerts_make_repo_unsafe():
    verdicts = classify_reports([
        {"repoFullName": "a/b", "codeql": [{"number": 1, "state": "open"}], "dependabot": "✅ No Dependabot alerts"}
    ])
    assert verdicts[0].safe_to_use is False
    assert verdicts[0].message.startswith("❌")
    assert verdicts[0].to_dict() == {
        "repoFullName": "a/b",
        "safeToUse": False,
        "message": "❌ a/b is NOT safe to use due to security alerts.",
    }


def test_dependabot_alerts_make_repo_unsafe():
    report = SecurityReport("a/b", Clear(), Alerts([{"number": 9}]))
    assert classify_reports([report])[0].safe_to_use is False


def test_fetch_error_is_unsafe_with_reason():
    err = FetchError("Failed to fetch security reports")
    v = classify_reports([SecurityReport("a/b", err, err)])[0]
    assert v.safe_to_use is False
    assert v.message == "❌ a/b is NOT safe to use: Failed to fetch security reports"


def test_error_dict_is_unsafe():
    v = classify_reports([{"repoFullName": "a/b", "error": "Failed to fetch security reports"}])[0]
    assert v.safe_to_use is False


def test_marker_like_strings_are_not_clear():
    # Only the exact marker (or an empty list) counts as clear.
    v = classify_reports([{"repoFullName": "a/b", "codeql": "✅ looks fine to me", "dependabot": []}])[0]
    assert v.safe_to_use is False


def test_order_is_preserved():
    verdicts = classify_reports([
        SecurityReport("x/1", Clear(), Clear()),
        SecurityReport("x/2", Alerts([{}]), Clear()),
    ])
    assert [(v.repo_full_name, v.safe_to_use) for v in verdicts] == [("x/1", True), ("x/2", False)]


@pytest.mark.parametrize("bad", [["a/b"], [None], [SecurityReport("a/b", Clear(), Clear()), 42]])
def test_rejects_non_report_entries(bad):
    with pytest.raises(InvalidReportList):
        classify_reports(bad)


@pytest.mark.parametrize("bad", [[], None, "a/b", {"repoFullName": "a/b"}, ("tuple",)])
def test_rejects_empty_or_non_list(bad):
    with pytest.raises(InvalidReportList):
        classify_reports(bad)
