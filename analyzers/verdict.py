from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Union

from analyzers.alerts import Clear, SecurityReport


class InvalidReportList(ValueError):
    pass


@dataclass(frozen=True)
class Verdict:
    repo_full_name: str
    safe_to_use: bool
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {"repoFullName": self.repo_full_name, "safeToUse": self.safe_to_use, "message": self.message}


def is_safe(report: SecurityReport) -> bool:
    return isinstance(report.codeql, Clear) and isinstance(report.dependabot, Clear)


def classify(report: SecurityReport) -> Verdict:
    repo = report.repo_full_name
    if is_safe(report):
        return Verdict(repo, True, f"✅ {repo} is safe to use.")
    err = report.error
    if err is not None:
        return Verdict(repo, False, f"❌ {repo} is NOT safe to use: {err.reason}")
    return Verdict(repo, False, f"❌ {repo} is NOT safe to use due to security alerts.")


def classify_reports(reports: List[Union[SecurityReport, Mapping[str, Any]]]) -> List[Verdict]:
    """Map reports (objects or their JSON dicts) to verdicts, preserving order."""
    if not isinstance(reports, list) or not reports:
        raise InvalidReportList("❌ Invalid input: reportList must be a non-empty array.")
    out: List[Verdict] = []
    for r in reports:
        if not isinstance(r, SecurityReport):
            if not isinstance(r, Mapping):
                raise InvalidReportList(f"❌ Invalid input: report entries must be objects, got {type(r).__name__}.")
            r = SecurityReport.from_dict(dict(r))
        out.append(classify(r))
    return out
