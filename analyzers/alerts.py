from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple, Union

import requests

log = logging.getLogger(__name__)

CODEQL_CLEAR = "✅ No CodeQL alerts"
DEPENDABOT_CLEAR = "✅ No Dependabot alerts"
FETCH_FAILED = "Failed to fetch security reports"

# --------------------------------- Results ---------------------------------


@dataclass(frozen=True)
class Clear:
    """No open alerts of this kind."""


@dataclass(frozen=True)
class Alerts:
    items: List[Dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class FetchError:
    reason: str = FETCH_FAILED


AlertResult = Union[Clear, Alerts, FetchError]


def _from_list(items: List[Dict[str, Any]]) -> AlertResult:
    return Alerts(list(items)) if items else Clear()


def _to_wire(result: AlertResult, clear_marker: str) -> Any:
    if isinstance(result, Clear):
        return clear_marker
    if isinstance(result, Alerts):
        return result.items
    return None


def _from_wire(value: Any, clear_marker: str, label: str) -> AlertResult:
    if isinstance(value, list):
        return _from_list(value)
    if value == clear_marker:
        return Clear()
    if value is None:
        return FetchError(f"missing {label} result")
    return FetchError(f"unrecognised {label} result: {str(value)[:80]}")


@dataclass
class SecurityReport:
    repo_full_name: str
    codeql: AlertResult
    dependabot: AlertResult

    @property
    def error(self) -> Union[FetchError, None]:
        for r in (self.codeql, self.dependabot):
            if isinstance(r, FetchError):
                return r
        return None

    def to_dict(self) -> Dict[str, Any]:
        """JSON shape served by /checkIfSafeToUse."""
        err = self.error
        if err is not None:
            return {"repoFullName": self.repo_full_name, "error": err.reason}
        return {
            "repoFullName": self.repo_full_name,
            "codeql": _to_wire(self.codeql, CODEQL_CLEAR),
            "dependabot": _to_wire(self.dependabot, DEPENDABOT_CLEAR),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SecurityReport":
        repo = str(data.get("repoFullName") or "")
        if data.get("error"):
            err = FetchError(str(data["error"]))
            return cls(repo, err, err)
        return cls(
            repo,
            _from_wire(data.get("codeql"), CODEQL_CLEAR, "codeql"),
            _from_wire(data.get("dependabot"), DEPENDABOT_CLEAR, "dependabot"),
        )

# --------------------------------- Fetching ---------------------------------


def split_full_name(repo_full_name: str) -> Tuple[str, str]:
    owner, sep, name = (repo_full_name or "").partition("/")
    if not sep or not owner or not name or "/" in name:
        raise ValueError(f"expected 'owner/name', got {repo_full_name!r}")
    return owner, name


def fetch_security_report(client, repo_full_name: str) -> SecurityReport:
    """
    Fetch CodeQL and Dependabot alerts for one repository.

    `client` is a github.GitHubClient (or anything with the same two list
    methods). Only the first page of each list is read. Any request failure
    collapses into a FetchError on both fields; network, auth and 404 are not
    told apart.
    """
    try:
        owner, name = split_full_name(repo_full_name)
        codeql = client.list_code_scanning_alerts(owner, name)
        dependabot = client.list_dependabot_alerts(owner, name)
    except (requests.RequestException, ValueError) as e:
        log.error("Error fetching security reports for %s: %s", repo_full_name, e)
        err = FetchError(FETCH_FAILED)
        return SecurityReport(repo_full_name, err, err)

    log.info("alerts for %s: codeql=%d dependabot=%d", repo_full_name, len(codeql or []), len(dependabot or []))
    return SecurityReport(repo_full_name, _from_list(codeql or []), _from_list(dependabot or []))
