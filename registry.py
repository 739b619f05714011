"""
Installation registry.

Two maps are tracked:
  - installed repositories: "owner/name" -> installation id
  - organization repo sets: org login -> ordered list of "owner/name"

Storage is delegated to a RegistryStore so a persistent backend can be dropped
in; only the in-memory store ships. FastAPI runs sync routes and background
tasks on a thread pool, so every read-modify-write happens under one lock.
"""

import logging
import threading
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

log = logging.getLogger(__name__)


class ReposNotInstalledError(ValueError):
    def __init__(self, missing: List[str]):
        self.missing = list(missing)
        super().__init__(
            "The following repositories have not installed the app and cannot be added: "
            + ", ".join(self.missing)
        )


class RegistryStore:
    """Storage backend interface for Registry."""

    def get_installation(self, repo: str) -> Optional[int]:
        raise NotImplementedError

    def set_installation(self, repo: str, installation_id: int) -> None:
        raise NotImplementedError

    def count_installations(self) -> int:
        raise NotImplementedError

    def get_org_repos(self, org: str) -> Optional[List[str]]:
        raise NotImplementedError

    def set_org_repos(self, org: str, repos: List[str]) -> None:
        raise NotImplementedError

    def iter_orgs(self) -> Iterator[Tuple[str, List[str]]]:
        raise NotImplementedError


class InMemoryStore(RegistryStore):
    """Process-local store. Everything is lost on restart."""

    def __init__(self) -> None:
        self._installed: Dict[str, int] = {}
        self._orgs: Dict[str, List[str]] = {}

    def get_installation(self, repo: str) -> Optional[int]:
        return self._installed.get(repo)

    def set_installation(self, repo: str, installation_id: int) -> None:
        self._installed[repo] = installation_id

    def count_installations(self) -> int:
        return len(self._installed)

    def get_org_repos(self, org: str) -> Optional[List[str]]:
        repos = self._orgs.get(org)
        return list(repos) if repos is not None else None

    def set_org_repos(self, org: str, repos: List[str]) -> None:
        self._orgs[org] = list(repos)

    def iter_orgs(self) -> Iterator[Tuple[str, List[str]]]:
        for org, repos in list(self._orgs.items()):
            yield org, list(repos)


def _union(existing: List[str], new: Iterable[str]) -> List[str]:
    out = list(existing)
    for repo in new:
        if repo not in out:
            out.append(repo)
    return out


class Registry:
    def __init__(self, store: Optional[RegistryStore] = None):
        self._store = store if store is not None else InMemoryStore()
        self._lock = threading.RLock()

    def add_repository(self, repo: str, org: str, installation_id: int) -> None:
        with self._lock:
            self._store.set_installation(repo, int(installation_id))
            current = self._store.get_org_repos(org) or []
            self._store.set_org_repos(org, _union(current, [repo]))
        log.info("registered repo=%s org=%s installation=%s", repo, org, installation_id)

    def is_installed(self, repo: Optional[str]) -> bool:
        if not repo:
            return False
        with self._lock:
            return self._store.get_installation(repo) is not None

    def installation_id(self, repo: str) -> Optional[int]:
        with self._lock:
            return self._store.get_installation(repo)

    def installed_count(self) -> int:
        with self._lock:
            return self._store.count_installations()

    def register_org_repos(self, org: str, repos: List[str]) -> List[str]:
        """All-or-nothing: any uninstalled repo rejects the batch before anything is written."""
        with self._lock:
            missing = [r for r in repos if self._store.get_installation(r) is None]
            if missing:
                raise ReposNotInstalledError(missing)
            merged = _union(self._store.get_org_repos(org) or [], repos)
            self._store.set_org_repos(org, merged)
            return merged

    def repos_for_org(self, org: Optional[str]) -> Optional[List[str]]:
        if not org:
            return None
        with self._lock:
            return self._store.get_org_repos(org)

    def org_for_repo(self, repo: str) -> Optional[str]:
        with self._lock:
            for org, repos in self._store.iter_orgs():
                if repo in repos:
                    return org
        return None
