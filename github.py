import os
import time
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import certifi
import jwt  # PyJWT
import requests

log = logging.getLogger(__name__)

GITHUB_API = "https://api.github.com"
USER_AGENT = "repo-seal-relay/1.0"


def ca_bundle() -> str:
    return (
        os.getenv("REQUESTS_CA_BUNDLE")
        or os.getenv("SSL_CERT_FILE")
        or certifi.where()
    )


def read_private_key(path: Optional[str] = None, inline: Optional[str] = None) -> str:
    """Load the App's PEM key from a file (relative to cwd) or an inline value."""
    if path and Path(path).is_file():
        key = Path(path).read_text()
    elif inline:
        key = inline.replace("\\n", "\n").strip()
    else:
        raise RuntimeError(f"GitHub App private key not found (path={path!r}, inline value empty)")
    if not key.startswith("-----BEGIN") or "PRIVATE KEY" not in key:
        raise RuntimeError("GITHUB_APP_PRIVATE_KEY[_PATH] is not a valid PEM private key")
    return key


class GitHubClient:
    def __init__(self, token: str, base_url: str = GITHUB_API, timeout_s: int = 25):
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self.session = requests.Session()
        self.session.headers.update({
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": USER_AGENT,
        })

    def _get_json(self, path: str, params: Optional[dict] = None) -> Any:
        url = f"{self.base_url}{path}"
        r = self.session.get(url, params=params or {}, timeout=self.timeout_s, verify=ca_bundle())
        if r.status_code >= 400:
            log.error("GET %s -> %s %s: %s", url, r.status_code, r.reason, r.text[:800])
        r.raise_for_status()
        return r.json()

    def list_code_scanning_alerts(self, owner: str, repo: str) -> List[Dict[str, Any]]:
        return self._get_json(f"/repos/{owner}/{repo}/code-scanning/alerts")

    def list_dependabot_alerts(self, owner: str, repo: str) -> List[Dict[str, Any]]:
        return self._get_json(f"/repos/{owner}/{repo}/dependabot/alerts")


class CredentialMinter:
    """
    Turns the App's long-lived signing key into installation access tokens.

    The App JWT is back-dated 60s to absorb clock skew and expires after 9
    minutes (GitHub rejects anything over 10). Failures propagate; there is
    no retry.
    """

    def __init__(self, app_id: str, private_key: Optional[str], api_base: str = GITHUB_API, timeout_s: int = 25):
        self.app_id = app_id
        self.private_key = private_key
        self.api_base = api_base.rstrip("/")
        self.timeout_s = timeout_s

    def app_jwt(self) -> str:
        if not self.app_id:
            raise RuntimeError("GITHUB_APP_ID is missing")
        if not self.private_key:
            raise RuntimeError("GitHub App private key was not loaded")
        now = int(time.time())
        payload = {"iat": now - 60, "exp": now + 9 * 60, "iss": self.app_id}
        token = jwt.encode(payload, self.private_key, algorithm="RS256")
        return token.decode() if isinstance(token, (bytes, bytearray)) else token

    def installation_token(self, installation_id: int) -> str:
        app_jwt = self.app_jwt()
        url = f"{self.api_base}/app/installations/{installation_id}/access_tokens"
        r = requests.post(
            url,
            headers={
                "Authorization": f"Bearer {app_jwt}",
                "Accept": "application/vnd.github+json",
                "User-Agent": USER_AGENT,
            },
            timeout=self.timeout_s,
            verify=ca_bundle(),
        )
        if r.status_code >= 400:
            log.error("POST %s -> %s %s: %s", url, r.status_code, r.reason, r.text[:800])
        r.raise_for_status()
        return r.json()["token"]

    def client_for(self, installation_id: int) -> GitHubClient:
        return GitHubClient(self.installation_token(installation_id), base_url=self.api_base, timeout_s=self.timeout_s)
