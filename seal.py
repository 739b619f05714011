import logging

import requests

from analyzers.verdict import Verdict
from github import ca_bundle

log = logging.getLogger(__name__)


class SealNotifier:
    """Posts a repository's verdict to the certificate service as {"showSeal": bool}."""

    def __init__(self, url: str, timeout_s: int = 25):
        self.url = url
        self.timeout_s = timeout_s

    def post_verdict(self, verdict: Verdict) -> None:
        payload = {"showSeal": bool(verdict.safe_to_use)}
        r = requests.post(self.url, json=payload, timeout=self.timeout_s, verify=ca_bundle())
        if r.status_code >= 400:
            log.error("POST %s -> %s %s body=%s resp=%s", self.url, r.status_code, r.reason, payload, (r.text or "")[:800])
        else:
            log.info("POST %s -> %s repo=%s showSeal=%s", self.url, r.status_code, verdict.repo_full_name, payload["showSeal"])
        r.raise_for_status()
