"""
WALKTHROUGH
===========
This file defines a small web service (using FastAPI) for a GitHub App that
hands out a "seal" (a safe-to-use badge) for repositories.

  1) When the App is installed, GitHub sends an "installation" webhook. We
     remember every repository in it and which organization owns it.
  2) Callers can ask whether a repo has the App installed (/checkIfAdded) and
     group installed repos under an organization (/addOrgWithRepos).
  3) /checkIfSafeToUse fetches the CodeQL and Dependabot alerts for every repo
     of an organization and says, per repo, whether it is safe to use.
  4) On push / pull_request / alert webhooks we answer GitHub right away and,
     in a background task, compute the verdict for that repo and POST it to
     the certificate service as {"showSeal": true|false}.

Notes:
- "installation id" = the number GitHub gives each install of the App. We
  need it to mint a short-lived token for API calls on that install.
- Nothing is stored on disk. Restarting the service forgets all installs
  until GitHub sends the webhooks again.
- Webhook calls are not signature-checked.
"""

import json
import time
import logging
from collections import deque
from typing import Any, Deque, Dict, List, Optional

import requests
from fastapi import APIRouter, BackgroundTasks, Depends, FastAPI, Header, Query, Request
from fastapi.responses import JSONResponse

from config import Settings, load_settings
from github import CredentialMinter, read_private_key
from registry import Registry, ReposNotInstalledError
from seal import SealNotifier
from analyzers.alerts import SecurityReport, fetch_security_report
from analyzers.verdict import classify_reports

log = logging.getLogger("webhook")

SERVICE_NAME = "repo-seal-relay"

# Events that make us re-check a repo and push a fresh verdict to the seal service.
TRIGGER_EVENTS = {"push", "pull_request", "dependabot_alert", "codeql_alert", "code_scanning_alert"}

router = APIRouter()

# ---------------- Helpers ----------------


def _message(status_code: int, text: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": text})


def get_registry(request: Request) -> Registry:
    return request.app.state.registry


def get_minter(request: Request) -> CredentialMinter:
    return request.app.state.minter


def _obj(value: Any) -> Dict[str, Any]:
    # Webhooks are unauthenticated; any nested field may be the wrong type.
    return value if isinstance(value, dict) else {}


def _installation_id(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    try:
        iid = int(value)
    except (TypeError, ValueError):
        return None
    return iid if iid > 0 else None


def _register_repositories(registry: Registry, repositories: Any, installation: Any) -> int:
    """Replay the repos of an installation payload into the registry; returns how many were added."""
    if not isinstance(installation, dict) or not isinstance(repositories, list):
        log.warning("installation payload without repositories/installation; nothing registered")
        return 0
    installation_id = _installation_id(installation.get("id"))
    org = _obj(installation.get("account")).get("login")
    if not installation_id or not org or not isinstance(org, str):
        log.warning("installation payload missing id or account login; nothing registered")
        return 0

    added = 0
    for repo in repositories:
        full_name = _obj(repo).get("full_name")
        if not full_name or not isinstance(full_name, str):
            continue
        registry.add_repository(full_name, org, installation_id)
        added += 1
    return added

# ---------------- Background relay ----------------


def relay_verdict(
    repo_full_name: str,
    installation_id: int,
    minter: CredentialMinter,
    notifier: SealNotifier,
    registry: Registry,
    failures: Deque[Dict[str, Any]],
) -> None:
    """Mint a token, fetch alerts, classify and post the seal. Runs after the webhook response is sent."""
    try:
        client = minter.client_for(installation_id)
        report = fetch_security_report(client, repo_full_name)
        verdict = classify_reports([report])[0]
        notifier.post_verdict(verdict)
        log.info("relay repo=%s org=%s safe=%s", repo_full_name, registry.org_for_repo(repo_full_name), verdict.safe_to_use)
    except Exception as e:
        log.error("relay failed for %s: %s", repo_full_name, e)
        failures.append({"repoFullName": repo_full_name, "error": str(e), "at": int(time.time())})

# ---------------- Health ----------------


@router.get("/health", include_in_schema=False)
def health(request: Request) -> Dict[str, Any]:
    state = request.app.state
    failures = state.relay_failures
    return {
        "ok": True,
        "service": SERVICE_NAME,
        "uptime_s": int(time.time() - state.boot_ts),
        "installed": state.registry.installed_count(),
        "relay_failures": len(failures),
        "last_failure": failures[-1] if failures else None,
    }

# ---------------- Registry endpoints ----------------


@router.get("/checkIfAdded")
def check_if_added(repoUrl: Optional[str] = Query(None), registry: Registry = Depends(get_registry)):
    if registry.is_installed(repoUrl):
        return {"message": f"✅ Repository {repoUrl} has installed the app."}
    return _message(404, f"❌ Repository {repoUrl} has NOT installed the app.")


@router.post("/addOrgWithRepos")
async def add_org_with_repos(request: Request, registry: Registry = Depends(get_registry)):
    try:
        body = await request.json()
    except ValueError:
        body = None
    org = body.get("org") if isinstance(body, dict) else None
    repos = body.get("repos") if isinstance(body, dict) else None

    if not org or not isinstance(org, str) or not isinstance(repos, list) or not repos \
            or not all(isinstance(r, str) for r in repos):
        return _message(400, "❌ Invalid request. Provide 'org' and a non-empty array of 'repos'.")

    try:
        registry.register_org_repos(org, repos)
    except ReposNotInstalledError as e:
        return _message(400, f"❌ {e}")

    return {"message": f"✅ Added organization {org} with repositories: {', '.join(repos)}"}


@router.get("/checkIfSafeToUse")
def check_if_safe_to_use(
    org: Optional[str] = Query(None),
    registry: Registry = Depends(get_registry),
    minter: CredentialMinter = Depends(get_minter),
):
    repos = registry.repos_for_org(org)
    if repos is None:
        return _message(404, f"❌ No repositories found for org: {org}")

    reports: List[SecurityReport] = []
    for repo_full_name in repos:
        installation_id = registry.installation_id(repo_full_name)
        if not installation_id:
            continue
        try:
            client = minter.client_for(installation_id)
        except (requests.RequestException, RuntimeError) as e:
            log.error("token acquisition failed for %s: %s", repo_full_name, e)
            return _message(500, "❌ Token acquisition failed")
        reports.append(fetch_security_report(client, repo_full_name))

    if not reports:
        return []
    verdicts = classify_reports(reports)
    return [
        {**report.to_dict(), "safeToUse": v.safe_to_use, "message": v.message}
        for report, v in zip(reports, verdicts)
    ]

# ---------------- Webhook ----------------


@router.post("/webhook")
async def webhook(
    request: Request,
    background: BackgroundTasks,
    x_github_event: Optional[str] = Header(None, alias="X-GitHub-Event"),
    x_github_delivery: Optional[str] = Header(None, alias="X-GitHub-Delivery"),
):
    body: bytes = await request.body()
    log.info("📩 delivery=%s event=%s len=%d", x_github_delivery, x_github_event, len(body))

    try:
        payload = json.loads(body.decode("utf-8"))
    except ValueError:
        payload = None
    if not isinstance(payload, dict):
        log.warning("delivery=%s: body is not a JSON object; ignoring", x_github_delivery)
        return {"ok": False, "event": x_github_event, "error": "Invalid JSON"}

    state = request.app.state

    if x_github_event == "ping":
        return {"ok": True, "pong": True}

    if x_github_event == "installation":
        added = _register_repositories(state.registry, payload.get("repositories"), payload.get("installation"))
        return {"ok": True, "event": x_github_event, "action": payload.get("action"), "added": added}

    if x_github_event == "installation_repositories":
        added = _register_repositories(state.registry, payload.get("repositories_added"), payload.get("installation"))
        return {"ok": True, "event": x_github_event, "action": payload.get("action"), "added": added}

    if x_github_event in TRIGGER_EVENTS:
        repo_full_name = _obj(payload.get("repository")).get("full_name")
        installation_id = _installation_id(_obj(payload.get("installation")).get("id"))
        if not repo_full_name or not isinstance(repo_full_name, str) or not installation_id:
            log.warning("delivery=%s event=%s without repository/installation; ignoring", x_github_delivery, x_github_event)
            return {"ok": True, "event": x_github_event, "ignored": "missing repository or installation"}

        background.add_task(
            relay_verdict,
            repo_full_name, installation_id,
            state.minter, state.notifier, state.registry, state.relay_failures,
        )
        return {"ok": True, "event": x_github_event, "queued": repo_full_name}

    return {"ok": True, "ignored_event": x_github_event}

# ---------------- App factory ----------------


def create_app(
    settings: Optional[Settings] = None,
    registry: Optional[Registry] = None,
    minter: Optional[CredentialMinter] = None,
    notifier: Optional[SealNotifier] = None,
) -> FastAPI:
    settings = settings or load_settings()
    logging.basicConfig(level=settings.log_level)

    app = FastAPI(title="Repo Seal Relay", version="1.0.0")
    app.state.settings = settings
    app.state.registry = registry if registry is not None else Registry()
    app.state.minter = minter or CredentialMinter(settings.app_id, None, settings.github_api, settings.http_timeout_s)
    app.state.notifier = notifier or SealNotifier(settings.seal_endpoint_url, settings.http_timeout_s)
    app.state.relay_failures = deque(maxlen=max(settings.failure_log_size, 1))
    app.state.boot_ts = time.time()
    app.include_router(router)

    @app.on_event("startup")
    def _load_signing_key() -> None:
        m = app.state.minter
        if m.private_key:
            return
        try:
            m.private_key = read_private_key(settings.private_key_path, settings.private_key_inline)
            log.info("GitHub App key loaded for app_id=%s", settings.app_id or "<unset>")
        except (OSError, RuntimeError) as e:
            log.warning("GitHub App key not loaded; token minting will fail: %s", e)

    @app.on_event("startup")
    def _startup_log_routes() -> None:
        from starlette.routing import Route
        for r in app.router.routes:
            if isinstance(r, Route):
                log.info("route registered: %s methods=%s", r.path, sorted(r.methods))

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=app.state.settings.port)
