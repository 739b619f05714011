import os, sys, json
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from config import load_settings
from github import CredentialMinter, read_private_key

settings = load_settings()
INSTALLATION_ID = int(os.environ["INSTALLATION_ID"])

minter = CredentialMinter(
    settings.app_id,
    read_private_key(settings.private_key_path, settings.private_key_inline),
    settings.github_api,
    settings.http_timeout_s,
)
token = minter.installation_token(INSTALLATION_ID)
print(json.dumps({"installation_id": INSTALLATION_ID, "token": token[:6] + "…" + token[-6:]}, indent=2))

repo = os.getenv("REPO")  # optional "owner/name": also dump alert counts
if repo:
    owner, name = repo.split("/", 1)
    gh = minter.client_for(INSTALLATION_ID)
    print(json.dumps({
        "repo": repo,
        "codeql": len(gh.list_code_scanning_alerts(owner, name)),
        "dependabot": len(gh.list_dependabot_alerts(owner, name)),
    }, indent=2))
