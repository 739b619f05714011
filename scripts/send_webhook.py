import os, sys, json, uuid, requests
from dotenv import load_dotenv

load_dotenv()
url = os.getenv("RELAY_URL", "http://127.0.0.1:3000") + "/webhook"

# usage: send_webhook.py [installation|push|ping] [owner/repo] [installation_id]
event = sys.argv[1] if len(sys.argv) > 1 else "ping"
repo = sys.argv[2] if len(sys.argv) > 2 else "octo/demo-repo"
installation_id = int(sys.argv[3]) if len(sys.argv) > 3 else 1

if event == "installation":
    payload = {
        "action": "created",
        "installation": {"id": installation_id, "account": {"login": repo.split("/")[0]}},
        "repositories": [{"full_name": repo}],
    }
elif event == "ping":
    payload = {"zen": "Keep it logically awesome."}
else:
    payload = {"repository": {"full_name": repo}, "installation": {"id": installation_id}}

body = json.dumps(payload, separators=(",", ":")).encode()
headers = {
    "Content-Type": "application/json",
    "X-GitHub-Event": event,
    "X-GitHub-Delivery": str(uuid.uuid4()),
}
r = requests.post(url, data=body, headers=headers, timeout=10)
print(r.status_code, r.text)
