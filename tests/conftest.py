from dotenv import load_dotenv
load_dotenv()  # ensures GITHUB_APP_* / SEAL_ENDPOINT_URL from .env are visible to pytest
import warnings

import pytest
import requests
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

warnings.filterwarnings(
    "ignore",
    message=r"on_event is deprecated, use lifespan event handlers instead\.",
    category=DeprecationWarning,
    module=r"fastapi\..*",
)


class FakeResp:
    """Just enough of requests.Response for the code under test."""

    def __init__(self, status_code=200, json_obj=None, text="", headers=None):
        self.status_code = status_code
        self._json = json_obj
        self.text = text
        self.reason = "OK" if status_code < 400 else "Error"
        self.headers = headers or {}

    def json(self):
        if self._json is None:
            raise ValueError("No JSON")
        return self._json

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} {self.reason}", response=self)


class FakeGitHub:
    def __init__(self, codeql=None, dependabot=None, exc=None):
        self.codeql = codeql if codeql is not None else []
        self.dependabot = dependabot if dependabot is not None else []
        self.exc = exc
        self.calls = []

    def list_code_scanning_alerts(self, owner, repo):
        self.calls.append(("codeql", owner, repo))
        if self.exc:
            raise self.exc
        return self.codeql

    def list_dependabot_alerts(self, owner, repo):
        self.calls.append(("dependabot", owner, repo))
        if self.exc:
            raise self.exc
        return self.dependabot


class FakeMinter:
    private_key = "already-loaded"

    def __init__(self, clients=None, default=None, exc=None):
        self.clients = clients or {}
        self.default = default or FakeGitHub()
        self.exc = exc
        self.calls = []

    def client_for(self, installation_id):
        self.calls.append(installation_id)
        if self.exc:
            raise self.exc
        return self.clients.get(installation_id, self.default)


class FakeNotifier:
    def __init__(self, exc=None):
        self.posted = []
        self.exc = exc

    def post_verdict(self, verdict):
        if self.exc:
            raise self.exc
        self.posted.append(verdict)


@pytest.fixture(scope="session")
def rsa_keys():
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_pem = key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    ).decode()
    public_pem = key.public_key().public_bytes(
        serialization.Encoding.PEM,
        serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode()
    return private_pem, public_pem


@pytest.fixture
def settings():
    from config import Settings
    return Settings(app_id="12345", seal_endpoint_url="https://seal.test/api/showSeal", http_timeout_s=5)
