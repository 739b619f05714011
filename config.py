import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv(dotenv_path=".env")  # Load variables from .env if present (handy for local dev)


def int_env(name: str, default: int) -> int:
    v = (os.environ.get(name) or "").strip()
    if not v:
        return default
    try:
        return int(v)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer, got {v!r}")


@dataclass
class Settings:
    github_api: str = "https://api.github.com"
    app_id: str = ""
    private_key_path: str = "private-key.pem"
    private_key_inline: str = ""
    seal_endpoint_url: str = "http://localhost:4000/api/showSeal"
    http_timeout_s: int = 25
    failure_log_size: int = 50
    log_level: str = "INFO"
    port: int = 3000


def load_settings() -> Settings:
    """Read settings from the environment (after .env has been loaded)."""
    return Settings(
        github_api=os.getenv("GITHUB_API", "https://api.github.com").rstrip("/"),
        app_id=(os.getenv("GITHUB_APP_ID") or "").strip(),
        private_key_path=(os.getenv("GITHUB_APP_PRIVATE_KEY_PATH") or "private-key.pem").strip(),
        private_key_inline=(os.getenv("GITHUB_APP_PRIVATE_KEY") or "").strip(),
        seal_endpoint_url=(os.getenv("SEAL_ENDPOINT_URL") or "http://localhost:4000/api/showSeal").strip(),
        http_timeout_s=int_env("HTTP_TIMEOUT_S", 25),
        failure_log_size=int_env("RELAY_FAILURE_LOG_SIZE", 50),
        log_level=os.getenv("LOGLEVEL", "INFO"),
        port=int_env("PORT", 3000),
    )
