import os

SERVICE_NAME = os.getenv("SERVICE_NAME", "cors-proxy")
HOST = os.environ.get("HOST", "0.0.0.0")
PORT = int(os.environ.get("PORT", "8111"))
LOG_LEVEL = os.environ.get("LOG_LEVEL", "info").lower()

# "*" allows every origin (not recommended)
DEFAULT_ALLOWED_ORIGINS = ("https://debridui-alt.vercel.app",)


def _parse_origins(raw: str) -> tuple:
    origins = []
    for entry in raw.split(","):
        entry = entry.strip().rstrip("/")
        if entry and entry not in origins:
            origins.append(entry)
    return tuple(origins)


ALLOWED_ORIGINS = (
    _parse_origins(os.environ["ALLOWED_ORIGINS"])
    if "ALLOWED_ORIGINS" in os.environ
    else DEFAULT_ALLOWED_ORIGINS
)

PROXY_TIMEOUT = float(os.environ.get("PROXY_TIMEOUT", "30"))

OTLP_ENDPOINT = os.getenv("OTLP_ENDPOINT")
OTLP_HEADERS = os.getenv("OTLP_HEADERS", "")
