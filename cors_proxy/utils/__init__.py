import httpx

REDACTED = "REDACTED"


def redact_query(url: str) -> str:
    """Mask query-string values so API keys passed to upstreams stay out of logs."""
    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL:
        return "<unparsable url>"
    if not parsed.query:
        return url
    masked = [(key, REDACTED) for key, _ in parsed.params.multi_items()]
    return str(parsed.copy_with(params=masked))
