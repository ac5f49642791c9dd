from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, Optional

from cors_proxy import vars as settings

WILDCARD = "*"


@dataclass(frozen=True)
class AllowList:
    """Read-only set of origins permitted to use the proxy.

    Built once at startup and shared by every request. An entry equal to
    ``*`` allows any origin and makes the proxy answer with a wildcard
    ``Access-Control-Allow-Origin``.
    """

    origins: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def of(cls, origins: Iterable[str]) -> "AllowList":
        return cls(frozenset(origins))

    @property
    def allows_any(self) -> bool:
        return WILDCARD in self.origins

    def is_allowed(self, origin: Optional[str]) -> bool:
        # Non-browser and same-origin callers send no Origin at all
        if not origin:
            return True
        return self.allows_any or origin in self.origins

    def allow_origin_value(self, origin: Optional[str]) -> str:
        if self.allows_any:
            return WILDCARD
        return origin or ""


@dataclass(frozen=True)
class ProxyConfig:
    allow_list: AllowList
    timeout: float = 30.0


def load_config() -> ProxyConfig:
    """Build the process-wide configuration from ``cors_proxy.vars``."""
    return ProxyConfig(
        allow_list=AllowList.of(settings.ALLOWED_ORIGINS),
        timeout=settings.PROXY_TIMEOUT,
    )
