from cors_proxy.forwarding.errors import ProxyError, ProxyErrorKind
from cors_proxy.forwarding.handler import ForwardingHandler
from cors_proxy.forwarding.origins import AllowList, ProxyConfig, load_config
from cors_proxy.forwarding.route import router

__all__ = [
    "AllowList",
    "ForwardingHandler",
    "ProxyConfig",
    "ProxyError",
    "ProxyErrorKind",
    "load_config",
    "router",
]
