from .auth import AuthProvider, AuthStateListener
from .push import ConsolePushGateway, PushGateway, build_push_gateway

__all__ = [
    "AuthProvider",
    "AuthStateListener",
    "ConsolePushGateway",
    "PushGateway",
    "build_push_gateway",
]
