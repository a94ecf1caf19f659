"""Domain-specific exceptions for the translation bridge.

These exceptions are safe to import from API layers without pulling in any
network client.
"""

from __future__ import annotations

# WebSocket close codes used when a leg connection is turned away.
CLOSE_NORMAL = 1000
CLOSE_UNSUPPORTED_DATA = 1003
CLOSE_POLICY_VIOLATION = 1008


class BridgeError(Exception):
    default_detail: str = "Bridge error"

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.default_detail)
        self.detail = detail or self.default_detail


class HandshakeError(BridgeError):
    close_code: int = CLOSE_UNSUPPORTED_DATA
    default_detail = "Handshake failed"


class ProtocolViolationError(HandshakeError):
    close_code = CLOSE_UNSUPPORTED_DATA
    default_detail = "Invalid setup data"


class SetupTimeoutError(HandshakeError):
    close_code = CLOSE_NORMAL
    default_detail = "Setup timeout"


class LegRejectedError(BridgeError):
    close_code: int = CLOSE_POLICY_VIOLATION
    default_detail = "Leg rejected"


class TranslationBackendError(BridgeError):
    default_detail = "Translation backend failed"


class BackendConnectionError(TranslationBackendError):
    default_detail = "Translation backend connection failed"


class ProvisioningError(TranslationBackendError):
    default_detail = "Translation backend call could not be created"


class PaymentRequiredError(ProvisioningError):
    default_detail = "Subscription issue: Payment required."


class VendorNotConfiguredError(BridgeError):
    default_detail = "No speech to speech vendor configured"
