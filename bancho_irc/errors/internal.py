"""Centralized internal error hierarchy.

These exceptions give semantic categories to everything the client can
raise or publish on its ``error`` event channel.

Classes:
  InternalError          – Base for all internal errors.
  TransportError         – Socket error, EOF or forced close (reconnect path).
  TransportTimeoutError  – No data received within the idle timeout.
  ProtocolViolation      – Malformed input rejected before reaching the wire.
  StateError             – Operation not allowed in the current connect state.
  AuthenticationError    – The gateway refused our password.
  RemoteRejection        – The gateway refused a join/part.
  MetadataLookupError    – The user metadata lookup failed.

Quota deferral is not an error: the rate limiter queues instead of failing.
"""

from __future__ import annotations

from collections.abc import Mapping


class InternalError(Exception):
    """Base class for all internal client errors with metadata support.

    Attributes:
        data: Dictionary containing arbitrary structured context data.

    Args:
        message: Descriptive error message.
        data: Optional mapping of additional context data.
    """

    data: dict[str, object]

    def __init__(
        self, message: str, *, data: Mapping[str, object] | None = None
    ) -> None:
        super().__init__(message)
        # Copy into a plain dict to avoid unexpected mutations from caller.
        self.data = dict(data) if data else {}


class TransportError(InternalError):
    """Exception raised for socket level failures.

    Always triggers the reconnection path unless reconnection is disabled.
    """


class TransportTimeoutError(TransportError):
    """Exception raised when the socket stayed silent past the idle timeout."""

    def __init__(self, timeout: float) -> None:
        super().__init__("Timeout reached", data={"timeout": timeout})
        self.timeout = timeout


class ProtocolViolation(InternalError, ValueError):
    """Exception raised for input that can never be sent to the gateway."""


class InvalidChannelNameError(ProtocolViolation):
    def __init__(self, name: str) -> None:
        super().__init__("Invalid channel name!", data={"channel": name})
        self.name = name


class InvalidUserIdError(ProtocolViolation):
    def __init__(self, user_id: object) -> None:
        super().__init__("id needs to be a number!", data={"user_id": user_id})
        self.user_id = user_id


class StateError(InternalError):
    """Exception raised when the connect state forbids an operation."""


class AlreadyConnectedError(StateError):
    def __init__(self) -> None:
        super().__init__("Already connected/connecting")


class NotConnectedError(StateError):
    def __init__(self, message: str = "Currently disconnected!") -> None:
        super().__init__(message)


class AuthenticationError(InternalError):
    """Exception raised when the gateway rejects the IRC password."""


class RemoteRejection(InternalError):
    """Exception raised when the gateway refuses a join or part.

    Args:
        message: The reason sent by the server.
        channel: Name of the channel the request was about.
    """

    def __init__(self, message: str, *, channel: str) -> None:
        super().__init__(message, data={"channel": channel})
        self.channel = channel


class MetadataLookupError(InternalError):
    """Exception raised when resolving user metadata fails."""


__all__ = [
    "InternalError",
    "TransportError",
    "TransportTimeoutError",
    "ProtocolViolation",
    "InvalidChannelNameError",
    "InvalidUserIdError",
    "StateError",
    "AlreadyConnectedError",
    "NotConnectedError",
    "AuthenticationError",
    "RemoteRejection",
    "MetadataLookupError",
]
