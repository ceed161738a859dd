"""
pulsezone error kinds.

Sources and the classifier raise these; the monitoring controller turns
them into a user-facing ``last_error`` message.
"""


class PulseZoneError(Exception):
    """Base exception for pulsezone."""

    pass


class DeviceUnavailable(PulseZoneError):
    """Heart-rate hardware or service is not available on this machine."""

    pass


class AuthorizationFailed(PulseZoneError):
    """Access to the heart-rate source was refused or could not be set up."""

    pass


class FetchFailed(PulseZoneError):
    """A one-shot read from the heart-rate source failed."""

    pass


class InvalidParameter(PulseZoneError):
    """A caller passed a value outside an operation's domain."""

    pass


class ConfigurationError(PulseZoneError):
    """Configuration is invalid."""

    pass
