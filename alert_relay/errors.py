"""Exception types raised across the relay."""


class AlertRelayError(Exception):
    """Base class for relay errors."""


class ConfigError(AlertRelayError):
    """Configuration could not be loaded or is invalid."""


class TemplateCompileError(AlertRelayError):
    """The message template is not a syntactically valid template.

    Raised once at startup; the relay must not start serving with a broken
    template.
    """


class DecodeError(AlertRelayError, ValueError):
    """A request body is not a well-formed Alertmanager payload."""


class RenderError(AlertRelayError):
    """Rendering the template against one alert or group failed.

    Returned inside a RenderResult rather than raised, so callers can fall
    back to the raw payload.
    """
