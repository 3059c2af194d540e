"""Custom exceptions for mintwaterfall."""


class MintWaterfallError(Exception):
    """Base exception for all mintwaterfall errors."""

    pass


class ValidationError(MintWaterfallError):
    """Raised when validation fails."""

    pass


class ConfigError(ValidationError):
    """Raised when a formatting configuration file is invalid."""

    pass


class ParseError(MintWaterfallError):
    """Raised when a YAML or JSON input cannot be read."""

    pass
