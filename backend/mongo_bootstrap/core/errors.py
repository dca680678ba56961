"""
Error taxonomy for the bootstrap engine.

Only DatabaseConnectionError and ManifestError abort a run. Every other
error is captured per object and turned into a failed or conflict result.
"""


class BootstrapError(Exception):
    """Base class for all bootstrap errors."""


class DatabaseConnectionError(BootstrapError):
    """The administrative connection could not be established."""


class ManifestError(BootstrapError):
    """The manifest file is missing or does not describe valid specs."""


class SpecConflictError(BootstrapError):
    """An existing object is incompatible with the declared spec."""


class SpecValidationError(BootstrapError):
    """The database rejected a spec document as malformed."""


class ApplyTimeoutError(BootstrapError):
    """Applying a single spec exceeded the per-object timeout."""


class PasswordResolutionError(BootstrapError):
    """A password reference could not be resolved."""


class InsecurePasswordError(PasswordResolutionError):
    """The insecure default password was requested in production mode."""
