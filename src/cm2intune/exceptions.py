"""cm2intune exception hierarchy.

All public exceptions inherit from Cm2IntuneError, giving the workflow
layer a single base class to catch when it converts a failed migration
attempt into an ERROR log entry without swallowing unrelated errors.

The decision components (parser, classifier, locator, detection selector,
name normalizer, manifest builder) never raise these for expected
conditions. They return empty results or negative verdicts instead.
"""


class Cm2IntuneError(Exception):
    """Base exception for all cm2intune errors."""


class ConfigurationError(Cm2IntuneError):
    """Raised when required settings are missing or the config file is invalid.

    Fatal at process start: the CLI exits before entering the
    interactive flow.
    """


class ExternalServiceError(Cm2IntuneError):
    """Raised when an external collaborator fails.

    Covers the Configuration Manager site query, container packaging,
    tenant authentication and application publishing.
    """


class StagingError(Cm2IntuneError):
    """Raised when the staging directory cannot be prepared or populated.

    Covers an existing staging directory without ``--force`` and file
    copy failures.
    """
