"""Naming helpers for deriving deterministic store and bucket identifiers."""

import re
from enum import IntEnum

_ID_PATTERN = re.compile(r"[^a-z0-9-]+")
_ID_WITH_DOTS_PATTERN = re.compile(r"[^a-z0-9.-]+")


class ApplicationEnvironment(IntEnum):
    """Deployment environment of an application."""

    SANDBOX = 0
    DEVELOPMENT = 1
    INTEGRATION = 2
    PRODUCTION = 3

    @property
    def label(self) -> str:
        return self.name.capitalize()

    @property
    def short_code(self) -> str:
        return _SHORT_CODES[self]


_SHORT_CODES = {
    ApplicationEnvironment.SANDBOX: "sbx",
    ApplicationEnvironment.DEVELOPMENT: "dev",
    ApplicationEnvironment.INTEGRATION: "int",
    ApplicationEnvironment.PRODUCTION: "prd",
}

UNKNOWN_ENVIRONMENT_CODE = "etc"


def sanitize(text: str) -> str:
    """Lower-case, turn spaces into hyphens and drop anything outside [a-z0-9-].

    Args:
        text: Arbitrary input, e.g. an application name

    Returns:
        Sanitized identifier (possibly empty)

    Example:
        >>> sanitize("My App!")
        'my-app'
    """
    return _ID_PATTERN.sub("", text.replace(" ", "-").lower())


def sanitize_for_id(text: str) -> str:
    """Like sanitize() but keeps dots, e.g. for version strings or hostnames."""
    return _ID_WITH_DOTS_PATTERN.sub("", text.replace(" ", "-").lower())


def environment_code(environment: ApplicationEnvironment | int) -> str:
    """Return the 3-letter code for an environment, "etc" for unknown values."""
    try:
        return ApplicationEnvironment(environment).short_code
    except ValueError:
        return UNKNOWN_ENVIRONMENT_CODE


def store_name(application: str, environment: ApplicationEnvironment | int) -> str:
    """Derive the state store name for an application in an environment.

    Args:
        application: Application name (sanitized here)
        environment: Known environment or any integer

    Returns:
        "<application-id>-<env-code>", e.g. "my-app-prd"
    """
    return f"{sanitize(application)}-{environment_code(environment)}"
