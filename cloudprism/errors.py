"""
CloudPrism errors.
"""


class CloudPrismError(Exception):
    """Base exception for all CloudPrism errors."""
    pass


class ConfigurationError(CloudPrismError):
    """Errors in configuration (credentials, region, backend selection)."""
    pass


class StateStoreError(CloudPrismError):
    """Errors raised by a state store backend."""

    def __init__(self, message: str, store: str | None = None):
        super().__init__(message)
        self.store = store


class StateStoreNotFoundError(StateStoreError):
    """The state store backend does not exist."""
    pass


class StateStoreInaccessibleError(StateStoreError):
    """The state store backend exists but cannot be reached or authorized."""
    pass


class StateStoreNotEmptyError(StateStoreError):
    """A non-forced delete was attempted on a state store holding data."""
    pass


class PurgeError(StateStoreError):
    """A single object or version could not be deleted while purging a bucket.

    The bucket is left partially purged. Re-list before retrying.
    """

    def __init__(
        self,
        message: str,
        bucket: str,
        key: str,
        version_id: str | None = None,
    ):
        super().__init__(message, store=bucket)
        self.bucket = bucket
        self.key = key
        self.version_id = version_id


class EngineError(CloudPrismError):
    """The external IaC engine CLI failed."""

    def __init__(self, message: str, stderr: str | None = None):
        super().__init__(message)
        self.stderr = stderr


class IngredientNotAppliedError(CloudPrismError):
    """An ingredient result was requested before the ingredient was applied."""
    pass
