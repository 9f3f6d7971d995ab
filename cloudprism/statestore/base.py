"""Base class for state stores."""

import logging
from abc import ABC, abstractmethod

from cloudprism.engine import PulumiEngine

logger = logging.getLogger(__name__)


class StateStore(ABC):
    """Durable backend where the IaC engine persists stack state.

    Constructing a store has no side effects. ``open()`` creates the backend
    when it is missing and logs the engine in, ``close()`` logs out without
    touching data, and ``delete()`` removes the backend.

    The URI is derived from the identity fields only, so ``uri`` can be read
    at any time and always matches what ``open()`` returns.

    Example:
        store = LocalStateStore(path="/tmp", name=".state")
        uri = store.open()   # "file:///tmp/.state"
        ...
        store.close()
        store.delete(force=True)
    """

    def __init__(self, engine: PulumiEngine | None = None):
        """Initialize the store.

        Args:
            engine: Engine used for login/logout (defaults to PulumiEngine())
        """
        self.engine = engine or PulumiEngine()

    @property
    @abstractmethod
    def uri(self) -> str:
        """State URI handed to the engine."""

    @abstractmethod
    def open(self) -> str:
        """Create the backend if absent, log in to it and return its URI.

        Safe to call repeatedly.
        """

    @abstractmethod
    def close(self) -> None:
        """Log out of the backend without deleting any data."""

    @abstractmethod
    def delete(self, force: bool = False) -> None:
        """Close and delete the backend.

        Args:
            force: Purge all contents first. Without it, deleting a backend
                that still holds data raises StateStoreNotEmptyError.
        """

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(uri={self.uri!r})"
