"""State store on the local filesystem."""

import errno
import logging
import os
import shutil
from pathlib import Path

from cloudprism.engine import PulumiEngine
from cloudprism.errors import StateStoreNotEmptyError

from .base import StateStore

logger = logging.getLogger(__name__)

DEFAULT_PATH = "."
DEFAULT_NAME = ".statestore"


class LocalStateStore(StateStore):
    """State store kept in a directory, addressed as a ``file://`` URI.

    Attributes:
        path: Base directory the store directory lives in (default ".")
        name: Name of the store directory (default ".statestore")
    """

    def __init__(
        self,
        path: str | Path | None = None,
        name: str | None = None,
        engine: PulumiEngine | None = None,
    ):
        super().__init__(engine)
        self.path = Path(path or DEFAULT_PATH)
        self.name = name or DEFAULT_NAME

        logger.debug(f"LocalStateStore(path={self.path}, name={self.name})")

    @property
    def state_path(self) -> Path:
        return self.path / self.name

    @property
    def uri(self) -> str:
        return "file://" + os.path.abspath(self.state_path)

    def open(self) -> str:
        uri = self.uri
        logger.debug(f"LocalStateStore.open() uri={uri}")

        try:
            self.state_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(
                f"LocalStateStore create directory {self.state_path} failed: {e}"
            )
            raise

        try:
            self.engine.login(uri)
        except Exception as e:
            logger.error(f"LocalStateStore login to {uri} failed: {e}")
            raise

        return uri

    def close(self) -> None:
        uri = self.uri
        logger.debug(f"LocalStateStore.close() uri={uri}")

        try:
            self.engine.logout(uri)
        except Exception as e:
            logger.error(f"LocalStateStore logout from {uri} failed: {e}")
            raise

    def delete(self, force: bool = False) -> None:
        logger.debug(
            f"LocalStateStore.delete() state_path={self.state_path} force={force}"
        )

        self.close()

        if force:
            try:
                shutil.rmtree(self.state_path)
            except OSError as e:
                logger.error(
                    f"LocalStateStore remove tree {self.state_path} failed: {e}"
                )
                raise
            return

        try:
            self.state_path.rmdir()
        except OSError as e:
            logger.error(f"LocalStateStore remove {self.state_path} failed: {e}")
            if e.errno in (errno.ENOTEMPTY, errno.EEXIST):
                raise StateStoreNotEmptyError(
                    f"State store directory {self.state_path} is not empty",
                    store=str(self.state_path),
                ) from e
            raise
