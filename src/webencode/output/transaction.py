"""All-or-nothing ownership of a run's output directory.

The directory is created when the transaction is entered and survives only
if the transaction was committed and the scope exited without an exception.
Every other exit (job failure, interrupt, unexpected error) removes the whole
directory, so a run either leaves a complete artifact set or nothing.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from types import TracebackType

from webencode.exceptions import OutputDirectoryExistsError

logger = logging.getLogger(__name__)


class OutputTransaction:
    """Context manager owning the output directory for one run.

    Example:
        with OutputTransaction(run.output_dir) as transaction:
            engine.run(jobs)
            transaction.commit()
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self._created = False
        self._committed = False
        self._rolled_back = False

    @property
    def committed(self) -> bool:
        """True once the directory has been kept at scope exit."""
        return self._committed and not self._rolled_back

    @property
    def rolled_back(self) -> bool:
        return self._rolled_back

    def __enter__(self) -> OutputTransaction:
        """Create the output directory.

        Raises:
            OutputDirectoryExistsError: If the directory already exists.
            OSError: If the directory cannot be created.
        """
        try:
            # Parent is the input's own directory, which must already exist
            self.path.mkdir(parents=False, exist_ok=False)
        except FileExistsError as e:
            raise OutputDirectoryExistsError(self.path) from e
        self._created = True
        logger.debug("Created output directory %s", self.path)
        return self

    def commit(self) -> None:
        """Mark the run successful; the directory is kept at scope exit."""
        if not self._created:
            raise RuntimeError("Cannot commit a transaction that was never entered")
        self._committed = True

    def rollback(self) -> None:
        """Delete the output directory and everything in it."""
        if not self._created or self._rolled_back:
            return
        self._rolled_back = True
        logger.info("Removing output directory %s", self.path)
        try:
            shutil.rmtree(self.path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.error("Could not remove output directory %s: %s", self.path, e)
            raise

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if exc_type is None and self._committed:
            logger.debug("Kept output directory %s", self.path)
            return
        if exc_type is None:
            logger.warning("Run ended without commit; discarding output")
        self.rollback()
