"""Migration Controller.

Moves a database through an ordered schema history, one version at a time.
The persisted schema version is the only record of what has been applied:

    - a target at or below the current version is skipped,
    - a target other than ``current + 1`` is rejected,
    - otherwise the migration body and the version bump commit together.

Reading the current version and applying the next one happen in a single
turn of the execution queue, so two threads racing to apply the same
migration cannot both see the old version.
"""

from __future__ import annotations

from typing import Any, Callable, Generic, Iterable, TypeVar

from structure_db.domain.errors import MigrationOrderError
from structure_db.domain.services.execution_queue import ExecutionQueue
from structure_db.domain.services.transaction_controller import TransactionController
from structure_db.domain.value_objects import Migration, validate_version
from structure_db.infrastructure.logging import get_logger
from structure_db.infrastructure.metrics import MetricsRegistry

OwnerT = TypeVar("OwnerT")

logger = get_logger(__name__)


class MigrationController(Generic[OwnerT]):
    """Sequential schema changes against a monotonic version counter.

    Args:
        queue: Execution queue of the owning connection.
        transactions: Transaction controller of the owning connection.
        read_version: Reads the persisted schema version.
        write_version: Writes the persisted schema version.
        metrics: Registry receiving migration outcomes.
    """

    def __init__(
        self,
        queue: ExecutionQueue,
        transactions: TransactionController[OwnerT],
        read_version: Callable[[], int],
        write_version: Callable[[int], None],
        metrics: MetricsRegistry | None = None,
    ) -> None:
        self._queue = queue
        self._transactions = transactions
        self._read_version = read_version
        self._write_version = write_version
        self._metrics = metrics

    def migrate(self, owner: OwnerT, version: int, body: Callable[[OwnerT], Any]) -> bool:
        """Apply ``body`` as the step to ``version``.

        Returns:
            True if the body ran and the version was bumped, False if the
            database was already at or past ``version``.

        Raises:
            MigrationOrderError: If ``version`` skips ahead of ``current + 1``.
            Exception: Whatever ``body`` raised, after rolling back.
        """
        validate_version(version)
        return self._queue.run(lambda: self._apply(owner, version, body))

    def migrate_all(self, owner: OwnerT, migrations: Iterable[Migration]) -> list[int]:
        """Apply every pending migration in ascending version order.

        Returns:
            The versions that were applied by this call.

        Raises:
            MigrationOrderError: If two migrations share a version, or the
                history has a gap above the current version.
        """
        ordered = sorted(migrations, key=lambda migration: migration.version)
        seen: set[int] = set()
        for migration in ordered:
            if migration.version in seen:
                self._count("rejected")
                raise MigrationOrderError(
                    f"Migration version {migration.version} appears more than once"
                )
            seen.add(migration.version)

        def apply_all() -> list[int]:
            applied = []
            for migration in ordered:
                if self._apply(owner, migration.version, migration.body, migration.description):
                    applied.append(migration.version)
            return applied

        return self._queue.run(apply_all)

    def _apply(
        self,
        owner: OwnerT,
        version: int,
        body: Callable[[OwnerT], Any],
        description: str = "",
    ) -> bool:
        current = self._read_version()
        if current >= version:
            self._count("skipped")
            logger.debug("migration_skipped", version=version, current_version=current)
            return False

        if version != current + 1:
            self._count("rejected")
            logger.error("migration_rejected", version=version, current_version=current)
            raise MigrationOrderError(
                f"Cannot migrate to version {version} from version {current}; "
                f"the next migration must be version {current + 1}"
            )

        def unit(target: OwnerT) -> None:
            body(target)
            self._write_version(version)

        try:
            self._transactions.run(owner, unit)
        except BaseException:
            self._count("failed")
            raise

        self._count("applied")
        logger.info("migration_applied", version=version, description=description or None)
        return True

    def _count(self, status: str) -> None:
        if self._metrics is not None:
            self._metrics.migrations_total.labels(status=status).inc()
