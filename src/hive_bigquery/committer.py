"""Job-level commit orchestration for BigQuery writes.

This module provides CommitOrchestrator, which finalizes a write job exactly
once: it reads the persisted JobDetails, dispatches to the direct or indirect
write strategy, and always removes the job's work directory afterwards.

State machine per job:

    commit: RUNNING → COMMITTING → STRATEGY_DISPATCH → CLEANUP → COMMITTED
    abort:  RUNNING → ABORTING → ROLLBACK → CLEANUP → ABORTED

Coordination happens at job granularity only; the task hooks are no-ops.
Errors from the store and the strategies propagate unchanged and nothing is
retried here.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field

from hive_bigquery.config import WriteMethod
from hive_bigquery.errors import JobStateMismatchError, MissingOutputTableError
from hive_bigquery.observability import commit_operation, get_logger, get_tracer

if TYPE_CHECKING:
    from opentelemetry.trace import Tracer
    from structlog.stdlib import BoundLogger

    from hive_bigquery.job_details import JobDetails, JobDetailsStore


class JobState(str, Enum):
    """Lifecycle states of a job during finalization."""

    RUNNING = "running"
    COMMITTING = "committing"
    STRATEGY_DISPATCH = "strategy_dispatch"
    CLEANUP = "cleanup"
    COMMITTED = "committed"
    ABORTING = "aborting"
    ROLLBACK = "rollback"
    ABORTED = "aborted"


class JobContext(BaseModel):
    """What the execution engine knows about the finishing job.

    Attributes:
        output_table: Declared output table (db.table); keys the JobDetails.
        properties: Job configuration (write method, work dir, ...).
        job_id: Optional engine job id, for logging.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    output_table: str | None = Field(default=None, description="Declared output table")
    properties: dict[str, str] = Field(default_factory=dict, description="Job configuration")
    job_id: str | None = Field(default=None, description="Engine job id")


@runtime_checkable
class WriteStrategy(Protocol):
    """Finalizes the data written by one write method."""

    def commit_job(self, properties: Mapping[str, str], details: JobDetails) -> None:
        """Make the job's written data visible in BigQuery."""
        ...


@runtime_checkable
class RollbackWriteStrategy(WriteStrategy, Protocol):
    """Write strategy that can also discard a failed job's data."""

    def abort_job(self, properties: Mapping[str, str], details: JobDetails) -> None:
        """Discard the job's pending data."""
        ...


@runtime_checkable
class WorkDirCleanup(Protocol):
    """Removes a job's temporary work directory."""

    def delete(self, job_key: str) -> None:
        """Delete the work directory of the job."""
        ...


class CommitOrchestrator:
    """Finalize BigQuery write jobs.

    Example:
        >>> orchestrator = CommitOrchestrator(store, direct, indirect, cleaner)
        >>> context = JobContext(
        ...     output_table="sales.orders",
        ...     properties={"bq.write.method": "indirect"},
        ... )
        >>> orchestrator.commit(context)
        <JobState.COMMITTED: 'committed'>
    """

    def __init__(
        self,
        store: JobDetailsStore,
        direct: RollbackWriteStrategy,
        indirect: WriteStrategy,
        cleaner: WorkDirCleanup,
        *,
        tracer: Tracer | None = None,
        logger: BoundLogger | None = None,
    ) -> None:
        """Initialize CommitOrchestrator.

        Args:
            store: Persistence of the write-phase JobDetails.
            direct: Strategy for the direct write method; also handles aborts.
            indirect: Strategy for the indirect write method.
            cleaner: Removes job work directories.
            tracer: Optional OpenTelemetry tracer. Uses default if not provided.
            logger: Optional structlog logger. Uses default if not provided.
        """
        self._store = store
        self._direct = direct
        self._strategies: dict[WriteMethod, WriteStrategy] = {
            WriteMethod.DIRECT: direct,
            WriteMethod.INDIRECT: indirect,
        }
        self._cleaner = cleaner
        self._tracer = tracer or get_tracer()
        self._logger = logger or get_logger()

    # ==================== Job Hooks ====================

    def setup_job(self, context: JobContext) -> None:
        """Do nothing; the write phase prepares its own state."""

    def commit(self, context: JobContext) -> JobState:
        """Commit a successful job.

        Args:
            context: The finishing job.

        Returns:
            JobState.COMMITTED.

        Raises:
            MissingOutputTableError: If the job declares no output table.
            JobDetailsNotFoundError: If no details were persisted.
            InvalidWriteMethodError: If the write method is not recognized.
                No strategy runs and no cleanup happens in that case.
        """
        job_key = self._job_key(context)
        with commit_operation("commit", output_table=job_key):
            self._transition(job_key, JobState.COMMITTING, job_id=context.job_id)
            details = self._store.get(job_key)
            self.finalize(context.properties, details)
            return JobState.COMMITTED

    def finalize(self, properties: Mapping[str, str], details: JobDetails) -> None:
        """Dispatch to the configured write strategy, then clean up.

        Cleanup runs once the strategy has been dispatched, whether it
        succeeded or raised.
        """
        job_key = details.output_table
        write_method = WriteMethod.from_properties(properties)
        strategy = self._strategies[write_method]

        self._transition(job_key, JobState.STRATEGY_DISPATCH, write_method=write_method.value)
        try:
            strategy.commit_job(properties, details)
        finally:
            self._transition(job_key, JobState.CLEANUP)
            self._cleanup(job_key)
        self._transition(job_key, JobState.COMMITTED, write_method=write_method.value)

    def abort(self, context: JobContext, status: int | None = None) -> JobState:
        """Abort a failed job.

        Rolls back through the direct strategy whatever the write method;
        indirect writes leave nothing in BigQuery until their load job runs.

        Args:
            context: The failing job.
            status: Engine-specific final job status, for logging.

        Returns:
            JobState.ABORTED.

        Raises:
            MissingOutputTableError: If the job declares no output table.
            JobStateMismatchError: If the persisted details belong to another
                output table. Nothing is rolled back in that case.
        """
        job_key = self._job_key(context)
        with commit_operation("abort", output_table=job_key):
            self._transition(job_key, JobState.ABORTING, job_id=context.job_id, status=status)
            details = self._store.get(job_key)
            if details.output_table != job_key:
                raise JobStateMismatchError(expected=job_key, actual=details.output_table)

            self._transition(job_key, JobState.ROLLBACK)
            try:
                self._direct.abort_job(context.properties, details)
            finally:
                self._transition(job_key, JobState.CLEANUP)
                self._cleanup(details.output_table)
            self._transition(job_key, JobState.ABORTED)
            return JobState.ABORTED

    # ==================== Task Hooks ====================

    def setup_task(self, task: Any) -> None:
        """Do nothing."""

    def needs_task_commit(self, task: Any) -> bool:
        """Tasks never commit individually."""
        return False

    def commit_task(self, task: Any) -> None:
        """Do nothing."""

    def abort_task(self, task: Any) -> None:
        """Do nothing."""

    # ==================== Helpers ====================

    @staticmethod
    def _job_key(context: JobContext) -> str:
        if not context.output_table:
            raise MissingOutputTableError()
        return context.output_table

    def _cleanup(self, job_key: str) -> None:
        # Logged, never raised
        try:
            self._cleaner.delete(job_key)
        except Exception as exc:
            self._logger.warning("work_dir_cleanup_failed", job_key=job_key, error=str(exc))

    def _transition(self, job_key: str, state: JobState, **context: Any) -> None:
        self._logger.info("job_state_changed", job_key=job_key, state=state.value, **context)
