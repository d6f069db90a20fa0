"""Job details handoff between the write phase and job finalization.

This module provides:
- JobDetails: durable record of one write job
- JobDetailsStore: key-value persistence protocol, keyed by output table
- InMemoryJobDetailsStore: process-local store for tests and embedded use
- FileJobDetailsStore: JSON file per job in the job's work directory
- WorkDirectoryCleaner: best-effort removal of a job's work directory

Commit and abort may run in different processes than the write phase, so
stores never cache: every ``get`` reads the persisted record again.
"""

from __future__ import annotations

import re
import shutil
import tempfile
import threading
from collections.abc import Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field

from hive_bigquery.config import (
    WORK_DIR_NAME_PREFIX,
    WORK_DIR_PARENT_PATH_KEY,
    WarehouseTableId,
    WriteMethod,
)
from hive_bigquery.errors import JobDetailsNotFoundError
from hive_bigquery.observability import get_logger

if TYPE_CHECKING:
    from structlog.stdlib import BoundLogger

JOB_DETAILS_FILE_NAME = "job_details.json"

_UNSAFE_PATH_CHARS = re.compile(r"[^A-Za-z0-9._-]")


class JobDetails(BaseModel):
    """Durable record describing one write job.

    Attributes:
        output_table: Metastore output table (db.table); also the job key.
        warehouse_table: BigQuery table the job writes to.
        write_method: Write method in effect during the write phase.
        table_properties: Metastore table properties captured at write time.
        staging: Strategy-specific state (temp tables, GCS paths, streams).

    Example:
        >>> details = JobDetails(
        ...     output_table="sales.orders",
        ...     warehouse_table=WarehouseTableId.from_string("p.sales.orders"),
        ...     staging={"gcs_temp_path": "gs://bucket/tmp/job-1"},
        ... )
        >>> details.output_table
        'sales.orders'
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    output_table: str = Field(..., min_length=1, description="Metastore output table")
    warehouse_table: WarehouseTableId | None = Field(
        default=None,
        description="Target BigQuery table",
    )
    write_method: WriteMethod = Field(
        default=WriteMethod.DIRECT,
        description="Write method used during the write phase",
    )
    table_properties: dict[str, str] = Field(default_factory=dict)
    staging: dict[str, str] = Field(
        default_factory=dict,
        description="Write-method specific staging state",
    )


@runtime_checkable
class JobDetailsStore(Protocol):
    """Persistence for JobDetails, keyed by output table."""

    def put(self, job_key: str, details: JobDetails) -> None:
        """Persist the details of a job, replacing any previous record."""
        ...

    def get(self, job_key: str) -> JobDetails:
        """Read the details of a job.

        Raises:
            JobDetailsNotFoundError: If nothing was persisted for the key.
        """
        ...


class InMemoryJobDetailsStore:
    """JobDetailsStore backed by a dict.

    Records are kept serialized so callers never share mutable state with
    the store.
    """

    def __init__(self) -> None:
        self._records: dict[str, str] = {}
        self._lock = threading.Lock()

    def put(self, job_key: str, details: JobDetails) -> None:
        with self._lock:
            self._records[job_key] = details.model_dump_json()

    def get(self, job_key: str) -> JobDetails:
        with self._lock:
            raw = self._records.get(job_key)
        if raw is None:
            raise JobDetailsNotFoundError(job_key)
        return JobDetails.model_validate_json(raw)


def work_dir_name(job_key: str) -> str:
    """Return the directory name of a job's work directory.

    Example:
        >>> work_dir_name("sales.orders")
        'bq-hive-sales.orders'
    """
    return WORK_DIR_NAME_PREFIX + _UNSAFE_PATH_CHARS.sub("_", job_key)


def work_dir_parent(properties: Mapping[str, str]) -> Path:
    """Return the configured parent of job work directories.

    Falls back to the system temp directory when unset.
    """
    configured = properties.get(WORK_DIR_PARENT_PATH_KEY)
    return Path(configured) if configured else Path(tempfile.gettempdir())


class FileJobDetailsStore:
    """JobDetailsStore writing one JSON file per job.

    Layout: ``<parent>/bq-hive-<output table>/job_details.json``.
    """

    def __init__(self, parent_path: Path | str, *, logger: BoundLogger | None = None) -> None:
        """Initialize FileJobDetailsStore.

        Args:
            parent_path: Parent directory of the job work directories.
            logger: Optional structlog logger. Uses default if not provided.
        """
        self.parent_path = Path(parent_path)
        self._logger = logger or get_logger()

    def path_for(self, job_key: str) -> Path:
        """Return the job details file of a job."""
        return self.parent_path / work_dir_name(job_key) / JOB_DETAILS_FILE_NAME

    def put(self, job_key: str, details: JobDetails) -> None:
        path = self.path_for(job_key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(details.model_dump_json(indent=2), encoding="utf-8")
        self._logger.debug("job_details_written", job_key=job_key, path=str(path))

    def get(self, job_key: str) -> JobDetails:
        path = self.path_for(job_key)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise JobDetailsNotFoundError(job_key) from exc
        return JobDetails.model_validate_json(raw)


class WorkDirectoryCleaner:
    """Delete job work directories on a best-effort basis.

    Failures are logged and never raised, so cleanup cannot change the
    outcome of a job.
    """

    def __init__(self, parent_path: Path | str, *, logger: BoundLogger | None = None) -> None:
        self.parent_path = Path(parent_path)
        self._logger = logger or get_logger()

    def path_for(self, job_key: str) -> Path:
        """Return the work directory of a job."""
        return self.parent_path / work_dir_name(job_key)

    def delete(self, job_key: str) -> None:
        """Remove the work directory of a job if it exists."""
        path = self.path_for(job_key)
        try:
            shutil.rmtree(path)
        except FileNotFoundError:
            self._logger.debug("work_dir_already_absent", job_key=job_key, path=str(path))
            return
        except OSError as exc:
            self._logger.warning(
                "work_dir_cleanup_failed",
                job_key=job_key,
                path=str(path),
                error=str(exc),
            )
            return
        self._logger.info("work_dir_deleted", job_key=job_key, path=str(path))
