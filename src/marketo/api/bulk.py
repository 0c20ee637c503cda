"""Bulk lead import: submit a file, poll the batch, fetch failures and warnings.

The coordinator never waits on its own. Callers poll until the batch reaches a
terminal status with whatever cadence and backoff suits them::

    batch = await client.bulk.submit("leads.csv")
    while not batch.is_terminal:
        await asyncio.sleep(30)
        batch = await client.bulk.poll_status(batch)
    failures = await client.bulk.get_failures(batch.batch_id)
"""

from __future__ import annotations

import csv
import io
import logging
import os
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import IO, Any, TYPE_CHECKING

from ..errors import InvalidArgumentError, MalformedResponseError, ValidationError
from .encoding import FilePart
from .response import ResponseEnvelope

if TYPE_CHECKING:
    from .dispatcher import CommandDispatcher

logger = logging.getLogger(__name__)

IMPORT_FORMATS = {
    "csv": ("text/csv", ","),
    "tsv": ("text/tab-separated-values", "\t"),
    "ssv": ("text/plain", ";"),
}


class BatchStatus(str, Enum):
    """Batch states, spelled exactly as the API reports them."""

    QUEUED = "Queued"
    IMPORTING = "Importing"
    COMPLETE = "Complete"
    FAILED = "Failed"

    @property
    def rank(self) -> int:
        return _STATUS_RANK[self]

    @property
    def is_terminal(self) -> bool:
        return self in (BatchStatus.COMPLETE, BatchStatus.FAILED)


_STATUS_RANK = {
    BatchStatus.QUEUED: 0,
    BatchStatus.IMPORTING: 1,
    BatchStatus.COMPLETE: 2,
    BatchStatus.FAILED: 2,
}


@dataclass(frozen=True)
class BulkBatch:
    """Snapshot of an import batch. Caller-owned; replaced on every poll."""

    batch_id: int
    status: BatchStatus
    num_rows: int | None = None
    num_rows_failed: int | None = None
    num_rows_with_warning: int | None = None
    message: str | None = None
    failures_url: str | None = None
    warnings_url: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def advance(self, newer: "BulkBatch") -> "BulkBatch":
        """Merge a newer observation without letting the status move backwards."""
        if newer.batch_id != self.batch_id:
            raise InvalidArgumentError(
                f"Cannot merge batch {newer.batch_id} into batch {self.batch_id}"
            )
        if newer.status.rank < self.status.rank or (
            self.is_terminal and newer.status != self.status
        ):
            logger.warning(
                "Batch %s reported %s after %s; keeping %s",
                self.batch_id,
                newer.status.value,
                self.status.value,
                self.status.value,
            )
            return replace(
                newer,
                status=self.status,
                failures_url=self.failures_url,
                warnings_url=self.warnings_url,
            )
        return newer


def validate_batch_id(batch_id: Any) -> int:
    """Return ``batch_id`` if it is a positive int.

    Raises:
        InvalidArgumentError: Otherwise (bools are rejected too)
    """
    if isinstance(batch_id, bool) or not isinstance(batch_id, int) or batch_id <= 0:
        raise InvalidArgumentError(f"Invalid batch id provided: {batch_id!r}")
    return batch_id


def _optional_int(value: Any) -> int | None:
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def parse_batch(record: dict[str, Any]) -> BulkBatch:
    """Decode a batch record from an import or status response."""
    try:
        batch_id = int(record["batchId"])
        status = BatchStatus(record.get("status", BatchStatus.QUEUED.value))
    except (KeyError, TypeError, ValueError) as e:
        raise MalformedResponseError(f"Invalid batch record: {e}", response=record) from e

    return BulkBatch(
        batch_id=batch_id,
        status=status,
        num_rows=_optional_int(record.get("numOfLeadsProcessed")),
        num_rows_failed=_optional_int(record.get("numOfRowsFailed")),
        num_rows_with_warning=_optional_int(record.get("numOfRowsWithWarning")),
        message=record.get("message"),
    )


def parse_report(body: bytes) -> list[dict[str, str]]:
    """Rows of a failures/warnings report (CSV with a header line)."""
    text = body.decode("utf-8-sig")
    if not text.strip():
        return []
    return [dict(row) for row in csv.DictReader(io.StringIO(text))]


class BulkImportCoordinator:
    """Submit-then-poll workflow for asynchronous lead imports.

    Holds no per-batch state; every call is driven by its arguments.
    """

    def __init__(self, dispatcher: "CommandDispatcher"):
        self._dispatcher = dispatcher

    def _report_url(self, command: str, batch_id: int) -> str:
        prepared = self._dispatcher.prepare(command, {"batchId": batch_id})
        return f"{self._dispatcher.base_url}{prepared.path}"

    def _with_report_urls(self, batch: BulkBatch) -> BulkBatch:
        if not batch.is_terminal:
            return batch
        return replace(
            batch,
            failures_url=self._report_url("getBulkUploadFailures", batch.batch_id),
            warnings_url=self._report_url("getBulkUploadWarnings", batch.batch_id),
        )

    @staticmethod
    def _read_file(file: str | os.PathLike | IO[bytes]) -> FilePart:
        if hasattr(file, "read"):
            try:
                content = file.read()
            except (OSError, ValueError) as e:
                raise ValidationError(f"Cannot read file: {e}") from e
            if isinstance(content, str):
                content = content.encode("utf-8")
            name = Path(getattr(file, "name", "import.csv")).name
            return FilePart(filename=name, content=content)

        path = Path(file)
        try:
            content = path.read_bytes()
        except OSError as e:
            raise ValidationError(f"Cannot read file: {path}") from e
        return FilePart(filename=path.name, content=content)

    async def submit(
        self,
        file: str | os.PathLike | IO[bytes],
        format: str = "csv",
        lookup_field: str | None = None,
        list_id: int | None = None,
        partition_name: str | None = None,
    ) -> BulkBatch:
        """Upload a lead file for asynchronous import.

        Args:
            file: Path or open binary file
            format: One of csv, tsv, ssv

        Returns:
            The queued batch

        Raises:
            ValidationError: Unreadable file or unknown format (no request sent)
        """
        format = (format or "csv").lower()
        if format not in IMPORT_FORMATS:
            raise ValidationError(f"Unsupported import format: {format!r}")

        part = self._read_file(file)
        part = replace(part, content_type=IMPORT_FORMATS[format][0])

        envelope = await self._dispatcher.execute(
            "importLeadsCsv",
            {
                "file": part,
                "format": format,
                "lookupField": lookup_field,
                "listId": list_id,
                "partitionName": partition_name,
            },
            strict=True,
        )
        records = envelope.get_result()
        if not records:
            raise MalformedResponseError("Import response contained no batch record")

        batch = parse_batch(records[0])
        logger.info("Submitted %s for import as batch %s", part.filename, batch.batch_id)
        return batch

    async def poll_status(self, batch: int | BulkBatch) -> BulkBatch:
        """Fetch the current status of a batch.

        Pass the previous snapshot instead of its id to guarantee the returned
        status never moves backwards.

        Raises:
            InvalidArgumentError: If the batch id is not a positive int
        """
        previous = batch if isinstance(batch, BulkBatch) else None
        batch_id = validate_batch_id(previous.batch_id if previous else batch)

        envelope = await self._dispatcher.execute(
            "getBulkUploadStatus", {"batchId": batch_id}, strict=True
        )
        records = envelope.get_result()
        if not records:
            raise MalformedResponseError(f"Status response for batch {batch_id} was empty")

        current = self._with_report_urls(parse_batch(records[0]))
        return previous.advance(current) if previous else current

    async def _report(self, command: str, batch_id: Any) -> list[dict[str, str]]:
        batch_id = validate_batch_id(batch_id)
        body = await self._dispatcher.execute(command, {"batchId": batch_id}, raw=True)
        if body.lstrip().startswith(b"{"):
            # Errors (e.g. batch not found) come back as a JSON envelope.
            return ResponseEnvelope.from_body(body).raise_for_errors().get_result()
        return parse_report(body)

    async def get_failures(self, batch_id: int) -> list[dict[str, str]]:
        """Rows that failed to import. Meaningful once the batch is terminal."""
        return await self._report("getBulkUploadFailures", batch_id)

    async def get_warnings(self, batch_id: int) -> list[dict[str, str]]:
        """Rows imported with warnings. Meaningful once the batch is terminal."""
        return await self._report("getBulkUploadWarnings", batch_id)
