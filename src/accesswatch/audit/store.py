"""Async JSONL anomaly archive."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from functools import partial
from pathlib import Path
from threading import Lock

from pydantic import ValidationError

from accesswatch.anomalies import Anomaly
from accesswatch.anomalies import AnomalyType
from accesswatch.audit.schemas import ArchiveRecord
from accesswatch.config import ArchiveConfig

logger = logging.getLogger(__name__)


class AnomalyArchive:
    """Append-only JSONL archive decoupled from the detection path.

    ``submit`` is synchronous and only queues records in memory, so it can
    be passed to ``AnomalyEngine`` as its anomaly sink.  ``flush`` writes
    the queue through ``asyncio.to_thread``, guarded by an
    ``asyncio.Lock`` for serialization.
    """

    def __init__(self, config: ArchiveConfig) -> None:
        self.config = config
        self._pending: list[ArchiveRecord] = []
        self._pending_lock = Lock()
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def submit(self, anomalies: Iterable[Anomaly]) -> None:
        """Queue *anomalies* for the next flush."""
        if not self.config.enabled:
            return
        records = [ArchiveRecord(anomaly=anomaly) for anomaly in anomalies]
        with self._pending_lock:
            self._pending.extend(records)

    @property
    def pending(self) -> int:
        with self._pending_lock:
            return len(self._pending)

    async def flush(self) -> int:
        """Write queued records to the archive file; return how many."""
        with self._pending_lock:
            records, self._pending = self._pending, []
        if not records:
            return 0
        data = "".join(record.model_dump_json() + "\n" for record in records)
        async with self._lock:
            await asyncio.to_thread(
                partial(self._append, self.config.file_path, data),
            )
        return len(records)

    @staticmethod
    def _append(path: str, data: str) -> None:
        with open(path, "a") as fh:
            fh.write(data)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def read_records(
        self,
        *,
        anomaly_type: AnomalyType | None = None,
        principal_id: str | None = None,
    ) -> list[ArchiveRecord]:
        """Read archived records back, optionally filtered."""
        path = Path(self.config.file_path)
        if not path.exists():
            return []

        async with self._lock:
            raw = await asyncio.to_thread(path.read_text)
        records: list[ArchiveRecord] = []
        for line_no, line in enumerate(raw.strip().splitlines(), start=1):
            try:
                record = ArchiveRecord.model_validate_json(line)
            except ValidationError:
                logger.warning(
                    "Skipping malformed archive line %d in %s",
                    line_no,
                    path,
                )
                continue
            if anomaly_type is not None and record.anomaly.type != anomaly_type:
                continue
            if principal_id is not None and record.anomaly.principal_id != principal_id:
                continue
            records.append(record)
        return records
