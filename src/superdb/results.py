"""
Aggregate result shapes: datatable pages and batch execution reports.
"""
import enum
from dataclasses import dataclass, field
from typing import Any

__all__ = ['DatatablePage', 'BatchStatus', 'BatchResult']


@dataclass
class DatatablePage:
    """One page of a server-side paginated table.

    ``draw`` is the caller's correlation token and is echoed back untouched.
    ``records_filtered`` counts rows matching the current filter and
    ``records_total`` counts rows in the unfiltered source, regardless of
    how many rows ``data`` holds.
    """

    draw: Any
    data: list[Any] = field(default_factory=list)
    records_filtered: int | None = None
    records_total: int | None = None

    def to_dict(self) -> dict[str, Any]:
        """Render with the DataTables server-side response keys."""
        return {
            'draw': self.draw,
            'data': self.data,
            'recordsFiltered': self.records_filtered,
            'recordsTotal': self.records_total,
        }


class BatchStatus(enum.StrEnum):
    OK = 'OK'
    ERROR = 'ERROR'


@dataclass
class BatchResult:
    """Outcome of one parameter set of a batch execution.

    ``message`` holds the affected row count on success and the driver's
    error text on failure.
    """

    index: int
    status: BatchStatus
    message: int | str

    @property
    def ok(self) -> bool:
        return self.status is BatchStatus.OK
