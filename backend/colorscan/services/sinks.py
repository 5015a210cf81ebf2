"""
Result sinks for batch runs.

DelimitedResultSink writes one line per image:
    identifier<delim>color<delim>color<delim>color
"""
import csv
from pathlib import Path
from typing import List, Protocol, Union

from loguru import logger

from colorscan.config import config
from colorscan.schemas import ColorRecord


class ResultSink(Protocol):
    """Anything that accepts per-image color records."""

    def write(self, record: ColorRecord) -> None:
        ...

    def close(self) -> None:
        ...


class DelimitedResultSink:
    """Write color records to a delimited text file."""

    def __init__(self, path: Union[str, Path], delimiter: str = None):
        self.path = Path(path).resolve()
        self.delimiter = config.DELIMITER if delimiter is None else delimiter
        self.records_written = 0

        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._fh = open(self.path, "w", encoding="utf-8", newline="")
        self._writer = csv.writer(self._fh, delimiter=self.delimiter, lineterminator="\n")

    def write(self, record: ColorRecord) -> None:
        self._writer.writerow(record.to_fields())
        self.records_written += 1

    def close(self) -> None:
        if self._fh.closed:
            return
        self._fh.flush()
        self._fh.close()
        logger.info(f"File write completed: {self.path} ({self.records_written} records)")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class MemoryResultSink:
    """Collect records in memory."""

    def __init__(self):
        self.records: List[ColorRecord] = []

    def write(self, record: ColorRecord) -> None:
        self.records.append(record)

    def close(self) -> None:
        pass
