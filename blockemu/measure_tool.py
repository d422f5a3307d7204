"""Common interface of measurement modules and their CSV output."""

from __future__ import annotations

import csv
import math
from abc import ABC, abstractmethod
from os import PathLike
from pathlib import Path
from typing import Iterable, Optional, Sequence, Union

from .message import BlockInfoMsg
from .params import GlobalConfig

OUTPUT_SUBDIR = "supervisor_measureOutput"

# Floats in the measurement files carry this many decimal places.
_FLOAT_DIGITS = 56


def write_metrics_to_csv(
    output_dir: Union[str, PathLike],
    file_name: str,
    col_names: Sequence[str],
    rows: Iterable[Sequence[str]],
) -> Path:
    """Append rows to ``<output_dir>/<file_name>.csv``.

    The header is written only when the file is new or empty. Returns the
    path of the file.
    """
    directory = Path(output_dir)
    directory.mkdir(parents=True, exist_ok=True)
    target = directory / f"{file_name}.csv"
    with open(target, "a", newline="", encoding="utf-8") as handle:
        writer = csv.writer(handle, lineterminator="\n")
        if target.stat().st_size == 0:
            writer.writerow(col_names)
        writer.writerows(rows)
    return target


class MeasureModule(ABC):
    """A metric collected by the supervisor from block reports."""

    def __init__(self, output_dir: Optional[Union[str, PathLike]] = None) -> None:
        if output_dir is None:
            output_dir = Path(GlobalConfig().data_write_path) / OUTPUT_SUBDIR
        self.output_dir = Path(output_dir)

    @abstractmethod
    def update_measure_record(self, block_info: BlockInfoMsg) -> None:
        """Account for one block report."""

    @abstractmethod
    def handle_extra_message(self, msg: bytes) -> None:
        """Handle a message that is not a block report."""

    @abstractmethod
    def output_metric_name(self) -> str:
        """Name of the metric, also the CSV file name."""

    @abstractmethod
    def output_record(self) -> tuple[list[float], float]:
        """Write the CSV file and return the per-epoch and overall results."""

    def _write_csv(
        self, col_names: Sequence[str], rows: Iterable[Sequence[str]]
    ) -> Path:
        return write_metrics_to_csv(
            self.output_dir, self.output_metric_name(), col_names, rows
        )

    @staticmethod
    def _format_float(value: float) -> str:
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "+Inf" if value > 0 else "-Inf"
        return f"{value:.{_FLOAT_DIGITS}f}"

    @staticmethod
    def _ratio(numerator: float, denominator: float) -> float:
        """Float division yielding inf or nan for a zero divisor."""
        if denominator == 0:
            if numerator == 0 or math.isnan(numerator):
                return math.nan
            return math.copysign(math.inf, numerator)
        return numerator / denominator