from __future__ import annotations

from ..models.import_summary import ImportSummary

"""SUMMARY line rendering.

Format:
SUMMARY mode={mode} rows={imported}/{total} batches={batches}
failed_batches={0|1} elapsed_sec={elapsed} throughput_rps={throughput}
"""


def _format_number(value: float) -> str:
    # 整数値は小数点なし / 極小値は指数表記を避ける
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return str(round(value, 3))


def render_summary_line(summary: ImportSummary) -> str:
    """Render the SUMMARY line for one import / restore run.

    Examples:
        >>> from datetime import datetime, timezone
        >>> from seatroster.models.import_summary import ImportMode
        >>> start = datetime(2024, 1, 1, 10, 0, 0, tzinfo=timezone.utc)
        >>> end = datetime(2024, 1, 1, 10, 0, 2, tzinfo=timezone.utc)
        >>> s = ImportSummary(
        ...     mode=ImportMode.IMPORT, total=120, imported=120, batches=3,
        ...     start_time=start, end_time=end, elapsed_seconds=2.0,
        ...     throughput_rows_per_sec=60.0,
        ... )
        >>> render_summary_line(s)
        'SUMMARY mode=import rows=120/120 batches=3 failed_batches=0 elapsed_sec=2 throughput_rps=60'
    """
    failed = 0 if summary.failed_batch is None else 1
    return (
        f"SUMMARY mode={summary.mode.value} "
        f"rows={summary.imported}/{summary.total} "
        f"batches={summary.batches} "
        f"failed_batches={failed} "
        f"elapsed_sec={_format_number(summary.elapsed_seconds)} "
        f"throughput_rps={_format_number(summary.throughput_rows_per_sec)}"
    )
