from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Progress display with tqdm (TTY only).

One bar per import run counting committed records. In non-TTY environments
(CI, redirected output) the bar is disabled to avoid control sequence spam;
progress is still available to callers through ``imported`` / ``total``.
"""

__all__ = [
    "ImportProgress",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    return sys.stdout.isatty()


class ImportProgress:
    """Progress callback for :func:`seatroster.services.importer.import_records`.

    Called as ``progress(imported, total)`` after every committed batch.
    """

    def __init__(self, total: int = 0, *, description: str = "Importing") -> None:
        self.total = total
        self.imported = 0
        self.description = description

        self.enabled = is_tty_enabled()
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=total,
                desc=description,
                unit="row",
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )
        else:
            self.pbar = None

    @property
    def percent(self) -> float:
        if self.total == 0:
            return 100.0
        return self.imported / self.total * 100

    def __call__(self, imported: int, total: int) -> None:
        delta = imported - self.imported
        self.imported = imported
        self.total = total
        if self.enabled and self.pbar is not None:
            if self.pbar.total != total:
                self.pbar.total = total
            self.pbar.update(delta)
            self.pbar.set_postfix(done=f"{imported}/{total}")

    def close(self) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ImportProgress:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
