from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional, TextIO


@dataclass
class RunLog:
    """
    Plain-text log of everything the run prints to stdout.
    Truncated on open; the caller tees into it and closes it after the
    spatial session has been released.
    """
    path: str
    _f: Optional[TextIO] = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        parent = os.path.dirname(self.path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        self._f = open(self.path, "w", encoding="utf-8")

    @property
    def stream(self) -> TextIO:
        if self._f is None:
            raise ValueError(f"log file already closed: {self.path}")
        return self._f

    def close(self) -> None:
        if self._f is None:
            return
        try:
            self._f.flush()
        finally:
            self._f.close()
            self._f = None

    def __enter__(self) -> "RunLog":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
