from __future__ import annotations

import threading
from typing import List, TextIO


class TeeStream:
    """
    Write-only text sink that replicates every write to all its writers.

    - write() is atomic across threads: a string reaches every writer
      before another write starts
    - the tee never opens or closes its writers
    """

    def __init__(self, *writers: TextIO):
        if not writers:
            raise ValueError("TeeStream needs at least one writer")
        self.writers: List[TextIO] = list(writers)
        self._lock = threading.Lock()

    def write(self, text: str) -> int:
        with self._lock:
            for w in self.writers:
                w.write(text)
        return len(text)

    def writelines(self, lines) -> None:
        self.write("".join(lines))

    def flush(self) -> None:
        with self._lock:
            for w in self.writers:
                w.flush()
