from __future__ import annotations

import argparse
import os
import sys
from typing import Optional, TextIO

from ..config import LOG_FILE_PATH
from ..utils.formatting import format_pair, format_range, format_tuple
from ..utils.logger import RunLog
from ..utils.tee import TeeStream


def write_demo(out: TextIO, cwd: Optional[str] = None) -> None:
    vec = [0, 1, 2, 3, 4, 5]
    pair = (10, 5)
    tup = ("hey there bud", 5.0, "c")

    out.write(f"vec = {format_range(vec)}\n")
    out.write(f"pair = {format_pair(pair)}\n")
    out.write(f"tuple = {format_tuple(tup)}\n")
    out.write("Hey, what's going on? Tell me all about your life.\n")
    out.write(f"current path: {cwd if cwd is not None else os.getcwd()}\n")
    out.flush()


def main(argv: Optional[list] = None) -> None:
    ap = argparse.ArgumentParser(
        prog="spatial-demo-output",
        description="Print a few formatted aggregates to stdout and a log file.",
    )
    ap.add_argument("--log-file", type=str, default=LOG_FILE_PATH)
    args = ap.parse_args(argv)

    with RunLog(args.log_file) as log:
        write_demo(TeeStream(sys.stdout, log.stream))


if __name__ == "__main__":
    main()
