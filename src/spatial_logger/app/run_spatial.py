from __future__ import annotations

import argparse
import logging
import sys
import time
from typing import Callable, Optional, TextIO

from ..config import ProjectConfig, load_config
from ..errors import SpatialError
from ..events import EventSink
from ..sensors.mock_spatial import MockSpatialBinding, synthetic_events
from ..sensors.spatial_base import SpatialBinding
from ..session import SpatialSession
from ..utils.logger import RunLog
from ..utils.tee import TeeStream

logger = logging.getLogger(__name__)


def make_binding(cfg: ProjectConfig, mock: bool) -> SpatialBinding:
    if mock:
        count = int(cfg.session.gather_interval_s * cfg.mock.rate_hz) + 1
        return MockSpatialBinding(
            events=synthetic_events(count, rate_hz=cfg.mock.rate_hz),
            hub_port=cfg.mock.hub_port,
            event_interval_s=1.0 / cfg.mock.rate_hz,
        )
    # lazy import: --mock works without the Phidget22 native library
    from ..sensors.phidget_spatial import PhidgetSpatialBinding
    return PhidgetSpatialBinding()


def run(cfg: ProjectConfig,
        binding: SpatialBinding,
        out: TextIO,
        err: Optional[TextIO] = None,
        sleep: Callable[[float], None] = time.sleep) -> int:
    """
    Open one spatial channel, print its events for the gather interval,
    release it. Returns the process exit code.
    """
    err = err if err is not None else sys.stderr
    sink = EventSink(binding, out, err)
    try:
        with SpatialSession(binding, sink, selectors=cfg.selectors) as session:
            session.open(cfg.session.attach_timeout_ms)
            interval = cfg.session.gather_interval_s
            sink.notice(f"Gathering data for {interval:g} seconds...")
            sleep(interval)
    except SpatialError as e:
        logger.debug("run failed", exc_info=True)
        sink.diagnostic(f"{type(e).__name__}: {e}")
        return 1
    return 0


def main(argv: Optional[list] = None) -> None:
    ap = argparse.ArgumentParser(
        prog="spatial-logger",
        description="Stream Phidget22 spatial samples to stdout and a log file.",
    )
    ap.add_argument("--config", type=str, default="config/config.yaml")
    ap.add_argument("--mock", action="store_true", help="scripted in-process device, no hardware")
    ap.add_argument("--timeout-ms", type=int, default=None, help="attach timeout (ms)")
    ap.add_argument("--seconds", type=float, default=None, help="gather interval (s)")
    ap.add_argument("--log-file", type=str, default=None, help="tee stdout into this file")
    ap.add_argument(
        "--log-level",
        default="WARNING",
        choices=["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"],
        help="diagnostic log level on stderr (default: WARNING)",
    )
    args = ap.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        cfg = load_config(args.config)
    except (OSError, ValueError) as e:
        ap.error(f"cannot load config {args.config}: {e}")
    if args.timeout_ms is not None:
        cfg.session.attach_timeout_ms = args.timeout_ms
    if args.seconds is not None:
        cfg.session.gather_interval_s = args.seconds
    if args.log_file is not None:
        cfg.session.log_file_path = args.log_file

    binding = make_binding(cfg, args.mock)
    if cfg.sdk_log.enable:
        try:
            binding.enable_sdk_log(cfg.sdk_log.level, cfg.sdk_log.path)
        except (SpatialError, ValueError) as e:
            logger.warning("SDK log not enabled: %s", e)

    # the log outlives the session: run() releases the channel before we close it
    with RunLog(cfg.session.log_file_path) as log:
        out = TeeStream(sys.stdout, log.stream)
        code = run(cfg, binding, out, sys.stderr)
    sys.exit(code)


if __name__ == "__main__":
    main()
