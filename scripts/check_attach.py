from __future__ import annotations

import argparse
import sys

from spatial_logger.config import load_config
from spatial_logger.errors import SpatialError
from spatial_logger.events import EventSink
from spatial_logger.sensors.phidget_spatial import PhidgetSpatialBinding
from spatial_logger.session import SpatialSession


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--config", type=str, default="config/config.yaml")
    ap.add_argument("--timeout-ms", type=int, default=None)
    args = ap.parse_args()

    cfg = load_config(args.config)
    timeout_ms = args.timeout_ms if args.timeout_ms is not None else cfg.session.attach_timeout_ms

    binding = PhidgetSpatialBinding()
    sink = EventSink(binding, sys.stdout, sys.stderr)
    try:
        with SpatialSession(binding, sink, selectors=cfg.selectors) as session:
            print(f"waiting {timeout_ms} ms for a spatial channel ...")
            session.open(timeout_ms)
    except SpatialError as e:
        print(f"{type(e).__name__}: {e}", file=sys.stderr)
        sys.exit(1)
    print("ok, channel released")


if __name__ == "__main__":
    main()
