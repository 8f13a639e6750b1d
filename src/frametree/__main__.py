from __future__ import annotations

import argparse
import logging
import time

from .core.accumulator import TRANSFORMS
from .runtime.server import run


def main() -> None:
    p = argparse.ArgumentParser(prog="frametree", description="frametree: playback transform tree service")
    p.add_argument("--host", default="127.0.0.1")
    p.add_argument("--port", type=int, default=8000)
    p.add_argument("--retention", default=None, help="seconds of transform history to keep per frame")
    p.add_argument("--log-level", default="info", choices=["debug", "info", "warning", "error"])
    args = p.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    if args.retention is not None:
        try:
            TRANSFORMS.settings.set_retention(args.retention)
        except ValueError as e:
            p.error(str(e))

    srv = run(host=args.host, port=args.port, log_level=args.log_level, new_server=True)
    print(srv.url)

    # Block forever (so it behaves like a normal CLI server)
    while True:
        time.sleep(3600)


if __name__ == "__main__":
    main()
