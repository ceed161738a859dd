# ui/live.py
import argparse
import asyncio
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from pulsezone.config import configure_logging
from pulsezone.control.controller import MonitoringController
from pulsezone.errors import PulseZoneError
from ui.display import render_state, render_stats
from ui.options import add_common_args, resolve_config


def build_parser():
    p = argparse.ArgumentParser(
        prog="pulsezone live",
        description="Live heart-rate zone monitoring with feedback on zone changes."
    )
    p.add_argument("--duration", type=float, default=60.0,
                   help="Seconds to monitor before stopping (Ctrl-C stops early).")
    p.add_argument("--poll", type=float, default=0.0,
                   help="Also do a one-shot fetch every N seconds (0 = stream only).")
    p.add_argument("--no-color", action="store_true", help="Plain zone names.")
    return add_common_args(p)


async def _run(args, cfg) -> int:
    controller = MonitoringController.from_config(cfg)
    color = sys.stdout.isatty() and not args.no_color
    unwatch = controller.watch(lambda s: print(render_state(s, color=color)))
    try:
        print(f"[INFO] Authorizing HR source '{cfg['source']['name']}' ...")
        if not await controller.request_authorization():
            print(f"[ERROR] {controller.state.last_error}")
            return 2
        if not controller.start():
            print(f"[ERROR] {controller.state.last_error or 'could not start monitoring'}")
            return 2
        print(f"[INFO] Monitoring for {args.duration:.0f}s at max HR "
              f"{controller.state.max_heart_rate:.0f} ...")

        loop = asyncio.get_running_loop()
        deadline = loop.time() + max(0.0, args.duration)
        while loop.time() < deadline:
            remaining = deadline - loop.time()
            await asyncio.sleep(min(args.poll, remaining) if args.poll > 0 else remaining)
            if args.poll > 0 and loop.time() < deadline:
                await controller.fetch_latest()
        return 0
    finally:
        unwatch()
        controller.stop()
        print("\n=== SESSION ===")
        for line in render_stats(controller.stats()):
            print(line)
        controller.close()


def main(argv=None):
    args = build_parser().parse_args(argv)
    cfg = resolve_config(args)
    configure_logging(cfg["logging"]["level"])
    try:
        return asyncio.run(_run(args, cfg))
    except (PulseZoneError, ValueError) as e:
        print(f"[ERROR] {e}")
        return 2
    except KeyboardInterrupt:
        print("[INFO] Interrupted.")
        return 130


if __name__ == "__main__":
    sys.exit(main())
