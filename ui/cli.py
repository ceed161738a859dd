# ui/cli.py
import argparse
import asyncio
import sys
from pathlib import Path

# --- ensure project root on sys.path (so `import pulsezone.*` works when running from /ui) ---
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
# ---------------------------------------------------------------------------------------------

from pulsezone.config import configure_logging, resolve_max_heart_rate
from pulsezone.control.controller import MonitoringController
from pulsezone.control.zones import ZoneBands, ZoneClassifier
from pulsezone.errors import PulseZoneError
from pulsezone.io.hr_source import available_sources
from ui.display import ZONE_DISPLAY, format_bpm, render_stats, zone_table
from ui.options import add_common_args, resolve_config


def build_parser():
    p = argparse.ArgumentParser(
        prog="pulsezone",
        description="One-shot heart-rate reading and zone lookup."
    )
    p.add_argument("--list-sources", action="store_true", help="List registered HR sources and exit.")
    p.add_argument("--zones", action="store_true", help="Print the zone table for the configured max HR and exit.")
    p.add_argument("--bpm", type=float, help="Classify this BPM value instead of reading the source.")
    p.add_argument("--timeout", type=float, default=10.0, help="Seconds to wait for a first reading.")
    p.add_argument("--window", type=float, default=0.0,
                   help="Also collect this many seconds of samples and print their statistics.")
    return add_common_args(p)


async def _read_once(controller: MonitoringController, timeout: float, window: float) -> int:
    if not await controller.request_authorization():
        print(f"[ERROR] {controller.state.last_error}")
        return 2
    if not controller.start():
        print(f"[ERROR] {controller.state.last_error or 'could not start monitoring'}")
        return 2
    try:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + max(0.0, timeout)
        sample = await controller.fetch_latest()
        while sample is None and loop.time() < deadline:
            await asyncio.sleep(0.5)
            sample = await controller.fetch_latest()
        if sample is None:
            print(f"[WARN] No heart-rate reading within {timeout:.0f}s.")
            if controller.state.last_error:
                print(f"[ERROR] {controller.state.last_error}")
            return 1

        zone = controller.state.current_zone
        d = ZONE_DISPLAY[zone]
        print(f"Heart rate : {format_bpm(sample.bpm)} BPM at {sample.timestamp:%H:%M:%S}")
        print(f"Zone       : {d.label} ({d.description}, {d.range_label} of max {controller.state.max_heart_rate:.0f})")

        if window > 0:
            print(f"[INFO] Collecting {window:.0f}s of samples ...")
            await asyncio.sleep(window)
            controller.stop()
            for line in render_stats(controller.stats()):
                print(line)
        return 0
    finally:
        controller.close()


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    cfg = resolve_config(args)
    configure_logging(cfg["logging"]["level"])

    if args.list_sources:
        print("Available HR sources:")
        for name in available_sources():
            print(" ", name)
        return 0

    try:
        max_hr = resolve_max_heart_rate(cfg)
    except PulseZoneError as e:
        print(f"[ERROR] {e}")
        return 2
    if args.zones:
        for row in zone_table(max_hr):
            print(row)
        return 0

    if args.bpm is not None:
        try:
            zone = ZoneClassifier(ZoneBands(**cfg["zones"])).classify(args.bpm, max_hr)
        except PulseZoneError as e:
            print(f"[ERROR] {e}")
            return 2
        d = ZONE_DISPLAY[zone]
        print(f"{format_bpm(args.bpm)} BPM at max HR {max_hr:.0f} -> {d.label} ({d.description})")
        return 0

    try:
        controller = MonitoringController.from_config(cfg)
    except (PulseZoneError, ValueError) as e:
        print(f"[ERROR] {e}")
        return 2
    try:
        return asyncio.run(_read_once(controller, args.timeout, args.window))
    except KeyboardInterrupt:
        print("[INFO] Interrupted.")
        return 130


if __name__ == "__main__":
    sys.exit(main())
