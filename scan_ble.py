import argparse
import asyncio

from pulsezone.io.polar_bridge import discover_devices

async def main(timeout: float):
    print(f"Scanning {timeout:.0f}s...")
    for name, address in await discover_devices(timeout=timeout):
        print(name or "(unnamed)", ":", address)

if __name__ == "__main__":
    ap = argparse.ArgumentParser(description="List nearby BLE devices (find your HR strap's name/address).")
    ap.add_argument("--timeout", type=float, default=8.0)
    asyncio.run(main(ap.parse_args().timeout))
