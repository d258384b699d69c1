"""Dump an app over USB with a prebuilt agent, retrying the whole attempt on failure.

Usage: python usb_dump.py <bundle-id> <agent.js> <native.c> [out_dir]

The agent stops sending once an acknowledgement is missing, so a faulted
context leaves the ``dump()`` RPC blocked. The RPC runs on a worker thread
while the main thread watches the bridge; a fault or a stall unloads the
script, which fails the pending RPC, and the next attempt starts.
"""

import concurrent.futures
import logging
import sys
from pathlib import Path

import frida

from pullbridge import ProcessingContext, PullBridgeError, open_bridge

ATTEMPTS = 5
STALL_SECONDS = 120.0


def dump(device: frida.core.Device, bundle_id: str, agent: str, native: str, outdir: Path) -> None:
    pid = device.spawn(bundle_id)
    device.resume(pid)
    session = device.attach(pid)
    script = session.create_script(agent)
    script.load()
    context = ProcessingContext.for_script(script, output_root=outdir)
    executor = concurrent.futures.ThreadPoolExecutor(max_workers=1)
    try:
        with open_bridge(context) as bridge:
            script.exports_sync.prepare(native)
            rpc = executor.submit(script.exports_sync.dump, {"executableOnly": False})
            bridge.supervise(rpc, stall_timeout=STALL_SECONDS)
    finally:
        script.unload()
        session.detach()
        device.kill(pid)
        executor.shutdown(wait=False)


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    if len(sys.argv) < 4:
        print(__doc__)
        return 2
    bundle_id = sys.argv[1]
    agent = Path(sys.argv[2]).read_text(encoding="utf-8")
    native = Path(sys.argv[3]).read_text(encoding="utf-8")
    outdir = Path(sys.argv[4]) if len(sys.argv) > 4 else Path("dump")

    device = frida.get_usb_device(timeout=5)
    for attempt in range(1, ATTEMPTS + 1):
        try:
            dump(device, bundle_id, agent, native, outdir)
        except (PullBridgeError, frida.InvalidOperationError, OSError) as exc:
            logging.error("Attempt %d/%d failed: %s", attempt, ATTEMPTS, exc)
            continue
        return 0
    return 1


if __name__ == "__main__":
    sys.exit(main())
