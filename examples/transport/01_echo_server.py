"""Blocking echo server: one thread per accepted connection."""

from __future__ import annotations

import logging
import sys
import threading
from pathlib import Path

# Allow running this script directly from repository root.
PROJECT_ROOT = next(
    (parent for parent in Path(__file__).resolve().parents if (parent / "wirebridge").exists()),
    None,
)
if PROJECT_ROOT and str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from wirebridge import ReceiveError, SendError, SocketBridge, ignore_broken_pipe


def serve_client(bridge: SocketBridge, handle: int) -> None:
    try:
        while True:
            chunk = bridge.receive(handle)
            if not chunk:
                return
            bridge.send(handle, chunk)
    except (ReceiveError, SendError) as exc:
        print(f"fd={handle}: {exc}")
    finally:
        bridge.close(handle)


def main(port: int = 7007) -> None:
    logging.basicConfig(level=logging.DEBUG)
    # Process-wide and never reverted; done once, up front.
    ignore_broken_pipe()

    bridge = SocketBridge()
    server = bridge.listen(port)
    print(f"Echoing on port {bridge.local_address(server)[1]} (Ctrl+C to stop)")
    try:
        while True:
            handle = bridge.accept(server)
            threading.Thread(target=serve_client, args=(bridge, handle), daemon=True).start()
    except KeyboardInterrupt:
        pass
    finally:
        bridge.close(server)


if __name__ == "__main__":
    main(int(sys.argv[1]) if len(sys.argv) > 1 else 7007)
