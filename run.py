import asyncio
import logging
import os
import signal

from bridge import config
from bridge.host import StandaloneHost
from bridge.server import BridgeServer

logger = logging.getLogger("bridge.run")


async def main() -> None:
    """Run a bridge for the current directory until SIGINT/SIGTERM.

    Injected messages are printed as they arrive, standing in for a host
    session's delivery queues.
    """
    host = StandaloneHost(cwd=config.CWD_OVERRIDE or os.getcwd())
    stop = asyncio.Event()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, stop.set)

    async with BridgeServer(host) as server:
        if not server.is_serving:
            return
        while not stop.is_set():
            for injected in host.drain():
                print(f"--- {injected.deliver_as} ---\n{injected.content}\n", flush=True)
            try:
                await asyncio.wait_for(stop.wait(), timeout=0.2)
            except asyncio.TimeoutError:
                pass
        logger.info("Shutdown signal received")


if __name__ == "__main__":
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    asyncio.run(main())
