"""The normalizer service: stream processing plus the indicator API."""

from __future__ import annotations

import logging
import os
import signal
import threading
from typing import Any, Optional, Sequence

from werkzeug.serving import BaseWSGIServer, make_server

from feedwatch.connections import new_mongo_collection, normalizer_redis_client
from feedwatch.handler import APIHandler
from feedwatch.processor import Processor

log = logging.getLogger(__name__)


def create_server(collection: Any, host: str = "0.0.0.0", port: int = 5000) -> BaseWSGIServer:
    """Return an HTTP server bound to host and port serving the indicator API."""
    return make_server(host, port, APIHandler(collection).create_app(), threaded=True)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the normalizer until interrupted."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(message)s")
    try:
        redis_client = normalizer_redis_client(os.environ)
    except (ConnectionError, ValueError) as err:
        log.error("%s", err)
        return 1
    mongo_client, collection = new_mongo_collection(os.environ)

    stop = threading.Event()
    threading.Thread(target=Processor(redis_client, collection).start, args=(stop,), daemon=True).start()

    server = create_server(collection)
    log.info("Starting API server on :5000")
    threading.Thread(target=server.serve_forever, daemon=True).start()

    for signum in (signal.SIGINT, signal.SIGTERM):
        signal.signal(signum, lambda *_: stop.set())
    while not stop.wait(0.5):
        pass
    log.info("Shutting down...")
    try:
        server.shutdown()
    except OSError as err:
        log.error("HTTP shutdown error: %s", err)
    mongo_client.close()
    redis_client.close()
    return 0