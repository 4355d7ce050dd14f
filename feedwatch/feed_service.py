"""The feed collector service: periodic fetching plus health and metrics endpoints."""

from __future__ import annotations

import logging
import os
import re
import signal
import threading
from datetime import timedelta
from typing import Iterable, Mapping, Optional, Sequence

from flask import Flask, Response, request
from werkzeug.serving import make_server

from feedwatch.collector import fetch_and_publish_feeds
from feedwatch.connections import collector_redis_client
from feedwatch.metrics import CounterVec, render_metrics

log = logging.getLogger(__name__)

DEFAULT_INTERVAL = timedelta(minutes=5)
METRICS_CONTENT_TYPE = "text/plain; version=0.0.4; charset=utf-8"
_ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def fetch_interval(environ: Optional[Mapping[str, str]] = None) -> timedelta:
    """Return the fetch interval from FETCH_INTERVAL_MINUTES, five minutes by default."""
    raw = (os.environ if environ is None else environ).get("FETCH_INTERVAL_MINUTES", "")
    if not re.fullmatch(r"[+-]?\d+", raw):
        return DEFAULT_INTERVAL
    interval = timedelta(minutes=int(raw))
    if interval <= timedelta(0):
        raise ValueError("non-positive interval for fetching feeds")
    return interval


def create_app(requests_processed: CounterVec, counters: Iterable[CounterVec]) -> Flask:
    """Build the application serving /healthz and /metrics."""
    families = list(counters)
    app = Flask(__name__)

    @app.route("/healthz", methods=_ALL_METHODS)
    def healthz() -> Response:
        requests_processed.inc(request.method, "200")
        return Response("OK\n", mimetype="text/plain")

    @app.route("/metrics", methods=["GET"])
    def metrics() -> Response:
        return Response(render_metrics(families), content_type=METRICS_CONTENT_TYPE)

    return app


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the feed collector until interrupted."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(message)s")
    requests_processed = CounterVec(
        "requests_processed_total", "Total number of processed requests", ["method", "status"]
    )
    feeds_fetched = CounterVec("feeds_fetched_total", "Number of feeds fetched, labeled by status", ["status"])
    try:
        redis_client = collector_redis_client()
    except ConnectionError as err:
        log.error("%s", err)
        return 1

    stop = threading.Event()
    interval = fetch_interval(os.environ).total_seconds()

    def tick() -> None:
        while not stop.wait(interval):
            fetch_and_publish_feeds(redis_client, feeds_fetched)
        log.info("Ticker stopped")

    threading.Thread(target=tick, daemon=True).start()
    fetch_and_publish_feeds(redis_client, feeds_fetched)

    app = create_app(requests_processed, [requests_processed, feeds_fetched])
    server = make_server("0.0.0.0", 4000, app, threaded=True)
    log.info("HTTP server listening on :4000")
    threading.Thread(target=server.serve_forever, daemon=True).start()

    for signum in (signal.SIGINT, signal.SIGTERM):
        signal.signal(signum, lambda *_: stop.set())
    while not stop.wait(0.5):
        pass
    log.info("Shutting down Feed Collector...")
    server.shutdown()
    redis_client.close()
    return 0