"""Fetching of threat feeds and their publication to the raw feed stream."""

from __future__ import annotations

import logging
from typing import Any, Iterable

import redis
import requests

from feedwatch.metrics import CounterVec

log = logging.getLogger(__name__)

RAW_STREAM = "raw-feeds"

FEEDS: tuple[str, ...] = ("https://data.phishtank.com/data/online-valid.json",)


def fetch_and_publish_feeds(redis_client: Any, metric: CounterVec, feeds: Iterable[str] = FEEDS) -> None:
    """Download each feed and add its body to the raw feed stream, counting outcomes."""
    for url in feeds:
        try:
            with requests.get(url, timeout=300) as response:
                body = response.content
        except requests.RequestException as err:
            log.error("Error fetching %s: %s", url, err)
            metric.inc("failure")
            continue

        try:
            redis_client.xadd(RAW_STREAM, {"url": url, "payload": body})
        except redis.RedisError as err:
            log.error("Error publishing to Redis: %s", err)
            metric.inc("failure")
            continue

        log.info("Published feed from %s", url)
        metric.inc("success")