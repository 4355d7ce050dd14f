"""Connections to Redis and MongoDB used by the collector and the normalizer."""

from __future__ import annotations

import logging
import os
import time
from typing import Any, Mapping, Optional

import pymongo
import redis

log = logging.getLogger(__name__)

DATABASE_NAME = "falconfeeds"
COLLECTION_NAME = "normalized-indicators"
COLLECTOR_REDIS_HOST = "redis"
COLLECTOR_REDIS_PORT = 6379


def _environ(environ: Optional[Mapping[str, str]]) -> Mapping[str, str]:
    return os.environ if environ is None else environ


def mongo_uri(environ: Optional[Mapping[str, str]] = None) -> str:
    """Build the MongoDB URI from MONGO_HOST and MONGO_PORT."""
    env = _environ(environ)
    host = env.get("MONGO_HOST") or "localhost"
    port = env.get("MONGO_PORT") or "27017"
    return f"mongodb://{host}:{port}"


def redis_address(environ: Optional[Mapping[str, str]] = None) -> tuple[str, int]:
    """Return the Redis host and port from REDIS_HOST and REDIS_PORT."""
    env = _environ(environ)
    host = env.get("REDIS_HOST") or "localhost"
    port = env.get("REDIS_PORT") or "6379"
    try:
        return host, int(port)
    except ValueError:
        raise ValueError(f"invalid Redis port {port!r}") from None


def collector_redis_client(retries: int = 10, delay: float = 2.0) -> redis.Redis:
    """Connect to the collector's Redis, pinging until it answers or retries run out."""
    client = redis.Redis(host=COLLECTOR_REDIS_HOST, port=COLLECTOR_REDIS_PORT, db=0, password=None)
    for _ in range(retries):
        try:
            client.ping()
        except redis.RedisError as err:
            log.warning("Waiting for Redis... (%s)", err)
            time.sleep(delay)
            continue
        log.info("Connected to Redis")
        return client
    raise ConnectionError("Failed to connect to Redis after retries")


def normalizer_redis_client(environ: Optional[Mapping[str, str]] = None) -> redis.Redis:
    """Connect to Redis at the configured address, failing if it does not answer."""
    host, port = redis_address(environ)
    client = redis.Redis(host=host, port=port, socket_connect_timeout=2)
    try:
        client.ping()
    except redis.RedisError as err:
        raise ConnectionError(f"Failed to connect to Redis at {host}:{port}: {err}") from err
    return client


def new_mongo_collection(environ: Optional[Mapping[str, str]] = None) -> tuple[pymongo.MongoClient, Any]:
    """Return a MongoDB client and the collection holding normalized indicators."""
    client: pymongo.MongoClient = pymongo.MongoClient(mongo_uri(environ))
    return client, client[DATABASE_NAME][COLLECTION_NAME]