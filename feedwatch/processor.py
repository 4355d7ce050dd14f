"""Extraction of indicators from raw feeds and their conversion to STIX bundles."""

from __future__ import annotations

import dataclasses
import logging
import re
import threading
import uuid
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping, Optional, Union

import pymongo.errors
import redis

from feedwatch.stix import Bundle, DomainName, File, Indicator, IPv4Addr, ObservedData, Relationship

log = logging.getLogger(__name__)

RAW_STREAM = "raw-feeds"
STIX_STREAM = "stix-indicators"

IPV4_RE = re.compile(r"\b(?:\d{1,3}\.){3}\d{1,3}\b", re.ASCII)
SHA256_RE = re.compile(r"\b[A-Fa-f0-9]{64}\b", re.ASCII)
DOMAIN_RE = re.compile(r"\b(?:[a-zA-Z0-9-]+\.)+[a-zA-Z]{2,}\b", re.ASCII)

Observable = Union[IPv4Addr, File, DomainName]


def extract_iocs(text: str) -> list[str]:
    """Return IPv4 addresses, then SHA-256 hashes, then domains found in text."""
    return IPV4_RE.findall(text) + SHA256_RE.findall(text) + DOMAIN_RE.findall(text)


def get_observed_time(values: Mapping[str, Any]) -> datetime:
    """Use an integer 'timestamp' field if present, otherwise the current time."""
    ts = values.get("timestamp")
    if isinstance(ts, int) and not isinstance(ts, bool):
        return datetime.fromtimestamp(ts, timezone.utc)
    return datetime.now(timezone.utc)


def _text(value: Any) -> Any:
    return value.decode("utf-8", errors="replace") if isinstance(value, bytes) else value


def _iter_streams(streams: Any) -> Iterable[tuple[Any, Any]]:
    if not streams:
        return []
    if isinstance(streams, Mapping):
        return [(name, entries[0] if entries and isinstance(entries[0], list) else entries)
                for name, entries in streams.items()]
    return [(entry[0], entry[1]) for entry in streams]


def _new_id(kind: str) -> str:
    return f"{kind}--{uuid.uuid4()}"


class Processor:
    """Reads raw feeds from Redis, stores STIX bundles and republishes them."""

    def __init__(self, redis_client: Any, collection: Any) -> None:
        self.redis_client = redis_client
        self.collection = collection

    def start(self, stop_event: threading.Event) -> None:
        """Process messages until the event is set."""
        log.info("Starting IOC processor...")
        while not stop_event.is_set():
            self.process_messages()
            if stop_event.wait(1):
                break
        log.info("Processor stopping...")

    def process_messages(self) -> None:
        """Read the raw feed stream from the start and process every entry."""
        try:
            streams = self.redis_client.xread({RAW_STREAM: "0"}, block=5000)
        except redis.RedisError as err:
            log.error("Redis XRead error: %s", err)
            return
        for _name, messages in _iter_streams(streams):
            for message_id, values in messages:
                self.process_message(message_id, values)

    def process_message(self, message_id: Any, values: Mapping[Any, Any]) -> None:
        """Turn one stream entry into a stored and published bundle."""
        fields = {_text(key): value for key, value in values.items()}
        payload = _text(fields.get("payload"))
        if not isinstance(payload, str):
            log.warning("Invalid payload in message: %s", _text(message_id))
            return
        iocs = extract_iocs(payload)
        if not iocs:
            return
        bundle = self.create_stix_bundle(iocs, get_observed_time(fields))
        try:
            self.persist_bundle(bundle)
        except pymongo.errors.PyMongoError as err:
            log.error("Persistence error: %s", err)
        try:
            self.publish_to_stream(bundle)
        except redis.RedisError as err:
            log.error("Stream publish error: %s", err)

    def create_stix_bundle(self, iocs: Iterable[str], observed_time: datetime) -> Bundle:
        """Build a bundle holding four objects for each recognised indicator."""
        bundle = Bundle(id=_new_id("bundle"), created=datetime.now(timezone.utc))
        for ioc in iocs:
            indicator, observed_data, relationship, observable = self.create_stix_objects(ioc, observed_time)
            if observable is None:
                continue
            bundle.objects.extend([indicator, observed_data, observable, relationship])
        return bundle

    def create_stix_objects(
        self, ioc: str, observed_time: datetime
    ) -> tuple[Optional[Indicator], Optional[ObservedData], Optional[Relationship], Optional[Observable]]:
        """Return indicator, observed data, relationship and observable for one IOC."""
        observable = self.create_observable(ioc)
        if observable is None:
            return None, None, None, None
        indicator = Indicator(
            id=_new_id("indicator"),
            created=observed_time,
            modified=observed_time,
            pattern=self.create_pattern(observable),
            pattern_type="stix",
            valid_from=observed_time,
            labels=["malicious-activity"],
        )
        observed_data = ObservedData(
            id=_new_id("observed-data"),
            created=observed_time,
            modified=observed_time,
            first_observed=observed_time,
            last_observed=observed_time,
            number_observed=1,
            object_refs=[self.get_observable_id(observable)],
        )
        relationship = Relationship(
            id=_new_id("relationship"),
            created=observed_time,
            modified=observed_time,
            source_ref=indicator.id,
            target_ref=observed_data.id,
            relationship_type="based-on",
        )
        return indicator, observed_data, relationship, observable

    def create_observable(self, ioc: str) -> Optional[Observable]:
        """Classify an IOC as an IPv4 address, file hash or domain name."""
        if IPV4_RE.search(ioc):
            return IPv4Addr(id=_new_id("ipv4-addr"), value=ioc)
        if SHA256_RE.search(ioc):
            return File(id=_new_id("file"), hashes={"SHA-256": ioc})
        if DOMAIN_RE.search(ioc):
            return DomainName(id=_new_id("domain-name"), value=ioc)
        return None

    def get_observable_id(self, observable: Any) -> str:
        if isinstance(observable, (IPv4Addr, File, DomainName)):
            return observable.id
        return ""

    def create_pattern(self, observable: Any) -> str:
        """Return the STIX pattern matching an observable."""
        if isinstance(observable, IPv4Addr):
            return f"[ipv4-addr:value = '{observable.value}']"
        if isinstance(observable, File):
            return f"[file:hashes.'SHA-256' = '{observable.hashes.get('SHA-256', '')}']"
        if isinstance(observable, DomainName):
            return f"[domain-name:value = '{observable.value}']"
        return ""

    def persist_bundle(self, bundle: Bundle) -> None:
        self.collection.insert_one(dataclasses.asdict(bundle))

    def publish_to_stream(self, bundle: Bundle) -> None:
        now = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
        self.redis_client.xadd(STIX_STREAM, {"bundle": bundle.to_json(), "time": now})