import json
from datetime import datetime, timedelta, timezone

import pytest

from feedwatch.stix import (
    ZERO_TIME,
    Bundle,
    DomainName,
    File,
    Indicator,
    IPv4Addr,
    ObservedData,
    Relationship,
    bundle_from_document,
    format_time,
)

T = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


def test_format_time_whole_seconds_utc():
    assert format_time(T) == "2024-01-02T03:04:05Z"


def test_format_time_trims_fraction():
    assert format_time(T.replace(microsecond=500000)) == "2024-01-02T03:04:05.5Z"


def test_format_time_offset():
    tz = timezone(timedelta(hours=2))
    assert format_time(datetime(2024, 1, 2, 3, 4, 5, tzinfo=tz)).endswith("+02:00")


def test_format_time_naive_is_utc():
    assert format_time(T.replace(tzinfo=None)) == format_time(T)


def test_indicator_key_order():
    ind = Indicator(id="indicator--x", created=T, modified=T, valid_from=T, labels=["malicious-activity"])
    assert list(ind.to_dict()) == [
        "type", "id", "created", "modified", "pattern", "pattern_type", "valid_from", "labels",
    ]
    assert ind.to_dict()["created"] == format_time(T)


def test_observed_data_and_relationship_keys():
    od = ObservedData(id="observed-data--a", number_observed=1, object_refs=["x"])
    rel = Relationship(id="relationship--b", source_ref="s", target_ref="t", relationship_type="based-on")
    assert list(od.to_dict()) == [
        "type", "id", "created", "modified", "first_observed", "last_observed",
        "number_observed", "object_refs",
    ]
    assert rel.to_dict()["relationship_type"] == "based-on"
    assert od.to_dict()["type"] == "observed-data"


def test_observable_dicts():
    assert IPv4Addr(id="ipv4-addr--1", value="1.2.3.4").to_dict() == {
        "type": "ipv4-addr", "id": "ipv4-addr--1", "value": "1.2.3.4",
    }
    assert DomainName(id="d", value="example.com").to_dict()["type"] == "domain-name"
    assert File(id="f", hashes={"SHA-256": "ab"}).to_dict()["hashes"] == {"SHA-256": "ab"}


def test_bundle_to_json_roundtrip_and_order():
    bundle = Bundle(id="bundle--1", created=T, objects=[IPv4Addr(id="i", value="1.2.3.4")])
    text = bundle.to_json()
    data = json.loads(text)
    assert list(data) == ["type", "id", "objects", "spec_version", "created"]
    assert data["spec_version"] == "2.1"
    assert data["objects"][0]["value"] == "1.2.3.4"
    assert " " not in text


def test_bundle_to_json_escapes_html():
    bundle = Bundle(id="<a&b>", created=T)
    text = bundle.to_json()
    assert "<" not in text and "&" not in text
    assert json.loads(text)["id"] == "<a&b>"


def test_bundle_from_document_roundtrip():
    doc = {
        "_id": object(),
        "type": "bundle",
        "id": "bundle--1",
        "spec_version": "2.1",
        "created": T.replace(tzinfo=None),
        "objects": [{"type": "indicator", "created": T.replace(tzinfo=None)}],
    }
    bundle = bundle_from_document(doc)
    assert bundle.created == T
    assert bundle.objects[0]["created"] == T
    assert bundle.to_dict()["objects"][0]["created"] == format_time(T)


def test_bundle_from_document_missing_fields():
    bundle = bundle_from_document({})
    assert bundle.created == ZERO_TIME
    assert bundle.objects == []
    assert bundle.id == ""


def test_bundle_from_document_bad_types():
    with pytest.raises(ValueError):
        bundle_from_document({"created": "yesterday"})
    with pytest.raises(ValueError):
        bundle_from_document({"id": 5})