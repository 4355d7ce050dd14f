from datetime import timedelta

import pytest

from feedwatch.feed_service import create_app, fetch_interval
from feedwatch.metrics import CounterVec


def make_counters():
    requests_processed = CounterVec(
        "requests_processed_total", "Total number of processed requests", ["method", "status"]
    )
    feeds_fetched = CounterVec("feeds_fetched_total", "Number of feeds fetched, labeled by status", ["status"])
    return requests_processed, feeds_fetched


def test_fetch_interval_default():
    assert fetch_interval({}) == timedelta(minutes=5)


def test_fetch_interval_from_environment():
    assert fetch_interval({"FETCH_INTERVAL_MINUTES": "2"}) == timedelta(minutes=2)
    assert fetch_interval({"FETCH_INTERVAL_MINUTES": "+7"}) == timedelta(minutes=7)


def test_fetch_interval_ignores_unparsable():
    assert fetch_interval({"FETCH_INTERVAL_MINUTES": "abc"}) == fetch_interval({})
    assert fetch_interval({"FETCH_INTERVAL_MINUTES": " 3"}) == fetch_interval({})


@pytest.mark.parametrize("raw", ["0", "-1"])
def test_fetch_interval_rejects_non_positive(raw):
    with pytest.raises(ValueError):
        fetch_interval({"FETCH_INTERVAL_MINUTES": raw})


def test_healthz_counts_requests():
    requests_processed, feeds_fetched = make_counters()
    client = create_app(requests_processed, [requests_processed, feeds_fetched]).test_client()
    response = client.get("/healthz")
    assert response.status_code == 200
    assert response.get_data(as_text=True) == "OK\n"
    assert requests_processed.value("GET", "200") == 1.0


def test_healthz_accepts_other_methods():
    requests_processed, feeds_fetched = make_counters()
    client = create_app(requests_processed, [requests_processed, feeds_fetched]).test_client()
    response = client.post("/healthz")
    assert response.status_code == 200
    assert requests_processed.value("POST", "200") == 1.0


def test_metrics_endpoint_renders_counters():
    requests_processed, feeds_fetched = make_counters()
    feeds_fetched.inc("success")
    client = create_app(requests_processed, [requests_processed, feeds_fetched]).test_client()
    client.get("/healthz")
    response = client.get("/metrics")
    text = response.get_data(as_text=True)
    assert response.status_code == 200
    assert response.content_type.startswith("text/plain")
    assert 'feeds_fetched_total{status="success"} 1' in text
    assert 'requests_processed_total{method="GET",status="200"} 1' in text