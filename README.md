# feedwatch

feedwatch downloads threat-intelligence feeds and finds indicators of
compromise in them: IPv4 addresses, SHA-256 hashes and domain names. It
stores them as STIX 2.1 bundles. The work is split between two services,
and they pass data to each other through Redis streams:

- **collector** (`feedwatch.feed_service`): downloads each configured feed
  and appends the raw body to the `raw-feeds` stream.
- **normalizer** (`feedwatch.normalizer_service`): reads `raw-feeds`,
  extracts indicators and builds a STIX 2.1 bundle. It saves the bundle in
  MongoDB and publishes it as JSON to the `stix-indicators` stream. It also
  serves a small JSON API for querying the stored bundles.

## Installation

Install the `feedwatch` distribution. It depends on redis, pymongo,
requests, flask and werkzeug. The `test` extra adds pytest and responses.

## Running the collector

```
feedwatch-collector
```

Start-up and shutdown:

- The collector connects to Redis at `redis:6379`. It pings up to ten times,
  two seconds apart, and exits with status 1 if Redis never answers.
- It fetches every feed once at start-up, then again after each interval.
- It stops on SIGINT or SIGTERM.

Each download is counted as `success` or `failure`. A failure is either an
HTTP request error or a Redis error while publishing.

| Variable                 | Default | Meaning                        |
|--------------------------|---------|--------------------------------|
| `FETCH_INTERVAL_MINUTES` | `5`     | Minutes between feed downloads |

A value that is not an integer falls back to the default. Zero or a negative
value is rejected with `ValueError`.

The collector listens on port 4000:

- `/healthz` accepts any common method, returns `OK` and counts the request.
- `GET /metrics` returns the counters in the Prometheus text format:
  - `requests_processed_total{method,status}`
  - `feeds_fetched_total{status}`

  A counter family appears only once it has been incremented.

## Running the normalizer

```
feedwatch-normalizer
```

| Variable     | Default     |
|--------------|-------------|
| `REDIS_HOST` | `localhost` |
| `REDIS_PORT` | `6379`      |
| `MONGO_HOST` | `localhost` |
| `MONGO_PORT` | `27017`     |

The normalizer exits with status 1 if Redis does not answer a ping within
two seconds.

About once a second, it reads the `raw-feeds` stream from its beginning.
Every entry with a `payload` field is turned into a bundle. Each recognised
indicator adds four objects to that bundle:

- an indicator
- an observed-data object
- the observable
- a `based-on` relationship

Bundles are stored in the `normalized-indicators` collection of the
`falconfeeds` database.

The API listens on port 5000:

- `GET /healthz` returns `{"status": "ok"}`.
- `GET /indicators` returns the most recently created bundles, newest first.
  Query parameters:
  - `limit`: how many bundles to return. A missing, non-integer or
    non-positive value means 10.
  - `value`: keeps only bundles that have an object meeting one of these:
    - its pattern matches `value` as a regular expression;
    - its value equals `value`;
    - its SHA-256 hash equals `value`.
- `GET /indicators/<id>` returns the bundle with that id. If there is none,
  it answers `404` with `{"error": "indicator not found"}`.

## Using the library

```python
from datetime import datetime, timezone

from feedwatch.processor import Processor, extract_iocs

extract_iocs("192.168.1.1 example.com")
# ['192.168.1.1', 'example.com']

bundle = Processor(None, None).create_stix_bundle(["1.2.3.4"], datetime.now(timezone.utc))
len(bundle.objects)  # 4
bundle.to_json()
```

`extract_iocs` returns its matches in this order: IPv4 addresses, then
SHA-256 hashes, then domain names. A value may appear more than once if it
matches more than one kind.

Other entry points:

- `feedwatch.stix` holds the STIX dataclasses: `Bundle`, `Indicator`,
  `ObservedData`, `Relationship`, `IPv4Addr`, `DomainName` and `File`. It
  also has `bundle_from_document`, which rebuilds a `Bundle` from a stored
  MongoDB document.
- `feedwatch.handler.APIHandler(collection).create_app()` returns the Flask
  application of the normalizer API.
- `feedwatch.collector.fetch_and_publish_feeds(redis_client, metric, feeds)`
  performs one collection pass.

## What it does not do

- The feed list is fixed in `feedwatch.collector.FEEDS`. It cannot be
  changed from the command line or the environment.
- The collector's Redis address (`redis:6379`) cannot be configured.
- There is no request tracing.
- The counters live only in memory.
- The APIs have no authentication.
- The normalizer re-reads `raw-feeds` from the start on every pass. It does
  not remove or acknowledge processed entries.