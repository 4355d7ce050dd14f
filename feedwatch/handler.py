"""HTTP API serving stored STIX bundles."""

from __future__ import annotations

import json
import re
from typing import Any

import pymongo.errors
from flask import Flask, Response, request

from feedwatch.stix import bundle_from_document

DEFAULT_LIMIT = 10
_INT_RE = re.compile(r"[+-]?\d+")


def _respond(code: int, payload: Any) -> Response:
    text = json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
    text = text.replace("<", "\\u003c").replace(">", "\\u003e").replace("&", "\\u0026")
    return Response(text + "\n", status=code, mimetype="application/json")


def _error(code: int, message: str) -> Response:
    return _respond(code, {"error": message})


def _limit(raw: str | None) -> int:
    value = int(raw) if raw and _INT_RE.fullmatch(raw) else 0
    return value if value > 0 else DEFAULT_LIMIT


class APIHandler:
    """Routes for health checks and indicator lookup."""

    def __init__(self, collection: Any) -> None:
        self.collection = collection

    def create_app(self) -> Flask:
        """Build the Flask application with all routes registered."""
        app = Flask(__name__)
        app.add_url_rule("/healthz", "healthz", self._health_check, methods=["GET"])
        app.add_url_rule("/indicators", "indicators", self._get_indicators, methods=["GET"])
        app.add_url_rule("/indicators/<id>", "indicator", self._get_indicator_by_id, methods=["GET"])
        return app

    def _health_check(self) -> Response:
        return _respond(200, {"status": "ok"})

    def _get_indicators(self) -> Response:
        value = request.args.get("value", "")
        limit = _limit(request.args.get("limit"))
        query: dict[str, Any] = {}
        if value:
            query["$or"] = [
                {"objects.pattern": {"$regex": value}},
                {"objects.value": value},
                {"objects.hashes.SHA-256": value},
            ]
        try:
            documents = list(self.collection.find(query, limit=limit, sort=[("created", -1)]))
            bundles = [bundle_from_document(doc) for doc in documents]
        except (pymongo.errors.PyMongoError, ValueError) as err:
            return _error(500, str(err))
        return _respond(200, [bundle.to_dict() for bundle in bundles])

    def _get_indicator_by_id(self, id: str) -> Response:
        try:
            document = self.collection.find_one({"id": id})
            if document is None:
                return _error(404, "indicator not found")
            bundle = bundle_from_document(document)
        except (pymongo.errors.PyMongoError, ValueError):
            return _error(404, "indicator not found")
        return _respond(200, bundle.to_dict())