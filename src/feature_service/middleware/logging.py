"""JSON log output for the feature service.

Records become one JSON object per line.  The request context is attached
by :class:`RequestContextFilter`; feature keys passed through ``extra``
(``locus``, ``term``, ``rank``, ``accession``) are grouped under
``"feature"``::

    {"timestamp": "...", "level": "DEBUG", "logger": "feature_service.features.service",
     "message": "get_feature", "request_id": "3f2a...",
     "request": {"method": "GET", "path": "/features/HLA-A/exon/1/7"},
     "feature": {"locus": "HLA-A", "term": "exon", "rank": 1, "accession": 7}}
"""

from __future__ import annotations

import datetime
import json
import logging
import sys
from typing import Any

from feature_service.middleware.request_context import current_request

FEATURE_FIELDS = ("locus", "term", "rank", "accession")
ACCESS_FIELDS = ("status", "duration_ms")


class RequestContextFilter(logging.Filter):
    """Copy the bound :class:`RequestContext` onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        context = current_request()
        record.request_id = context.request_id
        record.http_method = context.method
        record.http_path = context.path
        return True


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.datetime.fromtimestamp(record.created, tz=datetime.UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", ""),
        }
        if getattr(record, "http_path", ""):
            payload["request"] = {"method": record.http_method, "path": record.http_path}  # type: ignore[attr-defined]

        feature = {
            name: getattr(record, name)
            for name in FEATURE_FIELDS
            if getattr(record, name, None) is not None
        }
        if feature:
            payload["feature"] = feature

        for name in ACCESS_FIELDS:
            if hasattr(record, name):
                payload[name] = getattr(record, name)

        if record.exc_info and record.exc_info[0] is not None:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def setup_logging(level: int | str = logging.INFO) -> None:
    """Send every record to stdout as one JSON line.

    Any handler already on the root logger is removed first, so calling
    this again (one app per test) never duplicates output.
    """
    root = logging.getLogger()
    root.setLevel(level)
    for existing in root.handlers[:]:
        root.removeHandler(existing)

    stdout = logging.StreamHandler(sys.stdout)
    stdout.setFormatter(JsonFormatter())
    stdout.addFilter(RequestContextFilter())
    root.addHandler(stdout)
