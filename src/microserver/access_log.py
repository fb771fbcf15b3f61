"""
=============================================================================
ACCESS LOG
=============================================================================

One structured line per served request, on the "microserver.access"
logger.

=============================================================================
LOG FORMATS
=============================================================================

    TEXT (Apache style, default):
    ┌─────────────────────────────────────────────────────────────────────┐
    │ 127.0.0.1 - - [19/Oct/2026:10:55:36 +0000] "GET /greeting?name=Ana" │
    │     200 10 0.42ms                                                   │
    └─────────────────────────────────────────────────────────────────────┘

    JSON (for log aggregators):
    ┌─────────────────────────────────────────────────────────────────────┐
    │ {"request_id": "a1b2c3d4", "method": "GET", "path": "/greeting",    │
    │  "query": "name=Ana", "client_ip": "127.0.0.1", "status_code": 200, │
    │  "content_length": 10, "duration_ms": 0.42, "timestamp": "..."}     │
    └─────────────────────────────────────────────────────────────────────┘

The access logger is separate from the module loggers so it can be
routed on its own:

    logging.getLogger("microserver.access").addHandler(file_handler)

=============================================================================
"""

import json
import logging
import time
import uuid
from dataclasses import dataclass
from typing import Optional

from .http.request import ParsedRequest
from .http.response import HTTPResponse


logger = logging.getLogger("microserver.access")


@dataclass
class RequestLog:
    """
    Structured log entry for one request.

    request_id:     Short random id, also used in connection log lines
    method:         Request method as sent
    path:           Parsed path (after the "/" → index.html rewrite)
    query:          Raw query string, "" if none
    client_ip:      Peer address
    status_code:    Response status
    content_length: Response body size in bytes
    duration_ms:    Time from accept to response written
    timestamp:      When the entry was written
    """

    request_id: str
    method: str
    path: str
    query: str
    client_ip: str
    status_code: int
    content_length: int
    duration_ms: float
    timestamp: str

    def to_dict(self) -> dict:
        return {
            "request_id": self.request_id,
            "method": self.method,
            "path": self.path,
            "query": self.query,
            "client_ip": self.client_ip,
            "status_code": self.status_code,
            "content_length": self.content_length,
            "duration_ms": round(self.duration_ms, 2),
            "timestamp": self.timestamp,
        }

    def to_text(self) -> str:
        target = f"{self.path}?{self.query}" if self.query else self.path
        return (
            f'{self.client_ip} - - [{self.timestamp}] '
            f'"{self.method or "-"} {target}" {self.status_code} '
            f'{self.content_length} {self.duration_ms:.2f}ms'
        )


class AccessLogger:
    """
    Writes RequestLog entries in the configured format.

    Usage:
        access = AccessLogger(log_format="json")

        started = time.time()
        response = dispatcher.dispatch(request)
        access.log(request, response, client_ip="127.0.0.1", started_at=started)
    """

    def __init__(self, log_format: str = "text", log_level: int = logging.INFO):
        """
        Args:
            log_format: "text" (Apache style) or "json".
            log_level: Level the entries are logged at.
        """
        if log_format not in ("text", "json"):
            raise ValueError(f"Unknown access log format: {log_format!r}")
        self.log_format = log_format
        self.log_level = log_level

    def build(
        self,
        request: ParsedRequest,
        response: HTTPResponse,
        client_ip: str,
        started_at: float,
        request_id: Optional[str] = None,
    ) -> RequestLog:
        return RequestLog(
            request_id=request_id or str(uuid.uuid4())[:8],
            method=request.method,
            path=request.path,
            query=request.query_string or "",
            client_ip=client_ip,
            status_code=int(response.status),
            content_length=len(response.body),
            duration_ms=(time.time() - started_at) * 1000,
            timestamp=time.strftime("%d/%b/%Y:%H:%M:%S %z"),
        )

    def log(
        self,
        request: ParsedRequest,
        response: HTTPResponse,
        client_ip: str,
        started_at: float,
        request_id: Optional[str] = None,
    ) -> RequestLog:
        """Build the entry for this request and emit it. Returns the entry."""
        entry = self.build(request, response, client_ip, started_at, request_id)

        if self.log_format == "json":
            logger.log(self.log_level, json.dumps(entry.to_dict(), ensure_ascii=False))
        else:
            logger.log(self.log_level, entry.to_text())

        return entry
