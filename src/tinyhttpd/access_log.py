"""
=============================================================================
ACCESS LOGGING
=============================================================================

One log line per response written, plus the logging setup for the whole
process.

    127.0.0.1 - - [18/Oct/2026:10:00:00 +0000] "GET /text.txt" 200 5 0.42ms

=============================================================================
LOGGER NAMES
=============================================================================

    tinyhttpd.access     One entry per completed request (this module)
    tinyhttpd.server     Per-connection failures, startup, shutdown
    tinyhttpd.core.*     Socket-level details (DEBUG)

Access entries use their own logger so they can be routed separately:

    logging.getLogger("tinyhttpd.access").addHandler(file_handler)

=============================================================================
"""

import json
import time
import logging
from dataclasses import dataclass, asdict
from typing import Optional

from .config import ServerConfig
from .http.request import Request
from .http.response import Response


logger = logging.getLogger("tinyhttpd.access")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass
class RequestLog:
    """
    Structured log entry for one request.

    request_id:     Connection id, also used in error log lines
    method:         HTTP method as received
    path:           Request path
    query:          Raw query string ("" when absent)
    client_ip:      Peer address
    user_agent:     User-Agent header ("-" when absent)
    status_code:    Response status
    content_length: Response body size in bytes
    duration_ms:    Time from accept to last byte written
    timestamp:      When the entry was produced
    """

    request_id: str
    method: str
    path: str
    query: str
    client_ip: str
    user_agent: str
    status_code: int
    content_length: int
    duration_ms: float
    timestamp: str

    @classmethod
    def build(
        cls,
        request_id: str,
        request: Request,
        response: Response,
        duration_ms: float,
    ) -> "RequestLog":
        return cls(
            request_id=request_id,
            method=request.method,
            path=request.path,
            query=request.query or "",
            client_ip=request.remote_address,
            user_agent=request.get_header("user-agent") or "-",
            status_code=int(response.status),
            content_length=response.content_length,
            duration_ms=duration_ms,
            timestamp=time.strftime("%d/%b/%Y:%H:%M:%S %z"),
        )

    def to_dict(self) -> dict:
        entry = asdict(self)
        entry["duration_ms"] = round(self.duration_ms, 2)
        return entry

    def to_text(self) -> str:
        """Apache-style line, readable by most log tools."""
        target = f"{self.path}?{self.query}" if self.query else self.path
        return (
            f'{self.client_ip} - - [{self.timestamp}] '
            f'"{self.method} {target}" {self.status_code} '
            f'{self.content_length} {self.duration_ms:.2f}ms'
        )


def log_request(entry: RequestLog, log_format: str = "text") -> None:
    """Emit `entry` on the access logger in text or JSON form."""
    if log_format == "json":
        logger.info(json.dumps(entry.to_dict()))
    else:
        logger.info(entry.to_text())


def setup_logging(config: Optional[ServerConfig] = None) -> None:
    """Configure the root logger from `config` (INFO if none given)."""
    level_name = config.log_level if config else "INFO"
    level = getattr(logging, level_name.upper(), logging.INFO)

    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=DATE_FORMAT)
    logging.getLogger("tinyhttpd").setLevel(level)
