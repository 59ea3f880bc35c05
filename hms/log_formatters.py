"""
Log formatters referenced from ``settings.LOGGING``.

Development uses the plain console format; with ``LOG_JSON=1`` every
record is emitted as one JSON object per line so that the container log
shipper can index it.
"""
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict


class JSONFormatter(logging.Formatter):
    # attributes every LogRecord carries; anything else came in via ``extra=``
    _RESERVED = set(vars(logging.makeLogRecord({}))) | {'message', 'asctime'}

    def format(self, record: logging.LogRecord) -> str:
        data: Dict[str, Any] = {
            'timestamp': datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'line': record.lineno,
        }
        for key, value in record.__dict__.items():
            if key not in self._RESERVED and not key.startswith('_'):
                data[key] = value
        if record.exc_info:
            data['exception'] = self.formatException(record.exc_info)
        return json.dumps(data, default=str, ensure_ascii=False)
