"""
Logging setup for AgroSync
Console and rotating file handlers with credential masking
"""

import json
import logging
import logging.handlers
import re
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class SecuritySafeFormatter(logging.Formatter):
    """Formatter that masks API keys and bearer tokens"""

    sensitive_fields = ('api_key', 'apikey', 'password', 'secret', 'token', 'authorization')

    _bearer = re.compile(r'(Bearer\s+)[A-Za-z0-9\-._~+/]+=*', re.IGNORECASE)

    def format(self, record):
        record.msg = self._sanitize_message(record.getMessage())
        record.args = None
        return super().format(record)

    def _sanitize_message(self, message: str) -> str:
        message = self._bearer.sub(r'\1***', message)
        lowered = message.lower()
        for field in self.sensitive_fields:
            if field in lowered:
                pattern = rf'{field}["\']?\s*[:=]\s*["\']?([^"\'\s,}}]+)'
                message = re.sub(pattern, f'{field}=***', message, flags=re.IGNORECASE)
        return message


class JSONFormatter(SecuritySafeFormatter):
    """One JSON object per line, used for log files"""

    def format(self, record):
        log_data: Dict[str, Any] = {
            'timestamp': datetime.fromtimestamp(record.created).isoformat(),
            'level': record.levelname,
            'component': record.name,
            'message': self._sanitize_message(record.getMessage()),
        }
        if record.exc_info:
            log_data['stack_trace'] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False)


def setup_logging(level: str = 'INFO', file_path: Optional[str] = None,
                  max_bytes: int = 5 * 1024 * 1024, backup_count: int = 3):
    """Configure the root logger; safe to call more than once"""
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in list(root_logger.handlers):
        if getattr(handler, '_agrosync_handler', False):
            root_logger.removeHandler(handler)
            handler.close()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(SecuritySafeFormatter(DEFAULT_FORMAT))
    console_handler._agrosync_handler = True
    root_logger.addHandler(console_handler)

    if file_path:
        Path(file_path).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            filename=file_path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding='utf-8'
        )
        file_handler.setFormatter(JSONFormatter())
        file_handler._agrosync_handler = True
        root_logger.addHandler(file_handler)

    logging.getLogger(__name__).info("Logging configured")
