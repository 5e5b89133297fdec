import logging
import json
import sys

class GoogleCloudFormatter(logging.Formatter):
    """
    Formats logs into JSON for Google Cloud Logging.
    Maps Python log levels to GCP 'severity'.
    """
    SEVERITY_MAP = {
        'DEBUG': 'DEBUG',
        'INFO': 'INFO',
        'WARNING': 'WARNING',
        'ERROR': 'ERROR',
        'CRITICAL': 'CRITICAL'
    }

    def format(self, record):
        json_log = {
            "severity": self.SEVERITY_MAP.get(record.levelname, 'DEFAULT'),
            "message": record.getMessage(),
            "logger": record.name,
            "timestamp": record.created,
            "logging.googleapis.com/sourceLocation": {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName
            }
        }

        # Draw/session context passed via `extra={"context": {...}}`
        context = getattr(record, "context", None)
        if context:
            json_log["context"] = context

        if record.exc_info:
            text_trace = self.formatException(record.exc_info)
            json_log["message"] += f"\n{text_trace}"
            # GCP looks for 'stack_trace' for error grouping
            json_log["stack_trace"] = text_trace

        return json.dumps(json_log, default=str)

def setup_logging(level: str = "INFO"):
    """Configures the root logger to output JSON to stdout."""
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(GoogleCloudFormatter())
    root_logger.addHandler(handler)

    # discord.py logs every gateway heartbeat at INFO
    logging.getLogger("discord").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
