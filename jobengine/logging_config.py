import logging
import logging.config
import os
import yaml
import json
import threading
from datetime import datetime
from collections import deque
from typing import Optional
import contextvars

from .config import LOG_FORMAT, LOG_LEVEL, LOG_EXCLUDE_PATHS, LOG_SAMPLE_RATE

# Context variable for trace ID
trace_id_var = contextvars.ContextVar('trace_id', default=None)

_RESERVED = {
    'name', 'msg', 'args', 'levelname', 'levelno', 'pathname', 'filename', 'module',
    'lineno', 'funcName', 'created', 'msecs', 'relativeCreated', 'thread', 'threadName',
    'processName', 'process', 'getMessage', 'exc_info', 'exc_text', 'stack_info',
    'taskName', 'message', 'asctime',
}


def get_trace_id() -> Optional[str]:
    """Get the current trace ID from context"""
    return trace_id_var.get()


def log_job_event(event_type: str, message: str, level: int = logging.INFO, **kwargs):
    """Log job lifecycle events with structured data"""
    logger = logging.getLogger("jobengine.events")
    logger.log(level, message, extra={
        "event_type": event_type,
        "component": "engine",
        **kwargs
    })


class JsonFormatter(logging.Formatter):
    """JSON formatter with structured fields"""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "trace_id": get_trace_id(),
            "component": getattr(record, 'component', 'api'),
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        # Structured extras (owner_id, category, job_id, actor, ...)
        for key, value in record.__dict__.items():
            if key not in _RESERVED and key not in log_entry:
                log_entry[key] = value

        return json.dumps(log_entry, default=str)


class MemoryLogHandler(logging.Handler):
    """In-memory log handler with ring buffer for live logs"""

    def __init__(self, max_size: int = 10000):
        super().__init__()
        self.max_size = max_size
        self.logs = deque(maxlen=max_size)
        self._lock = threading.Lock()

    def emit(self, record: logging.LogRecord):
        try:
            msg = self.format(record)

            if isinstance(self.formatter, JsonFormatter):
                try:
                    log_entry = json.loads(msg)
                except json.JSONDecodeError:
                    log_entry = {"msg": msg, "timestamp": datetime.utcnow().isoformat() + "Z"}
            else:
                log_entry = {
                    "msg": msg,
                    "timestamp": datetime.utcnow().isoformat() + "Z",
                    "level": record.levelname,
                    "logger": record.name
                }

            with self._lock:
                self.logs.append(log_entry)

        except Exception:
            self.handleError(record)

    def get_logs(self, limit: int = 1000) -> list:
        with self._lock:
            logs = list(self.logs)
        return logs[-limit:] if limit else logs


# Global memory handler instance
memory_handler = MemoryLogHandler()


def setup_logging():
    """Setup logging configuration from YAML file or environment"""

    config = None
    if os.path.exists("LOGGING.yaml"):
        try:
            with open("LOGGING.yaml", 'r') as f:
                config = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            print(f"Warning: Could not load LOGGING.yaml: {e}")

    if not config:
        config = {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "json": {"()": JsonFormatter},
                "text": {
                    "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                    "datefmt": "%Y-%m-%d %H:%M:%S"
                }
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "level": LOG_LEVEL,
                    "formatter": LOG_FORMAT,
                    "stream": "ext://sys.stdout"
                },
            },
            "loggers": {
                "jobengine": {"level": LOG_LEVEL, "propagate": True},
                "uvicorn": {"level": LOG_LEVEL, "propagate": True},
                "uvicorn.access": {"level": LOG_LEVEL, "propagate": True},
            },
            "root": {
                "level": LOG_LEVEL,
                "handlers": ["console"]
            }
        }

    if LOG_FORMAT == "text":
        for handler in config.get("handlers", {}).values():
            if "formatter" in handler:
                handler["formatter"] = "text"

    for logger in config.get("loggers", {}).values():
        logger["level"] = LOG_LEVEL

    logging.config.dictConfig(config)

    if LOG_FORMAT == "json":
        memory_handler.setFormatter(JsonFormatter())
    else:
        memory_handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))

    root = logging.getLogger()
    root.handlers = [h for h in root.handlers if not isinstance(h, MemoryLogHandler)]
    root.addHandler(memory_handler)

    # Store configuration for middleware
    logging._config = {
        "exclude_paths": LOG_EXCLUDE_PATHS,
        "sample_rate": LOG_SAMPLE_RATE
    }

    return config


def get_memory_handler():
    """Get the singleton memory handler instance"""
    return memory_handler
