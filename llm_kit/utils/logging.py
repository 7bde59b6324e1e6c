"""
Logging utilities for LLM Kit
"""

import datetime
import json
import logging
import os
import sys
import uuid
from typing import Any, Dict, List, Optional

# Set up the default logger
logger = logging.getLogger("llm_kit")


class KitLogFormatter(logging.Formatter):
    """
    Custom formatter for LLM Kit logs
    """

    def __init__(self, include_timestamp: bool = True, include_level: bool = True):
        """
        Initialize the formatter

        Args:
            include_timestamp: Whether to include timestamps in log messages
            include_level: Whether to include log levels in log messages
        """
        self.include_timestamp = include_timestamp
        self.include_level = include_level
        super().__init__()

    def format(self, record: logging.LogRecord) -> str:
        """
        Format a log record

        Structured records (dict payloads logged through ``log_json``) are
        rendered as JSON; plain messages are rendered as a single line.

        Args:
            record: Log record to format

        Returns:
            Formatted log string
        """
        message = record.getMessage()
        try:
            message_dict = json.loads(message)
            is_json = isinstance(message_dict, dict)
        except json.JSONDecodeError:
            is_json = False
        if not is_json:
            message_dict = {"message": message}

        if self.include_timestamp:
            message_dict.setdefault(
                "timestamp", datetime.datetime.fromtimestamp(record.created).isoformat()
            )

        if self.include_level:
            message_dict["level"] = record.levelname

        message_dict["logger"] = record.name

        if is_json:
            return json.dumps(message_dict, default=str)

        parts = []
        if self.include_timestamp:
            parts.append(message_dict.pop("timestamp"))
        if self.include_level:
            parts.append(f"[{message_dict.pop('level')}]")
        parts.append(f"({message_dict.pop('logger')})")
        parts.append(message_dict.pop("message"))
        return " ".join(parts)


def configure_logging(
    level: int = logging.INFO,
    console: bool = True,
    log_file: Optional[str] = None,
    json_format: bool = False,
) -> None:
    """
    Configure logging for LLM Kit

    Args:
        level: Logging level
        console: Whether to log to console
        log_file: Path to log file (if None, no file logging)
        json_format: Whether to emit the raw JSON payloads without decoration
    """
    root_logger = logging.getLogger("llm_kit")
    root_logger.setLevel(level)

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if json_format:
        formatter = logging.Formatter("%(message)s")
    else:
        formatter = KitLogFormatter()

    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)

        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)


def new_request_id() -> str:
    return uuid.uuid4().hex


def log_json(
    logger_instance: logging.Logger,
    level: int,
    data: Dict[str, Any],
) -> None:
    """
    Log a dictionary as JSON

    Args:
        logger_instance: Logger instance to use
        level: Logging level
        data: Dictionary to log
    """
    if not logger_instance.isEnabledFor(level):
        return
    logger_instance.log(level, json.dumps(data, default=str))


def summarize_prompt(prompt: Any) -> List[Dict[str, Any]]:
    """
    Render a Prompt as loggable role/content pairs

    Image bytes are replaced with a placeholder naming the MIME type.
    """
    summary: List[Dict[str, Any]] = []
    if getattr(prompt, "system", None) is not None:
        summary.append({"role": "system", "content": prompt.system})
    for message in getattr(prompt, "messages", ()):
        content = []
        for part in message.content:
            if part.type == "text":
                content.append(part.text)
            elif part.type == "image":
                content.append(f"[image {part.mime_type or 'unknown'}]")
            elif part.type == "tool-call":
                content.append(f"[tool-call {part.tool_name}]")
            else:
                content.append(f"[tool-result {part.tool_name}]")
        summary.append({"role": message.role, "content": content})
    return summary


def log_request(
    request_id: str,
    provider: str,
    model: str,
    mode: str,
    prompt: Any,
    metadata: Optional[Dict[str, Any]] = None,
    level: int = logging.DEBUG,
) -> None:
    """
    Log a model request

    Args:
        request_id: Unique request ID
        provider: Provider name
        model: Model ID
        mode: Call mode type
        prompt: The normalized Prompt sent to the model
        metadata: Additional metadata
        level: Logging level
    """
    log_data = {
        "event": "llm_request",
        "request_id": request_id,
        "timestamp": datetime.datetime.now().isoformat(),
        "provider": provider,
        "model": model,
        "mode": mode,
        "prompt": summarize_prompt(prompt),
    }

    if metadata:
        log_data["metadata"] = metadata

    log_json(logger, level, log_data)


def log_response(
    request_id: str,
    provider: str,
    model: str,
    response: Any,
    latency: float,
    finish_reason: Optional[str] = None,
    usage: Optional[Dict[str, int]] = None,
    metadata: Optional[Dict[str, Any]] = None,
    level: int = logging.DEBUG,
) -> None:
    """
    Log a model response

    Args:
        request_id: Unique request ID
        provider: Provider name
        model: Model ID
        response: Response content
        latency: Response time in seconds
        finish_reason: Why generation stopped
        usage: Token usage information
        metadata: Additional metadata
        level: Logging level
    """
    log_data = {
        "event": "llm_response",
        "request_id": request_id,
        "timestamp": datetime.datetime.now().isoformat(),
        "provider": provider,
        "model": model,
        "latency": latency,
    }

    if isinstance(response, (str, int, float, bool)) or response is None:
        log_data["content"] = response
    else:
        log_data["content"] = repr(response)

    if finish_reason:
        log_data["finish_reason"] = finish_reason

    if usage:
        log_data["usage"] = usage

    if metadata:
        log_data["metadata"] = metadata

    log_json(logger, level, log_data)


def log_error(
    request_id: str,
    provider: str,
    error_type: str,
    error_message: str,
    metadata: Optional[Dict[str, Any]] = None,
    level: int = logging.ERROR,
) -> None:
    """
    Log a model error

    Args:
        request_id: Unique request ID
        provider: Provider name
        error_type: Type of error
        error_message: Error message
        metadata: Additional metadata
        level: Logging level
    """
    log_data = {
        "event": "llm_error",
        "request_id": request_id,
        "timestamp": datetime.datetime.now().isoformat(),
        "provider": provider,
        "error_type": error_type,
        "error_message": error_message,
    }

    if metadata:
        log_data["metadata"] = metadata

    log_json(logger, level, log_data)


class LoggingContext:
    """
    Context manager for request-scoped logging

    Errors raised inside the block are logged and re-raised.
    """

    def __init__(
        self,
        provider: str,
        model: str,
        request_id: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize the logging context

        Args:
            provider: Provider name
            model: Model ID
            request_id: Unique request ID (generated when omitted)
            metadata: Additional metadata
        """
        self.request_id = request_id or new_request_id()
        self.provider = provider
        self.model = model
        self.metadata = metadata or {}
        self.start_time: Optional[datetime.datetime] = None

    @property
    def latency(self) -> float:
        if self.start_time is None:
            return 0.0
        return (datetime.datetime.now() - self.start_time).total_seconds()

    def __enter__(self):
        self.start_time = datetime.datetime.now()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is not None:
            log_error(
                request_id=self.request_id,
                provider=self.provider,
                error_type=exc_type.__name__,
                error_message=str(exc_val),
                metadata=self.metadata,
            )
        return False
