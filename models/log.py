"""
Persisted audit log entry schemas.
"""

from pydantic import Field
from typing import Any, Optional
from enum import Enum

from models.base import BaseSchema


class LogLevel(str, Enum):
    INFO = "info"
    WARN = "warn"
    ERROR = "error"
    DEBUG = "debug"


class LogEntry(BaseSchema):
    """Row written to the logs table."""

    level: LogLevel
    message: str = Field(..., min_length=1)
    source: str = Field(..., min_length=1)
    context: Optional[dict[str, Any]] = None
    error_stack: Optional[str] = None
    user_id: Optional[str] = None
    order_id: Optional[str] = None
