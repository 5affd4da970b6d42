"""
Persisted audit log.

Writes rows to the logs table so admin actions and unexpected failures can
be reviewed from the dashboard. Writing a log never raises: if the insert
fails, the entry goes to structlog instead.
"""

from typing import Any, Optional
import structlog

from config import get_supabase_client
from models.log import LogEntry, LogLevel

logger = structlog.get_logger(__name__)

_STRUCTLOG_METHOD = {
    LogLevel.INFO: "info",
    LogLevel.WARN: "warning",
    LogLevel.ERROR: "error",
    LogLevel.DEBUG: "debug",
}


class LogService:
    """Append-only writer for the logs table."""

    def __init__(self):
        self.db = get_supabase_client()
        self.table = "logs"

    def write(
        self,
        level: LogLevel,
        message: str,
        source: str,
        context: Optional[dict[str, Any]] = None,
        error_stack: Optional[str] = None,
        user_id: Optional[str] = None,
        order_id: Optional[str] = None
    ) -> bool:
        """
        Insert one log row.

        Returns:
            True if the row was stored, False if it fell back to structlog
        """
        try:
            entry = LogEntry(
                level=level,
                message=message,
                source=source,
                context=context,
                error_stack=error_stack,
                user_id=user_id,
                order_id=order_id
            )
            self.db.table(self.table).insert(entry.model_dump(mode="json")).execute()
            return True
        except Exception as e:
            logger.warning("log_write_failed", error=str(e))
            emit = getattr(logger, _STRUCTLOG_METHOD.get(level, "info"))
            emit(
                "log_entry",
                message=message,
                source=source,
                context=context,
                user_id=user_id,
                order_id=order_id
            )
            return False

    def error(self, message: str, source: str, **kwargs) -> bool:
        return self.write(LogLevel.ERROR, message, source, **kwargs)

    def warn(self, message: str, source: str, **kwargs) -> bool:
        return self.write(LogLevel.WARN, message, source, **kwargs)

    def info(self, message: str, source: str, **kwargs) -> bool:
        return self.write(LogLevel.INFO, message, source, **kwargs)

    def debug(self, message: str, source: str, **kwargs) -> bool:
        return self.write(LogLevel.DEBUG, message, source, **kwargs)


# Singleton instance for convenience
_log_service: Optional[LogService] = None


def get_log_service() -> LogService:
    """Get or create LogService instance."""
    global _log_service
    if _log_service is None:
        _log_service = LogService()
    return _log_service
