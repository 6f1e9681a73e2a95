import logging
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Optional, Union


LogMessage = Union[str, Dict[str, Any]]


class LoggerMixin:
    """
    Mixin that gives a class its own named logger.

    Messages may be plain strings or event dictionaries, e.g.
    ``self.log_info({"event": "booking_created", "booking_id": "..."})``.
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._logger: Optional[logging.Logger] = None

    @property
    def logger(self) -> logging.Logger:
        if self._logger is None:
            self._logger = logging.getLogger(f"crm.{self.__class__.__name__}")
        return self._logger

    @staticmethod
    def _format_message(message: LogMessage) -> str:
        if isinstance(message, dict):
            return str(message)
        return message

    def log_info(self, message: LogMessage, **kwargs) -> None:
        self.logger.info(self._format_message(message), **kwargs)

    def log_warning(self, message: LogMessage, **kwargs) -> None:
        self.logger.warning(self._format_message(message), **kwargs)

    def log_error(self, message: LogMessage, exc_info: bool = False, **kwargs) -> None:
        """
        Log an error event.

        Args:
            message: Event string or dictionary
            exc_info: Attach the active exception's traceback when True
        """
        self.logger.error(self._format_message(message), exc_info=exc_info, **kwargs)

    def log_debug(self, message: LogMessage, **kwargs) -> None:
        self.logger.debug(self._format_message(message), **kwargs)


class _ModuleLevelLogger(LoggerMixin):
    """Shared logger used by route modules."""

    def __init__(self):
        self._logger = logging.getLogger("crm")


logger = _ModuleLevelLogger()


def configure_logging(level: str = "INFO") -> None:
    """Attach a console handler to the ``crm`` logger tree once."""
    crm_logger = logging.getLogger("crm")
    crm_logger.setLevel(level.upper())
    if not crm_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s")
        )
        crm_logger.addHandler(handler)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def money(value: Any) -> Decimal:
    """Normalise a numeric value to a two-decimal Decimal."""
    if value is None:
        return Decimal("0.00")
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
