import logging
import traceback
from collections import deque
from datetime import datetime, timezone
from typing import Any, Dict, List

logger = logging.getLogger(__name__)


class ErrorReporter:
    """Collects unexpected server errors for the lifetime of the application.

    The app creates one in its lifespan, calls ``start()`` before serving and
    ``flush()`` on shutdown. Only the most recent ``max_events`` are kept.
    """

    def __init__(self, max_events: int = 50):
        self.max_events = max_events
        self._events = deque(maxlen=max_events)
        self.started = False

    def start(self) -> None:
        self.started = True
        logger.info("Error reporter started (keeping last %d events)", self.max_events)

    def capture(self, exc: BaseException, **context: Any) -> Dict[str, Any]:
        event = {
            "type": type(exc).__name__,
            "message": str(exc),
            "stack": "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
            "timestamp": datetime.now(timezone.utc).isoformat(),
            **context,
        }
        self._events.append(event)
        logger.error("Unhandled %s: %s %s", event["type"], event["message"], context or "")
        return event

    @property
    def recent(self) -> List[Dict[str, Any]]:
        return list(self._events)

    def flush(self) -> List[Dict[str, Any]]:
        drained = list(self._events)
        self._events.clear()
        if drained:
            logger.warning("Flushing %d captured error(s) on shutdown", len(drained))
        self.started = False
        return drained
