# core/notifier.py
import sys
from typing import List, Optional, TextIO, Tuple

from .logger import get_logger

logger = get_logger(__name__)

VARIANTS = ("success", "info", "warning", "error")


class Notifier:
    """
    Snackbar-style messages for the terminal user. Failures are logged by
    whoever raised them; the notification itself is only traced at DEBUG.
    """

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream
        self.history: List[Tuple[str, str]] = []

    def enqueue(self, message: str, variant: str = "info") -> None:
        variant = variant.lower()
        if variant not in VARIANTS:
            logger.warning("Unknown notification variant '%s'; using info.", variant)
            variant = "info"

        self.history.append((variant, message))
        logger.debug("Notify [%s]: %s", variant, message)

        stream = self.stream or sys.stdout
        stream.write(f"[{variant.upper()}] {message}\n")
        stream.flush()

    def messages(self, variant: str | None = None) -> List[str]:
        return [m for v, m in self.history if variant is None or v == variant]
