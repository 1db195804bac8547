from __future__ import annotations

import logging
import sys
import threading
import weakref
from collections import deque

_LEVEL_COLORS = {
    "DEBUG": "\033[36m",  # cyan
    "INFO": "\033[37m",  # light gray
    "WARNING": "\033[33m",  # yellow
    "ERROR": "\033[31m",  # red
    "CRITICAL": "\033[41m",  # red background
}
_RESET = "\033[0m"
_DIM = "\033[2m"

# obsws-python logs every request and reply; websocket-client every frame
_CHATTY_LOGGERS = ("obsws_python", "websocket")

# Lines replayed into a panel opened after they were logged
PANEL_BACKLOG = 50


class AnsiColorFormatter(logging.Formatter):
    """``HH:MM:SS LEVEL logger: message``, level colored and time dimmed on a tty."""

    def __init__(self, colored: bool = True) -> None:
        super().__init__(datefmt="%H:%M:%S")
        self.colored = colored and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        # Base class renders message plus any traceback
        message = super().format(record)
        stamp = self.formatTime(record, self.datefmt)
        level = record.levelname
        if self.colored:
            stamp = f"{_DIM}{stamp}{_RESET}"
            color = _LEVEL_COLORS.get(level)
            if color:
                level = f"{color}{level}{_RESET}"
        return f"{stamp} {level} {record.name}: {message}"


class PanelSinks:
    """
    The ui.log widgets of open control panels plus a short backlog.

    A panel opened after startup still sees how the OBS connection went,
    since those lines are replayed into it on attach.
    """

    def __init__(self, backlog: int = PANEL_BACKLOG) -> None:
        self.backlog: deque[str] = deque(maxlen=backlog)
        self._widgets: set[weakref.ref] = set()
        self._lock = threading.Lock()

    def attach(self, widget) -> None:
        with self._lock:
            for line in self.backlog:
                widget.push(line)
            self._widgets.add(weakref.ref(widget))

    def detach(self, widget) -> None:
        with self._lock:
            self._widgets.discard(weakref.ref(widget))

    def push(self, line: str) -> None:
        with self._lock:
            self.backlog.append(line)
            for ref in list(self._widgets):
                widget = ref()
                if widget is None:
                    self._widgets.discard(ref)
                    continue
                try:
                    widget.push(line)
                except Exception:
                    # Browser tab closed before on_disconnect detached it
                    self._widgets.discard(ref)


_panels = PanelSinks()


class PanelLogHandler(logging.Handler):
    """Mirror log records into every open control panel."""

    def __init__(
        self, level: int = logging.INFO, sinks: PanelSinks | None = None
    ) -> None:
        super().__init__(level=level)
        self.sinks = sinks if sinks is not None else _panels
        self.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(message)s", "%H:%M:%S")
        )

    def emit(self, record: logging.LogRecord) -> None:
        self.sinks.push(self.format(record))


def attach_ui_log(log_widget) -> None:
    """Register a panel's ui.log widget and replay the backlog into it."""
    _panels.attach(log_widget)


def detach_ui_log(log_widget) -> None:
    _panels.detach(log_widget)


def configure_logging(
    level: int = logging.INFO, use_color: bool = True, add_ui_handler: bool = True
) -> logging.Logger:
    """
    Root logger with a stderr console handler and, unless the panel is
    disabled, a PanelLogHandler. obs-websocket client libraries are held at
    WARNING or above. Safe to call more than once.
    """
    logger = logging.getLogger()
    logger.setLevel(level)

    if not any(type(h) is logging.StreamHandler for h in logger.handlers):
        console = logging.StreamHandler(stream=sys.stderr)
        console.setLevel(level)
        console.setFormatter(AnsiColorFormatter(colored=use_color))
        logger.addHandler(console)

    if add_ui_handler and not any(
        isinstance(h, PanelLogHandler) for h in logger.handlers
    ):
        logger.addHandler(PanelLogHandler(level=level))

    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    return logger
