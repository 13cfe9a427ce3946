"""Colorful console logging formatter."""

import logging
import re
import sys
from datetime import datetime

# ANSI color codes
COLORS = {
    "reset": "\033[0m",
    "bold": "\033[1m",
    "dim": "\033[2m",
    "white": "\033[37m",
    "cyan": "\033[36m",
    "yellow": "\033[33m",
    "green": "\033[32m",
    "bright_black": "\033[90m",
    "bright_red": "\033[91m",
    "bright_green": "\033[92m",
    "bright_yellow": "\033[93m",
    "bright_blue": "\033[94m",
    "bright_magenta": "\033[95m",
    "bright_cyan": "\033[96m",
    "bg_red": "\033[41m",
}

# Log level colors
LEVEL_COLORS = {
    "DEBUG": COLORS["bright_black"],
    "INFO": COLORS["bright_green"],
    "WARNING": COLORS["bright_yellow"],
    "ERROR": COLORS["bright_red"],
    "CRITICAL": COLORS["bg_red"] + COLORS["white"] + COLORS["bold"],
}

# Component colors for logger names
COMPONENT_COLORS = {
    "fleetshell.services.dialer": COLORS["bright_magenta"],
    "fleetshell.services.fanout": COLORS["bright_blue"],
    "fleetshell.services.relay": COLORS["bright_cyan"],
    "fleetshell.services": COLORS["cyan"],
    "fleetshell.config": COLORS["green"],
    "default": COLORS["white"],
}

_TARGET_PATTERN = re.compile(r"(\w[\w.\-]*@[\w.\-]+:\d+)")
_DURATION_PATTERN = re.compile(r"(\d+\.?\d*m?s)\b")
_COUNTER_PATTERN = re.compile(r"((?:active|total|up|down)=\S+)")


class ColorfulFormatter(logging.Formatter):
    """Colorful log formatter with component highlighting."""

    def __init__(self, use_colors: bool = True) -> None:
        """Initialize the formatter.

        Args:
            use_colors: Whether to use ANSI colors.
        """
        super().__init__()
        self.use_colors = use_colors

    def _colorize(self, text: str, color: str) -> str:
        """Apply color to text if colors are enabled."""
        if not self.use_colors:
            return text
        return f"{color}{text}{COLORS['reset']}"

    def _get_component_color(self, name: str) -> str:
        """Get color for a logger name/component."""
        for prefix, color in COMPONENT_COLORS.items():
            if prefix != "default" and name.startswith(prefix):
                return color
        return COMPONENT_COLORS["default"]

    def _format_timestamp(self, record: logging.LogRecord) -> str:
        """Format timestamp as HH:MM:SS.mmm."""
        dt = datetime.fromtimestamp(record.created)
        return f"{dt.strftime('%H:%M:%S')}.{int(record.msecs):03d}"

    def _format_level(self, record: logging.LogRecord) -> str:
        """Format log level with color and fixed width."""
        level = record.levelname
        color = LEVEL_COLORS.get(level, COLORS["white"])
        return self._colorize(f"{level:<8}", color)

    def _format_component(self, record: logging.LogRecord) -> str:
        """Format component/logger name with color."""
        name = record.name
        if name.startswith("fleetshell."):
            name = name[len("fleetshell."):]
        color = self._get_component_color(record.name)
        return self._colorize(f"{name:<18}", color)

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record with colors."""
        timestamp = self._colorize(self._format_timestamp(record), COLORS["dim"])
        level = self._format_level(record)
        component = self._format_component(record)
        sep = self._colorize("|", COLORS["dim"])
        message = self._highlight_message(record.getMessage())

        line = f"{timestamp} {sep} {level} {sep} {component} {sep} {message}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line

    def _highlight_message(self, message: str) -> str:
        """Highlight targets, durations and relay counters."""
        if not self.use_colors:
            return message

        if "@" in message:
            message = _TARGET_PATTERN.sub(
                f"{COLORS['bright_magenta']}\\1{COLORS['reset']}", message
            )
        if "s" in message:
            message = _DURATION_PATTERN.sub(
                f"{COLORS['bright_yellow']}\\1{COLORS['reset']}", message
            )
        if "=" in message:
            message = _COUNTER_PATTERN.sub(f"{COLORS['cyan']}\\1{COLORS['reset']}", message)
        return message


def configure_logging(level: str = "INFO", use_colors: bool = True) -> None:
    """Attach a single stderr handler to the fleetshell logger.

    Args:
        level: Level name for the fleetshell logger
        use_colors: Whether to use ANSI colors when stderr is a TTY
    """
    if not sys.stderr.isatty():
        use_colors = False

    package_logger = logging.getLogger("fleetshell")
    package_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Only add handler if not already configured
    if not package_logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(ColorfulFormatter(use_colors=use_colors))
        package_logger.addHandler(handler)
        package_logger.propagate = False

    # asyncssh logs every channel at INFO
    logging.getLogger("asyncssh").setLevel(logging.WARNING)
