"""Terminal-safe output and logging setup.

Detects terminal encoding and provides ASCII alternatives for the symbols the
CLI prints, and installs a Rich log handler for diagnostic output.
"""
import locale
import logging
import sys

from rich.console import Console
from rich.logging import RichHandler


# ASCII stand-ins for the symbols the CLI prints, used on non-UTF-8 terminals
ICON_MAP = {
    '✓': '[OK]',
    '✗': '[FAIL]',
    '⚠': '[WARN]',
}


def detect_terminal_encoding() -> str:
    """Detect the terminal's encoding capability.

    Returns:
        str: Terminal encoding ('utf-8', 'cp1252', 'ascii', etc.)
    """
    if getattr(sys.stdout, 'encoding', None):
        return sys.stdout.encoding.lower()

    try:
        return locale.getpreferredencoding().lower()
    except (LookupError, ValueError):
        return 'ascii'


def is_utf8_capable() -> bool:
    """Check if the terminal can handle UTF-8 characters."""
    return detect_terminal_encoding().replace('_', '-') in ('utf-8', 'utf8')


def sanitize_for_terminal(text: str) -> str:
    """Replace Unicode symbols with ASCII equivalents if the terminal isn't UTF-8.

    Args:
        text: Text potentially containing Unicode symbols

    Returns:
        str: Sanitized text safe for current terminal
    """
    if is_utf8_capable():
        return text

    sanitized = text
    for unicode_char, ascii_replacement in ICON_MAP.items():
        sanitized = sanitized.replace(unicode_char, ascii_replacement)
    return sanitized


def configure_logging(verbose: bool = False) -> None:
    """Route `intlscan` loggers to stderr through Rich.

    Args:
        verbose: Show debug diagnostics (unresolved imports, parse failures)
    """
    logger = logging.getLogger('intlscan')
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)

    if not any(isinstance(handler, RichHandler) for handler in logger.handlers):
        handler = RichHandler(console=Console(stderr=True), show_path=False, markup=False, rich_tracebacks=False)
        handler.setFormatter(logging.Formatter('%(message)s'))
        logger.addHandler(handler)
    logger.propagate = False
