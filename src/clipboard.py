"""
Best-effort clipboard access.
"""

import pyperclip
import structlog

logger = structlog.get_logger(__name__)


def copy_to_clipboard(text: str) -> bool:
    """
    Copy text to the system clipboard.

    Returns False instead of raising when no clipboard mechanism is
    available or access is denied.
    """
    try:
        pyperclip.copy(text)
    except pyperclip.PyperclipException as e:
        logger.warning("Could not copy code to clipboard", error=str(e))
        return False
    return True
