"""
Open the relay's root page in the user's default browser.

Runs on a background thread so a slow or hanging browser launch never
delays the accept loop. Failure is logged and otherwise ignored.
"""

import logging
import threading
import webbrowser


logger = logging.getLogger(__name__)


def _launch(url: str) -> None:
    try:
        if not webbrowser.open(url):
            logger.warning(f"No browser available to open {url}")
        else:
            logger.info(f"Opened {url} in the default browser")
    except Exception as e:
        logger.warning(f"Failed to open browser on {url}: {e}")


def open_browser(url: str) -> threading.Thread:
    """
    Launch the default browser on `url` without blocking.

    Returns:
        The (daemon) thread doing the launch, mostly for tests.
    """
    thread = threading.Thread(target=_launch, args=(url,), name="browser-launch", daemon=True)
    thread.start()
    return thread
