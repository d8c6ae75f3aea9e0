"""Browser lifecycle and page interaction helpers: launching, scrolling, popup dismissal."""

import logging
import socket
import time
from typing import Optional

from playwright.sync_api import Browser, Page, Playwright

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# JS snippets
# ---------------------------------------------------------------------------

_SCROLL_JS = '''
async () => {
    await new Promise(resolve => {
        let totalHeight = 0;
        const distance = 400;
        const timer = setInterval(() => {
            window.scrollBy(0, distance);
            totalHeight += distance;
            if (totalHeight >= document.body.scrollHeight || totalHeight > 8000) {
                clearInterval(timer);
                window.scrollTo(0, 0);
                resolve();
            }
        }, 100);
    });
}
'''

_POPUP_SELECTORS = [
    'button:has-text("Accept")',
    'button:has-text("Accept All")',
    'button:has-text("Accepteren")',
    'button:has-text("Alles accepteren")',
    'button:has-text("Akkoord")',
    'button:has-text("Got it")',
    '#onetrust-accept-btn-handler',
    '[aria-label="Close"]',
]

_LAUNCH_ARGS = ['--no-sandbox', '--disable-setuid-sandbox']


# ---------------------------------------------------------------------------
# Public helpers
# ---------------------------------------------------------------------------

def find_free_port() -> int:
    """Ask the OS for an unused TCP port."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(('127.0.0.1', 0))
        return sock.getsockname()[1]


def launch_browser(p: Playwright, headless: bool = True, debugging_port: Optional[int] = None) -> Browser:
    """Launch Chromium, optionally exposing a remote-debugging port."""
    args = list(_LAUNCH_ARGS)
    if debugging_port:
        args.append(f'--remote-debugging-port={debugging_port}')
    return p.chromium.launch(headless=headless, args=args)


def scroll_page(page: Page) -> None:
    """Scroll to trigger lazy loading."""
    try:
        page.evaluate(_SCROLL_JS)
    except Exception as exc:
        log.debug('Scroll failed: %s', exc)


def dismiss_popups(page: Page) -> None:
    """Dismiss common popups (cookie banners, welcome dialogs, etc.)."""
    for selector in _POPUP_SELECTORS:
        try:
            button = page.query_selector(selector)
            if button and button.is_visible():
                button.click()
                time.sleep(0.3)
                return
        except Exception as exc:
            log.debug('Popup dismissal failed for %s: %s', selector, exc)
