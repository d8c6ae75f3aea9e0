"""Tests for browser launch and page interaction helpers."""

import socket
from unittest.mock import MagicMock

from auditor.browser import find_free_port, launch_browser, scroll_page, dismiss_popups


class TestFindFreePort:
    """Tests for find_free_port function."""

    def test_port_is_bindable(self):
        port = find_free_port()

        assert 1024 < port < 65536
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            sock.bind(('127.0.0.1', port))


class TestLaunchBrowser:
    """Tests for launch_browser function."""

    def test_sandbox_flags(self):
        p = MagicMock()
        launch_browser(p, headless=True)

        kwargs = p.chromium.launch.call_args.kwargs
        assert kwargs['headless'] is True
        assert '--no-sandbox' in kwargs['args']
        assert '--disable-setuid-sandbox' in kwargs['args']
        assert not any(a.startswith('--remote-debugging-port') for a in kwargs['args'])

    def test_debugging_port(self):
        p = MagicMock()
        launch_browser(p, headless=False, debugging_port=9333)

        assert '--remote-debugging-port=9333' in p.chromium.launch.call_args.kwargs['args']


class TestPageHelpers:
    """Tests for scroll_page and dismiss_popups."""

    def test_scroll_failure_swallowed(self):
        page = MagicMock()
        page.evaluate.side_effect = Exception('Target closed')

        scroll_page(page)

    def test_dismiss_clicks_first_visible(self):
        page = MagicMock()
        button = MagicMock()
        button.is_visible.return_value = True
        page.query_selector.return_value = button

        dismiss_popups(page)

        button.click.assert_called_once()

    def test_dismiss_no_popup(self):
        page = MagicMock()
        page.query_selector.return_value = None

        dismiss_popups(page)

        assert page.query_selector.call_count > 1
