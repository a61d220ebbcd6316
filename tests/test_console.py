"""Tests for topic_explorer.console."""

import threading
from unittest.mock import patch

from topic_explorer.console import ClickConsole, run_blocking
from topic_explorer.pager import Action, action_for_key


class TestClickConsoleKeys:
    def test_plain_key(self):
        with patch("click.getchar", side_effect=["q"]) as getchar:
            assert ClickConsole().read_key() == "q"
        assert getchar.call_count == 1

    def test_windows_scan_code_pair_is_joined(self):
        with patch("click.getchar", side_effect=["\xe0", "H"]):
            key = ClickConsole().read_key()
        assert key == "\xe0H"
        assert action_for_key(key) is Action.SCROLL_UP

    def test_null_prefix_pair_is_joined(self):
        with patch("click.getchar", side_effect=["\x00", "P"]):
            key = ClickConsole().read_key()
        assert action_for_key(key) is Action.SCROLL_DOWN

    def test_posix_escape_sequence_passes_through(self):
        with patch("click.getchar", side_effect=["\x1b[B"]):
            assert action_for_key(ClickConsole().read_key()) is Action.SCROLL_DOWN


class TestRunBlocking:
    async def test_runs_off_the_event_loop_thread(self):
        caller = threading.get_ident()
        worker = await run_blocking(threading.get_ident)
        assert worker != caller

    async def test_passes_arguments(self):
        assert await run_blocking(divmod, 7, 2) == (3, 1)
