"""
Tests for process classification
"""

import pytest

from lockedin.models import Classification
from lockedin.services.classifier import build_system_set, classify, matches, SYSTEM_PROCESSES


def test_blocked_process():
    assert classify("chrome", set(), {"chrome"}, set()) is Classification.BLOCKED


def test_allowed_process():
    assert classify("notepad", {"notepad"}, set(), set()) is Classification.ALLOWED


def test_system_exempt_process():
    assert classify("explorer", set(), set(), {"explorer"}) is Classification.SYSTEM_EXEMPT


def test_unclassified_process():
    assert classify("randomtool", set(), set(), set()) is Classification.UNCLASSIFIED


def test_system_exemption_wins_over_block_list():
    assert classify("explorer.exe", {"explorer"}, {"explorer"}, {"explorer"}) is Classification.SYSTEM_EXEMPT


def test_block_list_wins_over_allow_list():
    assert classify("chrome.exe", {"chrome"}, {"chrome"}, set()) is Classification.BLOCKED


@pytest.mark.parametrize("process_name, entry", [
    ("chrome.exe", "chrome"),       # executable suffix
    ("Spotify.exe", "spotify"),     # case
    ("  notepad  ", "notepad"),     # whitespace
    ("code", "code-insiders"),      # entry contains process
])
def test_matching_tolerates_name_variation(process_name, entry):
    assert matches(process_name, [entry])


def test_known_false_positive_is_preserved():
    # "code" meant for the editor also catches "unicode"
    assert classify("unicode", set(), {"code"}, set()) is Classification.BLOCKED


def test_only_one_direction_needed():
    assert matches("msedge", ["edge"])
    assert matches("edge", ["msedge"])


def test_empty_names_never_match():
    assert not matches("", ["chrome"])
    assert not matches("chrome", ["", "   "])
    assert classify("", {"notepad"}, {"chrome"}, {"explorer"}) is Classification.UNCLASSIFIED


def test_build_system_set_adds_extras():
    system_set = build_system_set(["MyBackupAgent", " "])
    assert "mybackupagent" in system_set
    assert "" not in system_set
    assert SYSTEM_PROCESSES <= system_set
