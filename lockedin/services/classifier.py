"""
Process classification

A running process is judged against three name sets. Matching is deliberately
fuzzy: a process matches an entry when either name contains the other, after
both are trimmed and lower-cased. That lets "chrome" catch "chrome.exe" or
"notepad" catch "notepad++", and it also means an entry "code" catches
"unicode". Precedence is fixed: system exemption, then block-list, then
allow-list.
"""

import os
import sys
from typing import FrozenSet, Iterable

import psutil

from lockedin.models import Classification
from lockedin.utils.text_utils import normalize_name

WINDOWS_SYSTEM_PROCESSES = frozenset({
    "system", "registry", "smss", "csrss", "wininit", "winlogon", "services",
    "lsass", "svchost", "dwm", "explorer", "fontdrvhost", "sihost", "ctfmon",
    "conhost", "runtimebroker", "taskhostw", "taskmgr", "searchhost",
    "startmenuexperiencehost", "shellexperiencehost", "textinputhost",
    "securityhealthservice", "msmpeng", "spoolsv", "audiodg", "dllhost",
})

MACOS_SYSTEM_PROCESSES = frozenset({
    "kernel_task", "launchd", "windowserver", "loginwindow", "finder",
    "systemuiserver", "coreaudiod", "mds", "cfprefsd", "distnoted",
})

LINUX_SYSTEM_PROCESSES = frozenset({
    "systemd", "kthreadd", "dbus-daemon", "xorg", "xwayland", "gnome-shell",
    "kwin_x11", "kwin_wayland", "plasmashell", "pulseaudio", "pipewire",
    "networkmanager", "sshd", "login", "agetty",
})

SYSTEM_PROCESSES = WINDOWS_SYSTEM_PROCESSES | MACOS_SYSTEM_PROCESSES | LINUX_SYSTEM_PROCESSES


def own_process_names() -> FrozenSet[str]:
    """Names under which the engine itself shows up in a process listing"""
    names = set()
    try:
        names.add(normalize_name(psutil.Process(os.getpid()).name()))
    except psutil.Error:
        pass
    executable = os.path.basename(sys.executable or "")
    if executable:
        names.add(normalize_name(executable))
    names.discard("")
    return frozenset(names)


def build_system_set(extra: Iterable[str] = ()) -> FrozenSet[str]:
    """Built-in OS-critical names, the engine's own names and any extras"""
    names = set(SYSTEM_PROCESSES)
    names.update(own_process_names())
    names.update(normalize_name(name) for name in extra)
    names.discard("")
    return frozenset(names)


def matches(process_name: str, entries: Iterable[str]) -> bool:
    """Bidirectional substring match against any non-empty entry"""
    name = normalize_name(process_name)
    if not name:
        return False
    for entry in entries:
        entry = normalize_name(entry)
        if entry and (entry in name or name in entry):
            return True
    return False


def classify(process_name: str,
             allow_list: Iterable[str],
             block_list: Iterable[str],
             system_set: Iterable[str]) -> Classification:
    if matches(process_name, system_set):
        return Classification.SYSTEM_EXEMPT
    if matches(process_name, block_list):
        return Classification.BLOCKED
    if matches(process_name, allow_list):
        return Classification.ALLOWED
    return Classification.UNCLASSIFIED
