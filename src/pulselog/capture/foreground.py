"""Foreground application lookup for the current platform."""

from __future__ import annotations

import ctypes
import logging
import platform
import shutil
import subprocess
from pathlib import PurePath

import psutil

from pulselog.capture.base import ForegroundAppProvider
from pulselog.domain.models import SourceApplication

logger = logging.getLogger(__name__)

UNKNOWN_APPLICATION = SourceApplication()

_OSASCRIPT_FRONT_APP = (
    'tell application "System Events" to get name of first application process whose frontmost is true'
)
_OSASCRIPT_FRONT_BUNDLE = (
    'tell application "System Events" to get bundle identifier of '
    "first application process whose frontmost is true"
)
_OSASCRIPT_FRONT_WINDOW = (
    'tell application "System Events" to tell (first process where frontmost is true) '
    "to get name of front window"
)

# Seconds before a helper command is abandoned
_COMMAND_TIMEOUT = 2.0


class SystemForegroundApp(ForegroundAppProvider):
    """Resolves the foreground application with native platform tools.

    Windows uses the Win32 API through ctypes and psutil, macOS uses
    ``osascript`` and Linux uses ``xdotool`` when it is installed. Any
    failure yields an "Unknown" application.
    """

    def __init__(self, system_name: str | None = None) -> None:
        self._system = system_name or platform.system()

    def current(self) -> SourceApplication:
        try:
            if self._system == "Windows":
                return self._current_windows()
            if self._system == "Darwin":
                return self._current_macos()
            return self._current_linux()
        except (OSError, psutil.Error, subprocess.SubprocessError) as e:
            logger.debug("Foreground lookup failed: %s", e)
            return UNKNOWN_APPLICATION

    def _current_windows(self) -> SourceApplication:
        user32 = ctypes.windll.user32
        hwnd = user32.GetForegroundWindow()
        if not hwnd:
            return UNKNOWN_APPLICATION

        length = user32.GetWindowTextLengthW(hwnd)
        buffer = ctypes.create_unicode_buffer(length + 1)
        user32.GetWindowTextW(hwnd, buffer, length + 1)

        pid = ctypes.c_ulong()
        user32.GetWindowThreadProcessId(hwnd, ctypes.byref(pid))
        exe_name = psutil.Process(pid.value).name()
        return SourceApplication(
            identifier=exe_name.lower(),
            name=PurePath(exe_name).stem or exe_name,
            window_title=buffer.value.strip(),
        )

    def _current_macos(self) -> SourceApplication:
        name = _run_command(["osascript", "-e", _OSASCRIPT_FRONT_APP])
        if not name:
            return UNKNOWN_APPLICATION
        return SourceApplication(
            identifier=_run_command(["osascript", "-e", _OSASCRIPT_FRONT_BUNDLE]),
            name=name,
            window_title=_run_command(["osascript", "-e", _OSASCRIPT_FRONT_WINDOW]),
        )

    def _current_linux(self) -> SourceApplication:
        if shutil.which("xdotool") is None:
            return UNKNOWN_APPLICATION
        title = _run_command(["xdotool", "getactivewindow", "getwindowname"])
        pid = _run_command(["xdotool", "getactivewindow", "getwindowpid"])
        if not pid.isdigit():
            return SourceApplication(window_title=title) if title else UNKNOWN_APPLICATION
        process_name = psutil.Process(int(pid)).name()
        return SourceApplication(identifier=process_name, name=process_name, window_title=title)


def _run_command(args: list[str]) -> str:
    """Run a helper command and return trimmed stdout, "" on failure."""
    process = subprocess.run(
        args, capture_output=True, text=True, check=False, timeout=_COMMAND_TIMEOUT
    )
    return process.stdout.strip() if process.returncode == 0 else ""
