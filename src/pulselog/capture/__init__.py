"""Screen capture and foreground application lookup.

Public API:
    CaptureSource -- Abstract base class for frame sources
    ForegroundAppProvider -- Abstract base class for foreground app lookup
    ScreenCapture -- mss monitor capture
    SystemForegroundApp -- Native foreground app lookup
"""

from pulselog.capture.base import CaptureError, CaptureSource, ForegroundAppProvider

__all__ = [
    "CaptureError",
    "CaptureSource",
    "ForegroundAppProvider",
    "ScreenCapture",
    "SystemForegroundApp",
]


def __getattr__(name: str) -> type:
    """Lazy import for concrete implementations that require external deps."""
    if name == "ScreenCapture":
        from pulselog.capture.screen import ScreenCapture
        return ScreenCapture
    if name == "SystemForegroundApp":
        from pulselog.capture.foreground import SystemForegroundApp
        return SystemForegroundApp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
