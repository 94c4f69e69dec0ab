"""pulselog -- On-device screen activity journal.

This package periodically captures the screen, recognizes the text on
it locally, groups the recognized signal into per-application activity
sessions, and rolls closed sessions into a daily summary (screen time,
productivity score, top applications).
"""

__version__ = "0.1.0"
