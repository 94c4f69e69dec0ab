"""Static application-to-category lookup.

Category resolution is a pure function over keyword tables: bundle or
process identifier fragments are checked first, then display-name
fragments, and anything unmatched falls back to ``Other``.
"""

from __future__ import annotations

import re

from pulselog.domain.models import ActivityCategory, SourceApplication

_Table = tuple[tuple[ActivityCategory, tuple[str, ...]], ...]

# Checked in order; the first table containing a matching fragment wins.
_IDENTIFIER_TABLE: _Table = (
    (ActivityCategory.DEVELOPMENT, (
        "com.apple.dt.xcode", "com.microsoft.vscode", "com.jetbrains", "com.sublimetext",
        "dev.zed", "com.todesktop.cursor", "code.exe", "devenv.exe",
        "com.googlecode.iterm2", "com.apple.terminal",
        "net.kovidgoyal.kitty", "com.mitchellh.ghostty", "co.warp.warpterm",
    )),
    (ActivityCategory.COMMUNICATION, (
        "com.apple.mail", "com.microsoft.outlook", "com.tinyspeck.slackmacgap",
        "com.microsoft.teams", "us.zoom.xos", "com.apple.messages", "com.apple.facetime",
        "ru.keepcoder.telegram", "com.hnc.discord", "com.whatsapp",
    )),
    (ActivityCategory.BROWSING, (
        "com.apple.safari", "com.google.chrome", "org.mozilla.firefox",
        "company.thebrowser.browser", "com.microsoft.edgemac", "com.brave.browser",
        "com.vivaldi.vivaldi", "com.operasoftware.opera",
    )),
    (ActivityCategory.DESIGN, (
        "com.figma", "com.bohemiancoding.sketch", "com.adobe.photoshop",
        "com.adobe.illustrator", "com.adobe.xd", "com.pixelmatorteam",
    )),
    (ActivityCategory.WRITING, (
        "com.apple.iwork.pages", "com.microsoft.word", "com.ulyssesapp", "md.obsidian",
        "com.apple.notes", "com.notion", "abnerworks.typora", "com.bear-writer",
    )),
    (ActivityCategory.PRODUCTIVITY, (
        "com.apple.iwork.keynote", "com.apple.iwork.numbers", "com.microsoft.excel",
        "com.microsoft.powerpoint", "com.apple.finder", "com.apple.preview",
        "com.apple.calendar", "com.apple.reminders", "com.todoist", "com.linear", "com.asana",
    )),
    (ActivityCategory.ENTERTAINMENT, (
        "com.apple.music", "com.spotify", "com.apple.tv", "com.netflix",
        "com.apple.podcasts", "com.valvesoftware.steam",
    )),
)

_NAME_TABLE: _Table = (
    (ActivityCategory.DEVELOPMENT, (
        "xcode", "visual studio code", "vscode", "code.exe", "terminal", "iterm", "kitty",
        "ghostty", "warp", "intellij", "webstorm", "pycharm", "cursor", "zed", "sublime text",
        "neovim", "vim", "emacs",
    )),
    (ActivityCategory.COMMUNICATION, (
        "mail", "outlook", "slack", "teams", "zoom", "messages", "facetime", "telegram",
        "discord", "whatsapp", "signal",
    )),
    (ActivityCategory.BROWSING, (
        "safari", "chrome", "firefox", "arc", "edge", "brave", "vivaldi", "opera",
    )),
    (ActivityCategory.DESIGN, (
        "figma", "sketch", "photoshop", "illustrator", "pixelmator", "affinity", "canva",
    )),
    (ActivityCategory.WRITING, (
        "pages", "word", "obsidian", "notion", "typora", "bear", "ulysses", "scrivener",
        "notes", "editor",
    )),
    (ActivityCategory.PRODUCTIVITY, (
        "numbers", "excel", "keynote", "powerpoint", "finder", "explorer", "preview",
        "calendar", "reminders", "todoist", "linear", "asana", "jira", "trello",
    )),
    (ActivityCategory.ENTERTAINMENT, (
        "music", "spotify", "netflix", "youtube", "podcasts", "steam", "twitch", "vlc",
    )),
)

_ICONS = {
    ActivityCategory.DEVELOPMENT: "code",
    ActivityCategory.COMMUNICATION: "message",
    ActivityCategory.BROWSING: "globe",
    ActivityCategory.DESIGN: "paintbrush",
    ActivityCategory.WRITING: "document",
    ActivityCategory.PRODUCTIVITY: "chart",
    ActivityCategory.ENTERTAINMENT: "play",
    ActivityCategory.OTHER: "app",
}


def _lookup(value: str, table: _Table, whole_words: bool = False) -> ActivityCategory | None:
    lower = value.lower()
    if not lower:
        return None
    for category, fragments in table:
        for fragment in fragments:
            if whole_words:
                # "arc" must not match "Research"
                if re.search(rf"(?<![a-z]){re.escape(fragment)}(?![a-z])", lower):
                    return category
            elif fragment in lower:
                return category
    return None


def resolve_category(application: SourceApplication) -> ActivityCategory:
    """Map an application to its activity category, ``Other`` when unknown."""
    return (
        _lookup(application.identifier, _IDENTIFIER_TABLE)
        or _lookup(application.name, _NAME_TABLE, whole_words=True)
        or ActivityCategory.OTHER
    )


def icon_for_category(category: ActivityCategory) -> str:
    return _ICONS.get(category, "app")
