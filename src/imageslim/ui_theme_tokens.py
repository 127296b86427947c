"""Shared style tokens used by the presenter and the curses painter."""

from __future__ import annotations

# Palette name -> (xterm-256 index, 8-colour curses fallback name)
PALETTE = {
    "accent": (99, "magenta"),
    "success": (35, "green"),
    "error": (204, "red"),
    "muted": (241, "white"),
    "warning": (214, "yellow"),
    "dim": (237, "white"),
}

# Token -> (palette name or None, attributes)
STYLES = {
    "plain": (None, ()),
    "bold": (None, ("bold",)),
    "title": ("accent", ("bold",)),
    "subtitle": ("muted", ()),
    "label": ("muted", ()),
    "focused_label": ("accent", ("bold",)),
    "focused_border": ("accent", ()),
    "blurred_border": ("dim", ("dim",)),
    "placeholder": ("muted", ("dim",)),
    "cursor": (None, ("reverse",)),
    "selected_mode": ("accent", ("bold",)),
    "unselected_mode": ("muted", ()),
    "success": ("success", ("bold",)),
    "error": ("error", ("bold",)),
    "warning": ("warning", ("bold",)),
    "help": ("muted", ()),
    "cmd": ("muted", ("italic",)),
    "spinner": ("accent", ()),
}
