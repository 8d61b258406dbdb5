"""Mapping between Google Calendar colour ids and local hex colours."""

from typing import Optional

# See https://developers.google.com/calendar/api/v3/reference/colors
GOOGLE_EVENT_COLORS = {
    "1": "#7986cb",  # lavender
    "2": "#33b679",  # sage
    "3": "#8e24aa",  # grape
    "4": "#e67c73",  # flamingo
    "5": "#f6bf26",  # banana
    "6": "#f4511e",  # tangerine
    "7": "#039be5",  # peacock
    "8": "#616161",  # graphite
    "9": "#3f51b5",  # blueberry
    "10": "#0b8043",  # basil
    "11": "#d50000",  # tomato
}

DEFAULT_COLOR = "#3b82f6"
DEFAULT_COLOR_ID = "9"


def color_from_google_id(color_id: Optional[str]) -> str:
    """Hex colour for a Google colour id, DEFAULT_COLOR when unset or unknown."""
    if not color_id:
        return DEFAULT_COLOR
    return GOOGLE_EVENT_COLORS.get(color_id, DEFAULT_COLOR)


def google_id_from_color(hex_color: Optional[str]) -> str:
    """Google colour id whose hex value matches exactly, DEFAULT_COLOR_ID otherwise."""
    if not hex_color:
        return DEFAULT_COLOR_ID
    for color_id, color in GOOGLE_EVENT_COLORS.items():
        if color.lower() == hex_color.lower():
            return color_id
    return DEFAULT_COLOR_ID
