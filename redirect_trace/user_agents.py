"""User-agent presets.

Presets are a developer-experience feature: pick a name instead of pasting a
full UA string. Anything that is not a preset name is used verbatim.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from .models import DEFAULT_USER_AGENT

PresetName = Literal["default", "googlebot", "bingbot", "mobile"]


@dataclass(frozen=True)
class UserAgentPreset:
    name: PresetName
    label: str
    user_agent: str


PRESETS: dict[PresetName, UserAgentPreset] = {
    "default": UserAgentPreset(
        name="default",
        label="Default Browser",
        user_agent=DEFAULT_USER_AGENT,
    ),
    "googlebot": UserAgentPreset(
        name="googlebot",
        label="Googlebot",
        user_agent="Mozilla/5.0 (compatible; Googlebot/2.1; +http://www.google.com/bot.html)",
    ),
    "bingbot": UserAgentPreset(
        name="bingbot",
        label="Bingbot",
        user_agent="Mozilla/5.0 (compatible; bingbot/2.0; +http://www.bing.com/bingbot.htm)",
    ),
    "mobile": UserAgentPreset(
        name="mobile",
        label="Mobile Device",
        user_agent=(
            "Mozilla/5.0 (iPhone; CPU iPhone OS 15_2 like Mac OS X) AppleWebKit/605.1.15 "
            "(KHTML, like Gecko) Version/15.2 Mobile/15E148 Safari/604.1"
        ),
    ),
}


def get_preset(name: PresetName) -> UserAgentPreset:
    return PRESETS[name]


def resolve_user_agent(value: str) -> str:
    """Map a preset name or UI label (case-insensitive) to its UA string."""
    key = value.strip().lower()
    for preset in PRESETS.values():
        if key in (preset.name, preset.label.lower()):
            return preset.user_agent
    return value
