"""
Installation mode selection.
"""
from devstack.core.errors import ModeSelectionError
from devstack.schemas import InstallMode

# Menu shown by the interactive prompt, keyed by the accepted answer
MODE_CHOICES = {
    "1": (InstallMode.FULL, "Full-stack (Laravel + Views + API)"),
    "2": (InstallMode.API, "API-only (Optimized for REST API)"),
}
DEFAULT_CHOICE = "1"

_ALIASES = {mode.value: mode for mode in InstallMode}


def parse_mode_choice(raw: str | None, allow_names: bool = False) -> InstallMode:
    """
    Map a menu answer to an InstallMode.

    Empty input selects the default (full). With ``allow_names`` the mode
    names ("full", "api") are accepted too, for the --mode option.

    Raises:
        ModeSelectionError: for anything else
    """
    choice = (raw or "").strip() or DEFAULT_CHOICE
    if choice in MODE_CHOICES:
        return MODE_CHOICES[choice][0]
    if allow_names and choice.lower() in _ALIASES:
        return _ALIASES[choice.lower()]
    raise ModeSelectionError(raw or "")
