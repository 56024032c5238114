import re
from collections.abc import Callable
from dataclasses import dataclass

_ANSI_RE = re.compile(r"\x1b\[[0-9;]*m")


@dataclass(frozen=True)
class Theme:
    red: str = "\033[38;5;203m"
    green: str = "\033[38;5;114m"
    yellow: str = "\033[38;5;221m"
    blue: str = "\033[38;5;111m"
    magenta: str = "\033[38;5;176m"
    cyan: str = "\033[38;5;117m"
    gray: str = "\033[38;5;245m"
    white: str = "\033[38;5;252m"
    orange: str = "\033[38;5;208m"
    pink: str = "\033[38;5;212m"
    lime: str = "\033[38;5;155m"
    teal: str = "\033[38;5;80m"
    gold: str = "\033[38;5;220m"
    coral: str = "\033[38;5;209m"
    purple: str = "\033[38;5;141m"
    sky: str = "\033[38;5;67m"
    muted: str = "\033[90m"  # dim gray for secondary text
    bold: str = "\033[1m"
    dim: str = "\033[2m"
    reset: str = "\033[0m"


DEFAULT = Theme()
_active: Theme = DEFAULT


COLORS = frozenset(
    {
        "red",
        "green",
        "yellow",
        "blue",
        "magenta",
        "cyan",
        "gray",
        "white",
        "orange",
        "pink",
        "lime",
        "teal",
        "gold",
        "coral",
        "purple",
        "sky",
        "muted",
    }
)


def __getattr__(name: str) -> Callable[[str], str]:
    if name in COLORS:

        def _wrap(text: str) -> str:
            return f"{getattr(_active, name)}{text}{_active.reset}"

        _wrap.__name__ = name
        return _wrap
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def color(name: str, text: str) -> str:
    """Color by tag name, falling back to muted for tags outside the palette."""
    code = getattr(_active, name) if name in COLORS else _active.muted
    return f"{code}{text}{_active.reset}"


def bold(text: str) -> str:
    return f"{_active.bold}{text}{_active.reset}"


def dim(text: str) -> str:
    return f"{_active.dim}{text}{_active.reset}"


def strikethrough(text: str) -> str:
    struck = "".join(c + "\u0336" for c in text)
    return f"{_active.muted}{struck}{_active.reset}"


def strip(text: str) -> str:
    return _ANSI_RE.sub("", text)
