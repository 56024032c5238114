import dataclasses
from enum import Enum


class TrackerKind(Enum):
    SHOPPING = "SHOPPING"
    TODO = "TODO"
    TRAVEL = "TRAVEL"
    HABIT = "HABIT"
    NOTE = "NOTE"


class Language(Enum):
    RU = "ru"
    EN = "en"


DEFAULT_ICONS: dict[TrackerKind, str] = {
    TrackerKind.SHOPPING: "ShoppingCart",
    TrackerKind.TODO: "CheckSquare",
    TrackerKind.TRAVEL: "Plane",
    TrackerKind.HABIT: "Activity",
    TrackerKind.NOTE: "FileText",
}

ICONS: frozenset[str] = frozenset(
    {
        *DEFAULT_ICONS.values(),
        "Book",
        "Briefcase",
        "Calendar",
        "Car",
        "Coffee",
        "Dumbbell",
        "Gift",
        "Ghost",
        "Heart",
        "Home",
        "Music",
        "Star",
        "Sun",
        "Utensils",
    }
)

FINANCIAL_KINDS: frozenset[TrackerKind] = frozenset({TrackerKind.SHOPPING, TrackerKind.TRAVEL})

DEFAULT_COLOR = "purple"


@dataclasses.dataclass(frozen=True)
class Task:
    id: str
    text: str
    completed: bool = False
    value: float | None = None
    quantity: int | None = 1
    completed_dates: tuple[str, ...] = ()
    seq: int = 0


@dataclasses.dataclass(frozen=True)
class Tracker:
    id: str
    title: str
    kind: TrackerKind
    color: str
    icon: str
    created_at: int
    currency: str | None = None
    tasks: tuple[Task, ...] = ()
    note: str | None = None
    description: str | None = None


@dataclasses.dataclass(frozen=True)
class AppSettings:
    theme_id: str = "deep-space"
    pattern_id: str = "none"
    user_api_key: str | None = None
    language: Language = Language.EN
