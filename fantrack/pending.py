"""Stage-then-confirm gate for destructive actions."""

import dataclasses
import sys
from collections.abc import Callable
from enum import Enum

from .core.errors import StateError

__all__ = ["ActionKind", "ConfirmationGate", "PendingAction", "confirm_or_cancel", "gate"]


class ActionKind(Enum):
    DELETE_TRACKER = "delete_tracker"
    DELETE_ALL = "delete_all"
    CLEAR_COMPLETED = "clear_completed"
    IMPORT = "import"


@dataclasses.dataclass(frozen=True)
class PendingAction:
    kind: ActionKind
    label: str
    continuation: Callable[[], None] = dataclasses.field(compare=False, repr=False)


class ConfirmationGate:
    """Holds at most one pending action. Staging a new one discards the old."""

    def __init__(self) -> None:
        self._pending: PendingAction | None = None

    @property
    def pending(self) -> PendingAction | None:
        return self._pending

    def stage(self, kind: ActionKind, label: str, continuation: Callable[[], None]) -> PendingAction:
        self._pending = PendingAction(kind, label, continuation)
        return self._pending

    def confirm(self) -> PendingAction:
        action = self._pending
        if action is None:
            raise StateError("nothing to confirm")
        self._pending = None
        action.continuation()
        return action

    def cancel(self) -> PendingAction | None:
        action, self._pending = self._pending, None
        return action


gate = ConfirmationGate()


def _ask(prompt: str) -> bool:
    sys.stdout.write(f"{prompt} [y/N] ")
    sys.stdout.flush()
    try:
        answer = input()
    except EOFError:
        return False
    return answer.strip().lower() in {"y", "yes"}


def confirm_or_cancel(yes: bool = False) -> bool:
    """Run the staged action if `yes` or the user agrees at the prompt; cancel otherwise."""
    action = gate.pending
    if action is None:
        raise StateError("nothing to confirm")
    if yes or _ask(f"{action.label}?"):
        gate.confirm()
        return True
    gate.cancel()
    sys.stdout.write("cancelled\n")
    return False
