class FantrackError(Exception):
    pass


class NotFoundError(FantrackError):
    pass


class ValidationError(FantrackError):
    pass


class StateError(FantrackError):
    pass


class BackupImportError(FantrackError):
    """Backup payload is not well-formed JSON or lacks the expected shape."""


class StorageError(FantrackError):
    """Persistence write failed. Never propagated past the store."""


class SuggestionError(FantrackError):
    """AI suggestion request failed. Never propagated past the collaborator."""


class AmbiguousError(FantrackError):
    def __init__(self, ref: str, count: int = 0, sample: list[str] | None = None):
        self.ref = ref
        self.count = count
        self.sample = sample or []
        count_note = f" ({count})" if count else ""
        note = f": {', '.join(self.sample)}" if self.sample else ""
        super().__init__(f"ambiguous ref '{ref}' matches multiple items{count_note}{note}")
