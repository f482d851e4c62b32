class ClipShelfError(Exception):
    pass


class ClassificationSkipped(ClipShelfError):
    """Raised when a clipboard payload yields no history item."""


class PayloadTooLarge(ClassificationSkipped):

    def __init__(self, size: int, limit: int):
        super().__init__(f"Payload of {size} bytes exceeds limit of {limit} bytes")
        self.size = size
        self.limit = limit


class PersistenceFailure(ClipShelfError):
    """Raised by persistence adapters when a load or save cannot complete."""


class ClipboardUnavailable(ClipShelfError):
    pass
