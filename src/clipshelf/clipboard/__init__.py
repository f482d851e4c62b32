from clipshelf.clipboard.base import ClipboardResource, RawPayload
from clipshelf.clipboard.factory import get_clipboard_class, get_clipboard

__all__ = [
    'ClipboardResource',
    'RawPayload',
    'get_clipboard_class',
    'get_clipboard',
]
