from clipshelf.models.clipboarditem import ClipboardItem, ClipboardKind, IgnoredApp

__all__ = [
    'ClipboardItem',
    'ClipboardKind',
    'IgnoredApp',
]
