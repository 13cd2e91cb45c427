"""Home-screen widget support."""

from .bridge import JsonFileSharedStore, SharedStore, WidgetBridge, WidgetMirror, WidgetSnapshot

__all__ = [
    "JsonFileSharedStore",
    "SharedStore",
    "WidgetBridge",
    "WidgetMirror",
    "WidgetSnapshot",
]
