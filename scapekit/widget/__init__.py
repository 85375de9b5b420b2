"""Widget model.

Example usage:
    >>> from scapekit.widget import create_widget
    >>> widget = create_widget("image", "image-large")
    >>> widget.position, widget.channel.value, widget.is_feature
    (-1, 'neutral', False)
"""

from .lib import UnknownVariantError, Widget, create_widget, generate_widget_id

__all__ = [
    "Widget",
    "UnknownVariantError",
    "create_widget",
    "generate_widget_id",
]
