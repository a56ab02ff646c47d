"""
Base Component Class for Touchline UI Components

Pure Python HTML generation: every component renders to a string and escapes
untrusted values through `escape`.
"""

from typing import Any, Optional
import html


class Component:
    """Base class for all UI components"""

    def render(self) -> str:
        """Render the component as an HTML string"""
        raise NotImplementedError("Subclasses must implement render()")

    def __str__(self) -> str:
        return self.render()

    @staticmethod
    def escape(text: Optional[Any]) -> str:
        """Escape HTML entities; None renders as an empty string."""
        return html.escape(str(text)) if text is not None else ""

    @staticmethod
    def classes(*args: str, **conditionals: bool) -> str:
        """Build a CSS class string, adding keyword classes whose value is True.

        Example:
            >>> Component.classes("badge", "badge--risk", critical=True, muted=False)
            'badge badge--risk critical'
        """
        classes = [c for c in args if c]
        classes.extend(key.replace("_", "-") for key, value in conditionals.items() if value)
        return " ".join(classes)

    @staticmethod
    def attributes(**attrs: Any) -> str:
        """Build HTML attributes; `class_` -> class, `data_x` -> data-x, True -> bare flag."""
        result = []
        for key, value in attrs.items():
            if key.endswith("_"):
                key = key[:-1]
            else:
                key = key.replace("_", "-")
            if value is True:
                result.append(key)
            elif value is not False and value is not None:
                result.append(f'{key}="{html.escape(str(value))}"')
        return " ".join(result)
