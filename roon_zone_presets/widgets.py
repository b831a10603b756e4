"""Settings widgets — the tree the settings UI renders.

The settings UI is described by a list of widgets.  Each widget is a
small dataclass; :class:`Group` nests further widgets.  :func:`to_dict`
converts a widget (recursively) into the JSON object the settings
service expects.

Python → wire mapping:

  ============  ==============
  Widget        ``type``
  ============  ==============
  Dropdown      ``dropdown``
  Group         ``group``
  Label         ``label``
  Textbox       ``string``
  Integer       ``integer``
  ============  ==============
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Optional, Union


#: One ``{"title": ..., "value": ...}`` entry of a dropdown.
DropdownValue = Dict[str, Any]


def choice(title: str, value: Any = None) -> DropdownValue:
    """Build a dropdown entry.  ``value=None`` makes a placeholder."""
    return {"title": title, "value": value}


@dataclass
class Dropdown:
    """A selection list bound to the setting named *setting*."""

    WIDGET_TYPE: ClassVar[str] = "dropdown"

    title: str
    setting: str
    values: List[DropdownValue] = field(default_factory=list)
    subtitle: Optional[str] = None


@dataclass
class Textbox:
    """A free-text field bound to *setting*."""

    WIDGET_TYPE: ClassVar[str] = "string"

    title: str
    setting: str
    subtitle: Optional[str] = None


@dataclass
class Integer:
    """An integer field with an inclusive ``[min, max]`` range."""

    WIDGET_TYPE: ClassVar[str] = "integer"

    title: str
    setting: str
    min: int
    max: int
    subtitle: Optional[str] = None
    error: Optional[str] = None

    def out_of_range(self, text: str) -> bool:
        """Return ``True`` when *text* is not an integer in range."""
        try:
            value = int(text.strip())
        except ValueError:
            return True
        return not self.min <= value <= self.max


@dataclass
class Label:
    """Read-only text."""

    WIDGET_TYPE: ClassVar[str] = "label"

    title: str
    subtitle: Optional[str] = None


@dataclass
class Group:
    """A titled container of further widgets."""

    WIDGET_TYPE: ClassVar[str] = "group"

    title: str
    items: List["Widget"] = field(default_factory=list)
    subtitle: Optional[str] = None
    collapsable: bool = False


Widget = Union[Dropdown, Textbox, Integer, Label, Group]


def to_dict(widget: Widget) -> Dict[str, Any]:
    """Convert *widget* to its wire dictionary.

    ``None`` attributes are left out; group items are converted
    recursively.
    """
    result: Dict[str, Any] = {"type": widget.WIDGET_TYPE}
    for name, value in vars(widget).items():
        if value is None:
            continue
        if name == "items":
            value = [to_dict(item) for item in value]
        elif name == "values":
            value = [dict(entry) for entry in value]
        result[name] = value
    return result


def has_error(widgets: List[Widget]) -> bool:
    """``True`` if any widget in the tree carries an error message."""
    for widget in widgets:
        if isinstance(widget, Group):
            if has_error(widget.items):
                return True
        elif getattr(widget, "error", None):
            return True
    return False
