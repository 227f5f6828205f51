"""List of hidden elements shown as colored bubbles."""

from typing import List, Optional, Tuple

from rich.text import Text
from textual.widgets import Label, ListItem, ListView

from promptfence.models.hidden_element import HiddenElement


class HiddenElementItem(ListItem):
    """One hidden element; remembers the element id."""

    def __init__(self, element: HiddenElement):
        label = Text(f" {element.display_name} ", style=f"{element.text_color} on {element.bubble_color}")
        super().__init__(Label(label))
        self.hidden_id = element.id


class HiddenElementList(ListView):
    """Hidden elements bar. Selecting an item inserts its content."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._shown: Tuple = ()

    def show_elements(self, elements: List[HiddenElement]) -> None:
        """Rebuild the items when the elements changed."""
        signature = tuple(
            (e.id, e.display_name, e.bubble_color, e.text_color) for e in elements
        )
        if signature == self._shown:
            return
        self._shown = signature
        self.clear()
        self.extend(HiddenElementItem(element) for element in elements)

    @property
    def highlighted_id(self) -> Optional[int]:
        item = self.highlighted_child
        if isinstance(item, HiddenElementItem):
            return item.hidden_id
        return None
