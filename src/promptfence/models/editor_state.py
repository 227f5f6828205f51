"""EditorState model: the persisted shape of a prompt editor."""

from typing import List

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from promptfence.models.fragment import Fragment
from promptfence.models.hidden_element import HiddenElement


class EditorState(BaseModel):
    """``{text, fragments, hiddenElements}`` as stored on disk.

    Serialise with ``model_dump(by_alias=True)`` to get the camelCase
    JSON keys.
    """

    text: str = Field(default="", description="Raw document text, disabled spans included")

    fragments: List[Fragment] = Field(default_factory=list)

    hidden_elements: List[HiddenElement] = Field(default_factory=list)

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
