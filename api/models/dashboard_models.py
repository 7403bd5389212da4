# File: api/models/dashboard_models.py
from pydantic import BaseModel, Field
from typing import Optional, Literal

from state.state_schema import SelectionState
from utils.id_normalization import strip_node_prefix


class SelectionModel(BaseModel):
    llm_topic: Optional[str] = Field(None, description="Selected LLM cluster key")
    psych_topic: Optional[str] = Field(None, description="Selected psychology cluster key")
    theory: Optional[str] = Field(None, description="Selected theory name (needs a psychology topic)")

    def to_state(self) -> SelectionState:
        # Graph clients may echo node ids back instead of cluster keys
        return SelectionState(
            strip_node_prefix(self.llm_topic),
            strip_node_prefix(self.psych_topic),
            self.theory,
        )

    @classmethod
    def from_state(cls, state: SelectionState) -> "SelectionModel":
        return cls(**state._asdict())


class SelectionEventRequest(BaseModel):
    """A click (or reset) applied to the current selection."""
    state: SelectionModel = Field(default_factory=SelectionModel)
    event: Literal["llm_topic", "psych_topic", "theory", "reset_llm", "reset"]
    value: Optional[str] = None


class SelectionEventResponse(BaseModel):
    state: SelectionModel
    phases: dict


class ViewRequest(BaseModel):
    state: SelectionModel = Field(default_factory=SelectionModel)
    table_sort: Literal["subtopic", "citations"] = "subtopic"
