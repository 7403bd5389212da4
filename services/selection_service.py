# services/selection_service.py
from typing import Dict, Optional

from state.state_schema import SelectionState, IDLE
from utils.id_normalization import strip_node_prefix

SELECTION_EVENTS = ("llm_topic", "psych_topic", "theory", "reset_llm", "reset")


def toggle_llm_topic(state: SelectionState, cluster_key: str) -> SelectionState:
    """Clicking the selected LLM node again clears the LLM axis."""
    if state.llm_topic == cluster_key:
        return state._replace(llm_topic=None)
    return state._replace(llm_topic=cluster_key)


def toggle_psych_topic(state: SelectionState, cluster_key: str) -> SelectionState:
    # Any psychology click drops the theory, including re-selecting the same topic
    if state.psych_topic == cluster_key:
        return state._replace(psych_topic=None, theory=None)
    return state._replace(psych_topic=cluster_key, theory=None)


def toggle_theory(state: SelectionState, theory_name: str) -> SelectionState:
    # Theories live under a psychology topic; without one there is nothing to select
    if state.psych_topic is None:
        return state
    if state.theory == theory_name:
        return state._replace(theory=None)
    return state._replace(theory=theory_name)


def reset_llm_topic(state: SelectionState) -> SelectionState:
    return state._replace(llm_topic=None)


def reset_selection() -> SelectionState:
    return IDLE


def apply_selection_event(
    state: SelectionState,
    event: str,
    value: Optional[str] = None,
) -> SelectionState:
    """
    Dispatches a user interaction to its transition. Topic values may be
    cluster keys or graph node ids ("LLM-Cluster 0").
    Raises ValueError for unknown events or a missing value.
    """
    if event == "reset":
        return reset_selection()
    if event == "reset_llm":
        return reset_llm_topic(state)

    if event not in SELECTION_EVENTS:
        raise ValueError(f"Unknown selection event: {event!r}")
    if not value:
        raise ValueError(f"Selection event {event!r} requires a value")

    if event == "llm_topic":
        return toggle_llm_topic(state, strip_node_prefix(value))
    if event == "psych_topic":
        return toggle_psych_topic(state, strip_node_prefix(value))
    return toggle_theory(state, value)


def describe_selection(state: SelectionState) -> Dict[str, str]:
    """Phase names of both axes, e.g. {"llm": "Idle", "psych": "TheorySelected"}."""
    llm_phase = "Idle" if state.llm_topic is None else "LLMSelected"
    if state.psych_topic is None:
        psych_phase = "PsychIdle"
    elif state.theory is None:
        psych_phase = "PsychSelected"
    else:
        psych_phase = "TheorySelected"
    return {"llm": llm_phase, "psych": psych_phase}
