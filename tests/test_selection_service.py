import unittest

from services.selection_service import (
    toggle_llm_topic,
    toggle_psych_topic,
    toggle_theory,
    reset_llm_topic,
    reset_selection,
    apply_selection_event,
    describe_selection,
)
from state.state_schema import SelectionState, IDLE


class TestSelectionTransitions(unittest.TestCase):

    def test_llm_click_toggles(self):
        state = toggle_llm_topic(IDLE, "Cluster 0")
        self.assertEqual(state.llm_topic, "Cluster 0")

        state = toggle_llm_topic(state, "Cluster 1")
        self.assertEqual(state.llm_topic, "Cluster 1")

        state = toggle_llm_topic(state, "Cluster 1")
        self.assertIsNone(state.llm_topic)

    def test_axes_are_independent(self):
        state = SelectionState(psych_topic="Cluster 0", theory="Attachment Theory")
        state = toggle_llm_topic(state, "Cluster 2")

        self.assertEqual(state, SelectionState("Cluster 2", "Cluster 0", "Attachment Theory"))

        state = toggle_psych_topic(state, "Cluster 1")
        self.assertEqual(state.llm_topic, "Cluster 2")

    def test_psych_click_always_clears_theory(self):
        state = SelectionState(psych_topic="Cluster 0", theory="Attachment Theory")

        switched = toggle_psych_topic(state, "Cluster 1")
        self.assertEqual(switched.psych_topic, "Cluster 1")
        self.assertIsNone(switched.theory)

        cleared = toggle_psych_topic(state, "Cluster 0")
        self.assertIsNone(cleared.psych_topic)
        self.assertIsNone(cleared.theory)

    def test_theory_toggles_under_psych_topic(self):
        state = SelectionState(psych_topic="Cluster 0")

        state = toggle_theory(state, "Schema Theory")
        self.assertEqual(state.theory, "Schema Theory")

        state = toggle_theory(state, "Attachment Theory")
        self.assertEqual(state.theory, "Attachment Theory")

        state = toggle_theory(state, "Attachment Theory")
        self.assertIsNone(state.theory)
        self.assertEqual(state.psych_topic, "Cluster 0")

    def test_theory_without_psych_topic_is_ignored(self):
        state = SelectionState(llm_topic="Cluster 0")
        self.assertEqual(toggle_theory(state, "Schema Theory"), state)

    def test_resets(self):
        state = SelectionState("Cluster 0", "Cluster 1", "Constructivism")
        self.assertEqual(reset_llm_topic(state), SelectionState(None, "Cluster 1", "Constructivism"))
        self.assertEqual(reset_selection(), IDLE)


class TestSelectionEvents(unittest.TestCase):

    def test_dispatch(self):
        # 1. Pick an LLM topic and a theory under a psychology topic
        state = apply_selection_event(IDLE, "llm_topic", "Cluster 0")
        state = apply_selection_event(state, "psych_topic", "Cluster 1")
        state = apply_selection_event(state, "theory", "Constructivism")
        self.assertEqual(state, SelectionState("Cluster 0", "Cluster 1", "Constructivism"))

        # 2. Back to the overall line chart
        state = apply_selection_event(state, "reset_llm")
        self.assertIsNone(state.llm_topic)
        self.assertEqual(state.theory, "Constructivism")

        # 3. Clear everything
        self.assertEqual(apply_selection_event(state, "reset"), IDLE)

    def test_rejects_unknown_event_and_missing_value(self):
        with self.assertRaises(ValueError):
            apply_selection_event(IDLE, "zoom", "Cluster 0")
        with self.assertRaises(ValueError):
            apply_selection_event(IDLE, "llm_topic")
        with self.assertRaises(ValueError):
            apply_selection_event(IDLE, "theory", "")

    def test_graph_node_ids_select_their_cluster(self):
        state = apply_selection_event(IDLE, "llm_topic", "LLM-Cluster 2")
        state = apply_selection_event(state, "psych_topic", "Psych-Cluster 0")
        self.assertEqual(state, SelectionState("Cluster 2", "Cluster 0"))

        # clicking the same node again still toggles it off
        state = apply_selection_event(state, "llm_topic", "Cluster 2")
        self.assertIsNone(state.llm_topic)

    def test_describe_selection(self):
        self.assertEqual(describe_selection(IDLE), {"llm": "Idle", "psych": "PsychIdle"})
        self.assertEqual(
            describe_selection(SelectionState("Cluster 0", "Cluster 1")),
            {"llm": "LLMSelected", "psych": "PsychSelected"},
        )
        self.assertEqual(
            describe_selection(SelectionState(None, "Cluster 1", "Constructivism")),
            {"llm": "Idle", "psych": "TheorySelected"},
        )


if __name__ == "__main__":
    unittest.main()
