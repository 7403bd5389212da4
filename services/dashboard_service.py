# services/dashboard_service.py
import copy
import enum
import logging
import os
import threading
from typing import Any, Callable, Dict, List, Optional

from cachetools import LRUCache

from services import citation_aggregation_service as engine
from services.relation_loader import load_dataset, DatasetLoadError
from state.relations import CitationDataset
from state.state_schema import SelectionState
from utils.id_normalization import llm_node_id, psych_node_id

logger = logging.getLogger(__name__)

DEFAULT_CACHE_SIZE = int(os.getenv("VIEW_CACHE_SIZE", "256"))

OVERALL_LINE_TITLE = "Overall Citation Flow from LLM Research to Psychology Papers"
TABLE_TITLE = "Subtopics and Theories"


class LoadStatus(enum.Enum):
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


class DatasetNotReadyError(RuntimeError):
    def __init__(self, status: LoadStatus, error: Optional[str] = None):
        self.status = status
        self.error = error
        super().__init__(f"Citation dataset is {status.value}")


class DashboardService:
    """
    Holds the loaded dataset and answers the four linked views.
    Views are memoized per selection argument; callers get copies, so the
    cached records cannot be mutated from outside.
    """

    def __init__(self, cache_size: int = DEFAULT_CACHE_SIZE):
        self.status = LoadStatus.LOADING
        self.error: Optional[str] = None
        self._dataset: Optional[CitationDataset] = None
        self._cache = LRUCache(maxsize=cache_size)
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------
    @classmethod
    def from_dataset(cls, dataset: CitationDataset, cache_size: int = DEFAULT_CACHE_SIZE) -> "DashboardService":
        service = cls(cache_size=cache_size)
        service._set_dataset(dataset)
        return service

    def _set_dataset(self, dataset: CitationDataset):
        with self._lock:
            self._dataset = dataset
            self._cache.clear()
            self.status = LoadStatus.READY
            self.error = None

        report = engine.build_join_report(dataset)
        logger.info(
            "Join report: %d unresolved theory titles, %d unresolved theory names, %d undated LLM papers",
            report["unresolved_title_count"],
            report["unresolved_theory_name_count"],
            report["undated_llm_papers"],
        )

    async def load(self, source) -> bool:
        """Runs the load barrier once. Returns False and stays FAILED on any error."""
        self.status = LoadStatus.LOADING
        try:
            dataset = await load_dataset(source)
        except DatasetLoadError as e:
            self.status = LoadStatus.FAILED
            self.error = str(e)
            return False

        self._set_dataset(dataset)
        return True

    @property
    def dataset(self) -> CitationDataset:
        if self.status is not LoadStatus.READY or self._dataset is None:
            raise DatasetNotReadyError(self.status, self.error)
        return self._dataset

    # ------------------------------------------------------------------
    # Memoized views
    # ------------------------------------------------------------------
    def _memo(self, key: tuple, build: Callable[[CitationDataset], Any]) -> Any:
        dataset = self.dataset
        with self._lock:
            if key in self._cache:
                return copy.deepcopy(self._cache[key])

        value = build(dataset)
        with self._lock:
            self._cache[key] = value
        return copy.deepcopy(value)

    def nodes(self) -> List[Dict]:
        return self._memo(("nodes",), engine.build_bipartite_nodes)

    def edges(self) -> List[Dict]:
        return self._memo(("edges",), engine.build_bipartite_edges)

    def graph(self) -> Dict:
        return self._memo(("graph",), engine.export_bipartite_graph)

    def time_series(self, llm_topic: Optional[str] = None) -> List[Dict]:
        return self._memo(
            ("time_series", llm_topic),
            lambda ds: engine.build_citation_time_series(ds, llm_topic),
        )

    def multi_series(self, llm_topic: str) -> List[Dict]:
        return self._memo(
            ("multi_series", llm_topic),
            lambda ds: engine.build_multi_series_citation_data(ds, llm_topic),
        )

    def theory_table(self, psych_topic: str, sort: str = "subtopic") -> List[Dict]:
        rows = self._memo(
            ("theory_table", psych_topic),
            lambda ds: engine.build_theory_table(ds, psych_topic),
        )
        return engine.sort_theory_rows(rows, sort)

    def theory_distribution(self, theory: str) -> List[Dict]:
        return self._memo(
            ("theory_distribution", theory),
            lambda ds: engine.build_theory_distribution(ds, theory),
        )

    def join_report(self) -> Dict:
        return self._memo(("join_report",), engine.build_join_report)

    # ------------------------------------------------------------------
    # Panel composition
    # ------------------------------------------------------------------
    def _topic_label(self, topics: Dict, key: Optional[str]) -> Optional[str]:
        if key is None or key not in topics:
            return None
        return topics[key].topic

    def render_view(self, state: SelectionState, table_sort: str = "subtopic") -> Dict[str, Any]:
        """Every panel of the dashboard for one selection state."""
        dataset = self.dataset

        llm_label = self._topic_label(dataset.llm_topics, state.llm_topic)
        psych_label = self._topic_label(dataset.psych_topics, state.psych_topic)

        graph_panel = {
            "nodes": self.nodes(),
            "edges": self.edges(),
            "selected_llm_node": llm_node_id(state.llm_topic) if state.llm_topic else None,
            "selected_psych_node": psych_node_id(state.psych_topic) if state.psych_topic else None,
        }

        if state.llm_topic is None:
            line_panel = {
                "mode": "overall",
                "title": OVERALL_LINE_TITLE,
                "data": self.time_series(),
                "series": None,
                "can_reset": False,
            }
        else:
            line_panel = {
                "mode": "multi",
                "title": (
                    f"Citation Flow from {llm_label} to Psychology Topics"
                    if llm_label else OVERALL_LINE_TITLE
                ),
                "data": None,
                "series": self.multi_series(state.llm_topic),
                "can_reset": True,
            }

        table_panel = None
        bar_panel = None
        if state.psych_topic is not None:
            table_panel = {
                "title": f"{TABLE_TITLE} in {psych_label}" if psych_label else TABLE_TITLE,
                "sort": table_sort,
                "rows": self.theory_table(state.psych_topic, table_sort),
            }
            if state.theory is not None:
                rows = self.theory_distribution(state.theory)
                bar_panel = {
                    "title": f"Citation Distribution for {state.theory} Across LLM Topics",
                    "rows": rows,
                    "colors": [row["color"] for row in rows],
                }

        return {
            "selection": state._asdict(),
            "graph": graph_panel,
            "line_chart": line_panel,
            "theory_table": table_panel,
            "theory_chart": bar_panel,
        }
