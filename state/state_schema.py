# File: state/state_schema.py
from typing import TypedDict, List, Optional, Dict, NamedTuple


class SelectionState(NamedTuple):
    """
    Current dashboard selection. The LLM axis and the psychology axis are
    independent; a theory is only ever selected under a psychology topic.
    """
    llm_topic: Optional[str] = None
    psych_topic: Optional[str] = None
    theory: Optional[str] = None


IDLE = SelectionState()


# ---------------------------------------------------------------------------
# View records (plain dicts so any transport can carry them)
# ---------------------------------------------------------------------------

class BipartiteNode(TypedDict):
    id: str                 # "LLM-<key>" or "Psych-<key>"
    cluster_key: str
    display_label: str
    side: str               # "source" (LLM) | "target" (psychology)
    cluster_index: int
    size: int
    color: str


class BipartiteEdge(TypedDict):
    source: str
    target: str
    source_topic: str
    target_topic: str
    weight: int


class CitationPoint(TypedDict):
    month: str              # YYYY-MM
    citations: int          # running total


class CitationSeries(TypedDict):
    psych_topic_key: str
    psych_topic: str
    cluster_index: int
    color: str
    data: List[CitationPoint]


class TheoryRow(TypedDict):
    subtopic: str
    subtopic_key: str
    theory: str
    citations: int
    is_top_three: bool
    intensity: float        # shading weight in [0.15, 0.6]


class TheoryDistributionRow(TypedDict):
    topic_key: str
    topic: str
    cluster_index: int
    color: str
    citations: int


class TopicJoinReport(TypedDict):
    unresolved_titles: List[str]
    unresolved_theory_names: List[str]


class JoinReport(TypedDict):
    topics: Dict[str, TopicJoinReport]
    unresolved_title_count: int
    unresolved_theory_name_count: int
    undated_llm_papers: int
