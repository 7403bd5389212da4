# File: state/relations.py
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple


@dataclass(frozen=True)
class TopicCluster:
    """A first-level cluster of papers (LLM side or psychology side)."""
    cluster_key: str
    topic: str
    size: int
    paper_ids: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Subtopic:
    parent_key: str
    sub_key: str
    topic: str
    size: int
    theory_names: Tuple[str, ...] = () # Names, resolved against the parent's theory pool


@dataclass(frozen=True)
class Theory:
    parent_key: str
    name: str
    citation_count: int
    document_titles: Tuple[str, ...] = () # Titles, resolved against psych paper metadata


@dataclass(frozen=True)
class LLMPaper:
    paper_id: str
    title: str = ""
    referenced_paper_ids: Tuple[str, ...] = ()
    publication_date: Optional[str] = None
    identifier_url: Optional[str] = None


@dataclass(frozen=True)
class PsychPaper:
    paper_id: str
    title: str = ""
    publication_date: Optional[str] = None


@dataclass(frozen=True)
class CitationDataset:
    """
    The six relations, loaded once and never mutated afterwards.
    Dict insertion order is the declaration order of the source data and
    is relied on for stable output ordering.
    """
    llm_topics: Dict[str, TopicCluster] = field(default_factory=dict)
    psych_topics: Dict[str, TopicCluster] = field(default_factory=dict)
    subtopics: Dict[str, Dict[str, Subtopic]] = field(default_factory=dict)
    theory_pool: Dict[str, Dict[str, Theory]] = field(default_factory=dict)
    llm_papers: List[LLMPaper] = field(default_factory=list)
    psych_papers: List[PsychPaper] = field(default_factory=list)

    def summary(self) -> Dict[str, int]:
        return {
            "llm_topics": len(self.llm_topics),
            "psych_topics": len(self.psych_topics),
            "subtopics": sum(len(s) for s in self.subtopics.values()),
            "theories": sum(len(t) for t in self.theory_pool.values()),
            "llm_papers": len(self.llm_papers),
            "psych_papers": len(self.psych_papers),
        }
