# services/relation_sources.py
import json
import logging
import os
from collections import defaultdict
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

from state.relations import (
    CitationDataset,
    LLMPaper,
    PsychPaper,
    Subtopic,
    Theory,
    TopicCluster,
)

logger = logging.getLogger(__name__)

# Export file names inside CITATION_DATA_DIR
DEFAULT_FILES = {
    "llm_topics": "clustered_papers.json",
    "psych_topics": "clustered_refs.json",
    "theory_pool": "psych_theory_pool.json",
    "secondary_clusters": "clustered_refs_secondary.json",
    "filtered_papers": "filtered_papers.json",
    "papers_info": "filtered_papers_info.json",
    "refs_info": "filtered_refs_info.json",
}


class RelationSource(Protocol):
    """Read-only queries the aggregation engine is fed from."""

    def get_llm_topics(self) -> Dict[str, TopicCluster]: ...

    def get_psych_topics(self) -> Dict[str, TopicCluster]: ...

    def get_subtopics(self) -> Dict[str, Dict[str, Subtopic]]: ...

    def get_theory_pool(self) -> Dict[str, Dict[str, Theory]]: ...

    def get_papers_with_references(self) -> List[LLMPaper]: ...

    def get_psych_paper_metadata(self) -> List[PsychPaper]: ...


# ---------------------------------------------------------------------------
# Export JSON <-> records
# ---------------------------------------------------------------------------

def _as_list(value: Any) -> List:
    return value if isinstance(value, list) else []


def _as_date(value: Any) -> Optional[str]:
    # Only ISO-like strings are dates; anything else falls back to the arXiv URL
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def parse_topic_clusters(raw: Dict[str, Any]) -> Dict[str, TopicCluster]:
    """{clusterKey: {topic, size, docs: [{paperId, ...}]}}"""
    clusters: Dict[str, TopicCluster] = {}
    for key, cluster in raw.items():
        paper_ids = tuple(
            str(doc["paperId"])
            for doc in _as_list(cluster.get("docs"))
            if doc and doc.get("paperId")
        )
        clusters[key] = TopicCluster(
            cluster_key=key,
            topic=cluster["topic"],
            size=int(cluster.get("size") or 0),
            paper_ids=paper_ids,
        )
    return clusters


def parse_subtopics(raw: Dict[str, Any]) -> Dict[str, Dict[str, Subtopic]]:
    """{parentKey: {subKey: {topic, size, theories: [name]}}}"""
    result: Dict[str, Dict[str, Subtopic]] = {}
    for parent_key, sub_clusters in raw.items():
        result[parent_key] = {
            sub_key: Subtopic(
                parent_key=parent_key,
                sub_key=sub_key,
                topic=sub["topic"],
                size=int(sub.get("size") or 0),
                theory_names=tuple(str(n) for n in _as_list(sub.get("theories")) if n),
            )
            for sub_key, sub in sub_clusters.items()
        }
    return result


def parse_theory_pool(raw: Dict[str, Any]) -> Dict[str, Dict[str, Theory]]:
    """{parentKey: {theoryName: {citation, docs: [title]}}}"""
    result: Dict[str, Dict[str, Theory]] = {}
    for parent_key, theories in raw.items():
        result[parent_key] = {
            name: Theory(
                parent_key=parent_key,
                name=name,
                citation_count=int(data.get("citation") or 0),
                document_titles=tuple(str(t) for t in _as_list(data.get("docs")) if t),
            )
            for name, data in theories.items()
        }
    return result


def parse_llm_papers(
    filtered_papers: List[Dict[str, Any]],
    papers_info: Optional[List[Dict[str, Any]]] = None,
) -> List[LLMPaper]:
    """
    References come from the filtered paper list, publication dates from the
    paper info list. Papers only present in the info list have no references.
    """
    info_by_id: Dict[str, Dict[str, Any]] = {}
    for info in _as_list(papers_info):
        if info and info.get("paperId"):
            info_by_id[str(info["paperId"])] = info

    papers: List[LLMPaper] = []
    seen = set()
    for paper in _as_list(filtered_papers):
        paper_id = str(paper["paperId"])
        if paper_id in seen:
            # First row of a repeated paper wins
            continue
        info = info_by_id.get(paper_id, {})
        refs = tuple(
            str(ref["paperId"])
            for ref in _as_list(paper.get("references"))
            if ref and ref.get("paperId")
        )
        papers.append(LLMPaper(
            paper_id=paper_id,
            title=paper.get("title") or info.get("title") or "",
            referenced_paper_ids=refs,
            publication_date=_as_date(info.get("publicationDate")) or _as_date(paper.get("publicationDate")),
            identifier_url=paper.get("arxivUrl") or info.get("arxivUrl"),
        ))
        seen.add(paper_id)

    for paper_id, info in info_by_id.items():
        if paper_id in seen:
            continue
        papers.append(LLMPaper(
            paper_id=paper_id,
            title=info.get("title") or "",
            publication_date=_as_date(info.get("publicationDate")),
            identifier_url=info.get("arxivUrl"),
        ))

    return papers


def parse_psych_papers(raw: List[Dict[str, Any]]) -> List[PsychPaper]:
    return [
        PsychPaper(
            paper_id=str(ref["paperId"]),
            title=ref.get("title") or "",
            publication_date=_as_date(ref.get("publicationDate")),
        )
        for ref in _as_list(raw)
        if ref and ref.get("paperId")
    ]


def _paper_titles(dataset: CitationDataset) -> Dict[str, str]:
    titles = {p.paper_id: p.title for p in dataset.psych_papers}
    titles.update({p.paper_id: p.title for p in dataset.llm_papers})
    return titles


def export_topic_clusters(clusters: Dict[str, TopicCluster], titles: Dict[str, str]) -> Dict[str, Any]:
    return {
        key: {
            "size": c.size,
            "topic": c.topic,
            "docs": [{"paperId": pid, "title": titles.get(pid, "")} for pid in c.paper_ids],
        }
        for key, c in clusters.items()
    }


def export_relations(dataset: CitationDataset) -> Dict[str, Any]:
    """The dataset in the export JSON shapes, keyed like DEFAULT_FILES."""
    titles = _paper_titles(dataset)
    return {
        "llm_topics": export_topic_clusters(dataset.llm_topics, titles),
        "psych_topics": export_topic_clusters(dataset.psych_topics, titles),
        "theory_pool": {
            parent: {
                name: {"citation": t.citation_count, "docs": list(t.document_titles)}
                for name, t in theories.items()
            }
            for parent, theories in dataset.theory_pool.items()
        },
        "secondary_clusters": {
            parent: {
                sub_key: {"size": s.size, "topic": s.topic, "theories": list(s.theory_names), "docs": []}
                for sub_key, s in subs.items()
            }
            for parent, subs in dataset.subtopics.items()
        },
        "filtered_papers": [
            {
                "paperId": p.paper_id,
                "title": p.title,
                "arxivUrl": p.identifier_url,
                "references": [
                    {"paperId": ref, "title": titles.get(ref, "")}
                    for ref in p.referenced_paper_ids
                ],
            }
            for p in dataset.llm_papers
        ],
        "papers_info": [
            {
                "paperId": p.paper_id,
                "title": p.title,
                "publicationDate": p.publication_date,
                "arxivUrl": p.identifier_url,
            }
            for p in dataset.llm_papers
        ],
        "refs_info": [
            {"paperId": p.paper_id, "title": p.title, "publicationDate": p.publication_date}
            for p in dataset.psych_papers
        ],
    }


# ---------------------------------------------------------------------------
# Sources
# ---------------------------------------------------------------------------

class JsonFileSource:
    """Reads the clustering pipeline's JSON export from a directory."""

    def __init__(self, data_dir, files: Optional[Dict[str, str]] = None):
        self.data_dir = Path(data_dir)
        self.files = {**DEFAULT_FILES, **(files or {})}

    def _read(self, relation: str) -> Any:
        path = self.data_dir / self.files[relation]
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)

    def get_llm_topics(self) -> Dict[str, TopicCluster]:
        return parse_topic_clusters(self._read("llm_topics"))

    def get_psych_topics(self) -> Dict[str, TopicCluster]:
        return parse_topic_clusters(self._read("psych_topics"))

    def get_subtopics(self) -> Dict[str, Dict[str, Subtopic]]:
        return parse_subtopics(self._read("secondary_clusters"))

    def get_theory_pool(self) -> Dict[str, Dict[str, Theory]]:
        return parse_theory_pool(self._read("theory_pool"))

    def get_papers_with_references(self) -> List[LLMPaper]:
        return parse_llm_papers(self._read("filtered_papers"), self._read("papers_info"))

    def get_psych_paper_metadata(self) -> List[PsychPaper]:
        return parse_psych_papers(self._read("refs_info"))


class HttpSource:
    """Reads the same export shapes from a remote deployment's relation routes."""

    def __init__(self, client):
        self.client = client

    def get_llm_topics(self) -> Dict[str, TopicCluster]:
        return parse_topic_clusters(self.client.fetch("llm_topics"))

    def get_psych_topics(self) -> Dict[str, TopicCluster]:
        return parse_topic_clusters(self.client.fetch("psych_topics"))

    def get_subtopics(self) -> Dict[str, Dict[str, Subtopic]]:
        return parse_subtopics(self.client.fetch("secondary_clusters"))

    def get_theory_pool(self) -> Dict[str, Dict[str, Theory]]:
        return parse_theory_pool(self.client.fetch("theory_pool"))

    def get_papers_with_references(self) -> List[LLMPaper]:
        return parse_llm_papers(self.client.fetch("filtered_papers"), self.client.fetch("papers_info"))

    def get_psych_paper_metadata(self) -> List[PsychPaper]:
        return parse_psych_papers(self.client.fetch("refs_info"))


class DatabaseSource:
    """Reads the relational schema in database/models/citation_models.py."""

    def __init__(self, session_factory=None):
        if session_factory is None:
            from database.db import SessionLocal
            session_factory = SessionLocal
        self.session_factory = session_factory

    def _topics(self, topic_model, member_model, fk_name: str) -> Dict[str, TopicCluster]:
        with self.session_factory() as db:
            topics = db.query(topic_model).order_by(topic_model.id).all()
            fk = getattr(member_model, fk_name)
            members = defaultdict(list)
            for topic_id, paper_id in (
                db.query(fk, member_model.paper_id)
                .order_by(fk, member_model.position)
                .all()
            ):
                members[topic_id].append(paper_id)

            return {
                t.cluster_key: TopicCluster(
                    cluster_key=t.cluster_key,
                    topic=t.topic,
                    size=t.size or 0,
                    paper_ids=tuple(members.get(t.id, [])),
                )
                for t in topics
            }

    def get_llm_topics(self) -> Dict[str, TopicCluster]:
        from database.models.citation_models import LLMTopicModel, LLMTopicPaperModel
        return self._topics(LLMTopicModel, LLMTopicPaperModel, "llm_topic_id")

    def get_psych_topics(self) -> Dict[str, TopicCluster]:
        from database.models.citation_models import PsychTopicModel, PsychTopicPaperModel
        return self._topics(PsychTopicModel, PsychTopicPaperModel, "psych_topic_id")

    def get_subtopics(self) -> Dict[str, Dict[str, Subtopic]]:
        from database.models.citation_models import PsychTopicModel, SubtopicModel

        result: Dict[str, Dict[str, Subtopic]] = {}
        with self.session_factory() as db:
            rows = (
                db.query(SubtopicModel, PsychTopicModel.cluster_key)
                .join(PsychTopicModel, SubtopicModel.psych_topic_id == PsychTopicModel.id)
                .order_by(SubtopicModel.id)
                .all()
            )
            for sub, parent_key in rows:
                result.setdefault(parent_key, {})[sub.sub_cluster_key] = Subtopic(
                    parent_key=parent_key,
                    sub_key=sub.sub_cluster_key,
                    topic=sub.topic,
                    size=sub.size or 0,
                    theory_names=tuple(sub.theory_names or ()),
                )
        return result

    def get_theory_pool(self) -> Dict[str, Dict[str, Theory]]:
        from database.models.citation_models import PsychTopicModel, TheoryModel, TheoryDocumentModel

        result: Dict[str, Dict[str, Theory]] = {}
        with self.session_factory() as db:
            docs = defaultdict(list)
            for theory_id, title in (
                db.query(TheoryDocumentModel.theory_id, TheoryDocumentModel.doc_title)
                .order_by(TheoryDocumentModel.id)
                .all()
            ):
                docs[theory_id].append(title)

            rows = (
                db.query(TheoryModel, PsychTopicModel.cluster_key)
                .join(PsychTopicModel, TheoryModel.psych_topic_id == PsychTopicModel.id)
                .order_by(TheoryModel.id)
                .all()
            )
            for theory, parent_key in rows:
                result.setdefault(parent_key, {})[theory.name] = Theory(
                    parent_key=parent_key,
                    name=theory.name,
                    citation_count=theory.citation_count or 0,
                    document_titles=tuple(docs.get(theory.id, [])),
                )
        return result

    def get_papers_with_references(self) -> List[LLMPaper]:
        from database.models.citation_models import LLMPaperModel, PsychPaperModel, CitationModel

        with self.session_factory() as db:
            refs = defaultdict(list)
            for llm_pk, psych_paper_id in (
                db.query(CitationModel.llm_paper_id, PsychPaperModel.paper_id)
                .join(PsychPaperModel, CitationModel.psych_paper_id == PsychPaperModel.id)
                .order_by(CitationModel.id)
                .all()
            ):
                refs[llm_pk].append(psych_paper_id)

            return [
                LLMPaper(
                    paper_id=p.paper_id,
                    title=p.title,
                    referenced_paper_ids=tuple(refs.get(p.id, [])),
                    publication_date=p.publication_date,
                    identifier_url=p.arxiv_url,
                )
                for p in db.query(LLMPaperModel).order_by(LLMPaperModel.id).all()
            ]

    def get_psych_paper_metadata(self) -> List[PsychPaper]:
        from database.models.citation_models import PsychPaperModel

        with self.session_factory() as db:
            return [
                PsychPaper(paper_id=p.paper_id, title=p.title, publication_date=p.publication_date)
                for p in db.query(PsychPaperModel).order_by(PsychPaperModel.id).all()
            ]


def build_source_from_env() -> RelationSource:
    kind = os.getenv("CITATION_DATA_SOURCE", "files").strip().lower()

    if kind == "files":
        data_dir = os.getenv("CITATION_DATA_DIR", "data")
        logger.info(f"Relation source: JSON files in {data_dir}")
        return JsonFileSource(data_dir)

    if kind == "database":
        logger.info("Relation source: database")
        return DatabaseSource()

    if kind == "http":
        from clients.citation_api_client import CitationApiClient
        base_url = os.getenv("CITATION_API_URL", "")
        logger.info(f"Relation source: remote API at {base_url}")
        return HttpSource(CitationApiClient(base_url))

    raise ValueError(f"Unknown CITATION_DATA_SOURCE: {kind!r} (expected files, database or http)")
