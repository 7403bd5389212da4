# services/citation_persistence_service.py
import logging
from typing import Dict, Iterable

from database.models.citation_models import (
    LLMTopicModel,
    LLMTopicPaperModel,
    LLMPaperModel,
    PsychTopicModel,
    PsychTopicPaperModel,
    PsychPaperModel,
    SubtopicModel,
    TheoryModel,
    TheoryDocumentModel,
    CitationModel,
)
from state.relations import CitationDataset, LLMPaper
from utils.sanitization import normalize_title

logger = logging.getLogger(__name__)


def _session_factory(session_factory=None):
    if session_factory is None:
        from database.db import SessionLocal
        return SessionLocal
    return session_factory


def save_dataset(dataset: CitationDataset, session_factory=None) -> Dict[str, int]:
    """
    Writes a dataset into empty citation tables in one transaction.
    Theory documents keep every title; the paper link is set only when the
    title resolves. Citations are stored only for known psychology papers.
    """
    counts = {"psych_papers": 0, "llm_papers": 0, "theories": 0, "citations": 0}

    with _session_factory(session_factory)() as db:
        try:
            psych_meta = {p.paper_id: p for p in dataset.psych_papers}
            psych_pk: Dict[str, int] = {}

            # 1. Psychology topics, their membership and papers
            psych_topic_pk: Dict[str, int] = {}
            for key, cluster in dataset.psych_topics.items():
                topic_row = PsychTopicModel(cluster_key=key, topic=cluster.topic, size=cluster.size)
                db.add(topic_row)
                db.flush()
                psych_topic_pk[key] = topic_row.id

                for position, paper_id in enumerate(cluster.paper_ids):
                    db.add(PsychTopicPaperModel(
                        psych_topic_id=topic_row.id,
                        paper_id=paper_id,
                        position=position,
                    ))
                    if paper_id in psych_pk:
                        continue
                    meta = psych_meta.get(paper_id)
                    paper_row = PsychPaperModel(
                        paper_id=paper_id,
                        title=meta.title if meta else "",
                        publication_date=meta.publication_date if meta else None,
                    )
                    db.add(paper_row)
                    db.flush()
                    psych_pk[paper_id] = paper_row.id

            # Metadata rows outside every topic still resolve theory titles
            for meta in dataset.psych_papers:
                if meta.paper_id in psych_pk:
                    continue
                paper_row = PsychPaperModel(
                    paper_id=meta.paper_id,
                    title=meta.title,
                    publication_date=meta.publication_date,
                )
                db.add(paper_row)
                db.flush()
                psych_pk[meta.paper_id] = paper_row.id
            counts["psych_papers"] = len(psych_pk)

            # 2. LLM topics, their membership and papers
            for key, cluster in dataset.llm_topics.items():
                topic_row = LLMTopicModel(cluster_key=key, topic=cluster.topic, size=cluster.size)
                db.add(topic_row)
                db.flush()
                for position, paper_id in enumerate(cluster.paper_ids):
                    db.add(LLMTopicPaperModel(
                        llm_topic_id=topic_row.id,
                        paper_id=paper_id,
                        position=position,
                    ))

            llm_pk: Dict[str, int] = {}
            for paper in dataset.llm_papers:
                if paper.paper_id in llm_pk:
                    continue
                paper_row = LLMPaperModel(
                    paper_id=paper.paper_id,
                    title=paper.title,
                    publication_date=paper.publication_date,
                    arxiv_url=paper.identifier_url,
                )
                db.add(paper_row)
                db.flush()
                llm_pk[paper.paper_id] = paper_row.id
            counts["llm_papers"] = len(llm_pk)

            # 3. Subtopics
            for parent_key, subs in dataset.subtopics.items():
                parent_pk = psych_topic_pk.get(parent_key)
                if parent_pk is None:
                    logger.warning(f"Skipping subtopics of unknown psychology topic {parent_key!r}")
                    continue
                for sub in subs.values():
                    db.add(SubtopicModel(
                        psych_topic_id=parent_pk,
                        sub_cluster_key=sub.sub_key,
                        topic=sub.topic,
                        size=sub.size,
                        theory_names=list(sub.theory_names),
                    ))

            # 4. Theories and their documents
            title_to_paper = {normalize_title(p.title): p.paper_id for p in dataset.psych_papers if p.title}
            for parent_key, theories in dataset.theory_pool.items():
                parent_pk = psych_topic_pk.get(parent_key)
                if parent_pk is None:
                    logger.warning(f"Skipping theories of unknown psychology topic {parent_key!r}")
                    continue
                for theory in theories.values():
                    theory_row = TheoryModel(
                        name=theory.name,
                        psych_topic_id=parent_pk,
                        citation_count=theory.citation_count,
                    )
                    db.add(theory_row)
                    db.flush()
                    counts["theories"] += 1

                    for title in theory.document_titles:
                        paper_id = title_to_paper.get(normalize_title(title))
                        db.add(TheoryDocumentModel(
                            theory_id=theory_row.id,
                            psych_paper_id=psych_pk.get(paper_id) if paper_id else None,
                            doc_title=title,
                        ))

            # 5. Citations
            for paper in dataset.llm_papers:
                source_pk = llm_pk[paper.paper_id]
                for ref_id in dict.fromkeys(paper.referenced_paper_ids):
                    target_pk = psych_pk.get(ref_id)
                    if target_pk is None:
                        continue
                    db.add(CitationModel(llm_paper_id=source_pk, psych_paper_id=target_pk))
                    counts["citations"] += 1

            db.commit()

        except Exception:
            db.rollback()
            raise

    logger.info("Saved citation dataset: %s", counts)
    return counts


def update_publication_dates(papers: Iterable[LLMPaper], session_factory=None) -> int:
    """Backfills llm_papers.publication_date; returns the number of rows updated."""
    updated = 0
    with _session_factory(session_factory)() as db:
        try:
            for paper in papers:
                if not paper.publication_date:
                    continue
                updated += (
                    db.query(LLMPaperModel)
                    .filter(LLMPaperModel.paper_id == paper.paper_id)
                    .update({LLMPaperModel.publication_date: paper.publication_date})
                )
            db.commit()
        except Exception:
            db.rollback()
            raise

    logger.info(f"Updated {updated} LLM papers with publication dates")
    return updated
