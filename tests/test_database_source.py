import asyncio

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database.db import init_db
from database.models.citation_models import (
    CitationModel,
    LLMPaperModel,
    PsychPaperModel,
    TheoryDocumentModel,
)
from services.citation_aggregation_service import (
    build_bipartite_edges,
    build_citation_time_series,
    build_multi_series_citation_data,
    build_theory_table,
    build_theory_distribution,
    build_join_report,
)
from services.citation_persistence_service import save_dataset, update_publication_dates
from services.relation_loader import load_dataset
from services.relation_sources import DatabaseSource
from sample_data import make_dataset
from state.relations import LLMPaper, TopicCluster


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    init_db(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


def test_save_dataset_counts(dataset, session_factory):
    counts = save_dataset(dataset, session_factory)

    # L4 -> PX points outside the psychology corpus and is not stored
    assert counts == {"psych_papers": 4, "llm_papers": 6, "theories": 5, "citations": 5}

    with session_factory() as db:
        assert db.query(CitationModel).count() == 5
        docs = {d.doc_title: d.psych_paper_id for d in db.query(TheoryDocumentModel).all()}
    assert docs["A Missing Paper"] is None
    assert docs["  attachment in ADULTS "] is not None


def test_database_source_gives_the_same_views(dataset, session_factory):
    save_dataset(dataset, session_factory)
    loaded = asyncio.run(load_dataset(DatabaseSource(session_factory)))

    assert list(loaded.llm_topics) == ["Cluster 0", "Cluster 1", "Cluster 2"]
    assert loaded.llm_topics["Cluster 0"].paper_ids == ("L1", "L2", "L3")
    assert loaded.subtopics["Cluster 0"]["Sub 1"].theory_names == ("Mental Schema Theories", "Cognitive Load Theory")

    assert build_bipartite_edges(loaded) == build_bipartite_edges(dataset)
    assert build_citation_time_series(loaded) == build_citation_time_series(dataset)
    assert build_multi_series_citation_data(loaded, "Cluster 0") == build_multi_series_citation_data(dataset, "Cluster 0")
    assert build_theory_table(loaded, "Cluster 0") == build_theory_table(dataset, "Cluster 0")
    for theory in ("Attachment Theory", "Schema Theory", "Constructivism"):
        assert build_theory_distribution(loaded, theory) == build_theory_distribution(dataset, theory)
    assert build_join_report(loaded) == build_join_report(dataset)


def test_update_publication_dates(dataset, session_factory):
    save_dataset(dataset, session_factory)

    updated = update_publication_dates(
        [
            LLMPaper("L6", publication_date="2023-03-09"),
            LLMPaper("L3"),  # no date, skipped
            LLMPaper("unknown", publication_date="2020-01-01"),
        ],
        session_factory,
    )
    assert updated == 1

    papers = {p.paper_id: p for p in DatabaseSource(session_factory).get_papers_with_references()}
    assert papers["L6"].publication_date == "2023-03-09"
    assert papers["L3"].publication_date is None


def test_topic_membership_survives_the_database(session_factory):
    dataset = make_dataset()
    # L1 and P1 sit in two topics; L9 is a member without a paper record
    dataset.llm_topics["Cluster 2"] = TopicCluster("Cluster 2", "Advanced Reasoning", 3, ("L6", "L1", "L9"))
    dataset.psych_topics["Cluster 1"] = TopicCluster("Cluster 1", "Education", 3, ("P3", "P4", "P1"))

    save_dataset(dataset, session_factory)
    loaded = asyncio.run(load_dataset(DatabaseSource(session_factory)))

    for key, cluster in dataset.llm_topics.items():
        assert loaded.llm_topics[key].paper_ids == cluster.paper_ids
    for key, cluster in dataset.psych_topics.items():
        assert loaded.psych_topics[key].paper_ids == cluster.paper_ids

    edges = build_bipartite_edges(loaded)
    assert edges == build_bipartite_edges(dataset)
    weights = {(e["source_topic"], e["target_topic"]): e["weight"] for e in edges}
    assert weights[("Cluster 2", "Cluster 0")] == 1
    assert weights[("Cluster 0", "Cluster 1")] == 3

    for key in dataset.llm_topics:
        assert build_citation_time_series(loaded, key) == build_citation_time_series(dataset, key)
        assert build_multi_series_citation_data(loaded, key) == build_multi_series_citation_data(dataset, key)
    assert build_theory_distribution(loaded, "Attachment Theory") == build_theory_distribution(dataset, "Attachment Theory")


def test_paper_tables_hold_only_exported_fields():
    assert set(LLMPaperModel.__table__.columns.keys()) == {
        "id", "paper_id", "title", "publication_date", "arxiv_url",
    }
    assert set(PsychPaperModel.__table__.columns.keys()) == {
        "id", "paper_id", "title", "publication_date",
    }
