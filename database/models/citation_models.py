# database/models/citation_models.py
from sqlalchemy import Column, Integer, String, Text, JSON, ForeignKey, UniqueConstraint
from database.db import Base


class LLMTopicModel(Base):
    __tablename__ = "llm_topics"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    cluster_key = Column(String(50), unique=True, nullable=False)
    topic = Column(Text, nullable=False)
    size = Column(Integer, nullable=False, default=0)


class LLMTopicPaperModel(Base):
    """Cluster membership; a paper may belong to several topics."""
    __tablename__ = "llm_topic_papers"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    llm_topic_id = Column(Integer, ForeignKey("llm_topics.id"), nullable=False, index=True)
    # Plain id: members without a paper row are kept
    paper_id = Column(String(100), nullable=False, index=True)
    position = Column(Integer, nullable=False)

    __table_args__ = (
        UniqueConstraint("llm_topic_id", "position", name="uq_llm_topic_paper_position"),
    )


class LLMPaperModel(Base):
    __tablename__ = "llm_papers"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    paper_id = Column(String(100), unique=True, index=True, nullable=False)
    title = Column(Text, nullable=False)

    # YYYY-MM-DD when known; arXiv URL carries a YYMM fallback
    publication_date = Column(String(20), nullable=True)
    arxiv_url = Column(Text, nullable=True)


class PsychTopicModel(Base):
    __tablename__ = "psych_topics"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    cluster_key = Column(String(50), unique=True, nullable=False)
    topic = Column(Text, nullable=False)
    size = Column(Integer, nullable=False, default=0)


class PsychTopicPaperModel(Base):
    __tablename__ = "psych_topic_papers"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    psych_topic_id = Column(Integer, ForeignKey("psych_topics.id"), nullable=False, index=True)
    paper_id = Column(String(100), nullable=False, index=True)
    position = Column(Integer, nullable=False)

    __table_args__ = (
        UniqueConstraint("psych_topic_id", "position", name="uq_psych_topic_paper_position"),
    )


class PsychPaperModel(Base):
    __tablename__ = "psych_papers"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    paper_id = Column(String(100), unique=True, index=True, nullable=False)
    title = Column(Text, nullable=False)
    publication_date = Column(String(20), nullable=True)


class SubtopicModel(Base):
    __tablename__ = "subtopics"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    psych_topic_id = Column(Integer, ForeignKey("psych_topics.id"), nullable=False, index=True)
    sub_cluster_key = Column(String(50), nullable=False)
    topic = Column(Text, nullable=False)
    size = Column(Integer, nullable=False, default=0)
    # Names as exported; matched against the parent topic's theories when read
    theory_names = Column(JSON, nullable=False, default=list)

    __table_args__ = (
        UniqueConstraint("psych_topic_id", "sub_cluster_key", name="uq_subtopic_parent_key"),
    )


class TheoryModel(Base):
    __tablename__ = "theories"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(Text, nullable=False)
    psych_topic_id = Column(Integer, ForeignKey("psych_topics.id"), nullable=False, index=True)
    citation_count = Column(Integer, nullable=False, default=0)


class TheoryDocumentModel(Base):
    __tablename__ = "theory_documents"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    theory_id = Column(Integer, ForeignKey("theories.id"), nullable=False, index=True)
    # Null when the title matched no psychology paper
    psych_paper_id = Column(Integer, ForeignKey("psych_papers.id"), nullable=True)
    doc_title = Column(Text, nullable=False)


class CitationModel(Base):
    __tablename__ = "citations"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    llm_paper_id = Column(Integer, ForeignKey("llm_papers.id"), nullable=False, index=True)
    psych_paper_id = Column(Integer, ForeignKey("psych_papers.id"), nullable=False, index=True)
