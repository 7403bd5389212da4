# services/relation_loader.py
import asyncio
import logging

from state.relations import CitationDataset

logger = logging.getLogger(__name__)

QUERIES = (
    "get_llm_topics",
    "get_psych_topics",
    "get_subtopics",
    "get_theory_pool",
    "get_papers_with_references",
    "get_psych_paper_metadata",
)


class DatasetLoadError(RuntimeError):
    """One or more relations failed to load; no partial dataset exists."""


async def load_dataset(source) -> CitationDataset:
    """
    Runs the six relation queries concurrently and joins them.
    All must succeed: the first failure is raised as DatasetLoadError and the
    results of the others are discarded. No retry.
    """
    try:
        results = await asyncio.gather(
            *(asyncio.to_thread(getattr(source, name)) for name in QUERIES)
        )
    except Exception as e:
        logger.error(f"❌ Failed to load citation relations: {type(e).__name__}: {e}", exc_info=True)
        raise DatasetLoadError(f"Failed to load citation relations: {e}") from e

    llm_topics, psych_topics, subtopics, theory_pool, llm_papers, psych_papers = results
    dataset = CitationDataset(
        llm_topics=llm_topics,
        psych_topics=psych_topics,
        subtopics=subtopics,
        theory_pool=theory_pool,
        llm_papers=llm_papers,
        psych_papers=psych_papers,
    )

    logger.info("📚 Citation dataset loaded: %s", dataset.summary())
    return dataset
