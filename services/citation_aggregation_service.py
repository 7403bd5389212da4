# services/citation_aggregation_service.py
import logging
from collections import defaultdict
from typing import Dict, List, Optional, Set, Tuple, Iterable

import networkx as nx
from networkx.readwrite import json_graph

from state.relations import CitationDataset, LLMPaper, Theory
from state.state_schema import (
    BipartiteNode,
    BipartiteEdge,
    CitationPoint,
    CitationSeries,
    TheoryRow,
    TheoryDistributionRow,
    JoinReport,
)
from services.schema.palette import llm_color, psych_color, MIN_INTENSITY, MAX_INTENSITY
from utils.id_normalization import cluster_number, llm_node_id, psych_node_id, month_from_arxiv_url
from utils.sanitization import clean_text, normalize_title, normalize_theory_name

logger = logging.getLogger(__name__)

TOP_THEORY_COUNT = 3
SORT_MODES = ("subtopic", "citations")


# ---------------------------------------------------------------------------
# Shared joins
# ---------------------------------------------------------------------------

def citation_edges(dataset: CitationDataset) -> List[Tuple[str, str]]:
    """
    Derives the (llm_paper_id, psych_paper_id) citation relation from the
    LLM papers' reference lists. Each pair appears once, in first-seen order.
    """
    seen: Set[Tuple[str, str]] = set()
    edges: List[Tuple[str, str]] = []
    for paper in dataset.llm_papers:
        for ref_id in paper.referenced_paper_ids:
            if not ref_id:
                continue
            pair = (paper.paper_id, ref_id)
            if pair not in seen:
                seen.add(pair)
                edges.append(pair)
    return edges


def _paper_topic_index(topics: Dict) -> Dict[str, List[str]]:
    """paper_id -> cluster keys containing it, in topic declaration order."""
    index: Dict[str, List[str]] = defaultdict(list)
    for key, cluster in topics.items():
        for paper_id in dict.fromkeys(cluster.paper_ids):
            index[paper_id].append(key)
    return index


def _title_index(dataset: CitationDataset) -> Dict[str, str]:
    # Later metadata rows win on duplicate titles
    index: Dict[str, str] = {}
    for paper in dataset.psych_papers:
        key = normalize_title(paper.title)
        if key and paper.paper_id:
            index[key] = paper.paper_id
    return index


def _topic_label(cluster) -> str:
    return clean_text(cluster.topic) or cluster.cluster_key


# ---------------------------------------------------------------------------
# Node / edge assembly
# ---------------------------------------------------------------------------

def build_bipartite_nodes(dataset: CitationDataset) -> List[BipartiteNode]:
    nodes: List[BipartiteNode] = []

    for key, cluster in dataset.llm_topics.items():
        index = cluster_number(key)
        nodes.append({
            "id": llm_node_id(key),
            "cluster_key": key,
            "display_label": _topic_label(cluster),
            "side": "source",
            "cluster_index": index,
            "size": cluster.size,
            "color": llm_color(index),
        })

    for key, cluster in dataset.psych_topics.items():
        index = cluster_number(key)
        nodes.append({
            "id": psych_node_id(key),
            "cluster_key": key,
            "display_label": _topic_label(cluster),
            "side": "target",
            "cluster_index": index,
            "size": cluster.size,
            "color": psych_color(index),
        })

    return nodes


def _topic_pair_weights(dataset: CitationDataset) -> Dict[Tuple[str, str], int]:
    llm_index = _paper_topic_index(dataset.llm_topics)
    psych_index = _paper_topic_index(dataset.psych_topics)

    weights: Dict[Tuple[str, str], int] = defaultdict(int)
    for llm_paper_id, psych_paper_id in citation_edges(dataset):
        source_topics = llm_index.get(llm_paper_id)
        if not source_topics:
            continue
        target_topics = psych_index.get(psych_paper_id)
        if not target_topics:
            continue
        for source_key in source_topics:
            for target_key in target_topics:
                weights[(source_key, target_key)] += 1
    return weights


def build_bipartite_edges(dataset: CitationDataset) -> List[BipartiteEdge]:
    """
    Weighted LLM topic -> psychology topic edges. Weight is the number of
    citation edges crossing both topics' paper sets; zero-weight pairs are
    left out.
    """
    weights = _topic_pair_weights(dataset)

    edges: List[BipartiteEdge] = []
    for llm_key in dataset.llm_topics:
        for psych_key in dataset.psych_topics:
            weight = weights.get((llm_key, psych_key), 0)
            if weight > 0:
                edges.append({
                    "source": llm_node_id(llm_key),
                    "target": psych_node_id(psych_key),
                    "source_topic": llm_key,
                    "target_topic": psych_key,
                    "weight": weight,
                })
    return edges


def build_bipartite_graph(dataset: CitationDataset) -> nx.DiGraph:
    G = nx.DiGraph()

    for node in build_bipartite_nodes(dataset):
        attrs = {k: v for k, v in node.items() if k != "id"}
        G.add_node(node["id"], bipartite=0 if node["side"] == "source" else 1, **attrs)

    for edge in build_bipartite_edges(dataset):
        G.add_edge(
            edge["source"],
            edge["target"],
            weight=edge["weight"],
            source_topic=edge["source_topic"],
            target_topic=edge["target_topic"],
        )

    logger.debug(
        "Bipartite graph: %d nodes, %d edges",
        G.number_of_nodes(),
        G.number_of_edges(),
    )
    return G


def export_bipartite_graph(dataset: CitationDataset) -> Dict:
    """Node-link JSON of the bipartite graph for graph-rendering clients."""
    return json_graph.node_link_data(build_bipartite_graph(dataset))


# ---------------------------------------------------------------------------
# Time series
# ---------------------------------------------------------------------------

def resolve_publication_month(paper: LLMPaper) -> Optional[str]:
    """
    YYYY-MM for a paper: the explicit publication date when present,
    otherwise the date code in its arXiv abstract URL. None excludes the
    paper from every time series.
    """
    if isinstance(paper.publication_date, str) and paper.publication_date:
        return paper.publication_date[:7]
    return month_from_arxiv_url(paper.identifier_url)


def _cumulative(month_counts: Dict[str, int]) -> List[CitationPoint]:
    points: List[CitationPoint] = []
    total = 0
    for month in sorted(month_counts):
        total += month_counts[month]
        points.append({"month": month, "citations": total})
    return points


def _llm_paper_set(dataset: CitationDataset, llm_topic_key: Optional[str]) -> Optional[Set[str]]:
    if llm_topic_key is None:
        return {pid for cluster in dataset.llm_topics.values() for pid in cluster.paper_ids}
    cluster = dataset.llm_topics.get(llm_topic_key)
    if cluster is None:
        return None
    return set(cluster.paper_ids)


def build_citation_time_series(
    dataset: CitationDataset,
    llm_topic_key: Optional[str] = None,
) -> List[CitationPoint]:
    """
    Cumulative count of LLM papers per publication month, for one LLM topic
    or for all of them when no key is given.
    """
    paper_ids = _llm_paper_set(dataset, llm_topic_key)
    if not paper_ids:
        return []

    month_counts: Dict[str, int] = defaultdict(int)
    for paper in dataset.llm_papers:
        if paper.paper_id not in paper_ids:
            continue
        month = resolve_publication_month(paper)
        if month:
            month_counts[month] += 1

    return _cumulative(month_counts)


def build_multi_series_citation_data(
    dataset: CitationDataset,
    llm_topic_key: str,
) -> List[CitationSeries]:
    """
    One cumulative series per psychology topic, counting citations from the
    given LLM topic's papers. Months come from the citing paper.
    """
    llm_cluster = dataset.llm_topics.get(llm_topic_key)
    if llm_cluster is None:
        return []
    llm_paper_ids = set(llm_cluster.paper_ids)

    months: Dict[str, Optional[str]] = {}
    for paper in dataset.llm_papers:
        if paper.paper_id in llm_paper_ids and paper.paper_id not in months:
            months[paper.paper_id] = resolve_publication_month(paper)

    psych_index = _paper_topic_index(dataset.psych_topics)
    counts: Dict[str, Dict[str, int]] = defaultdict(lambda: defaultdict(int))
    for llm_paper_id, psych_paper_id in citation_edges(dataset):
        month = months.get(llm_paper_id)
        if not month:
            continue
        for psych_key in psych_index.get(psych_paper_id, ()):
            counts[psych_key][month] += 1

    series: List[CitationSeries] = []
    for psych_key, cluster in dataset.psych_topics.items():
        data = _cumulative(counts.get(psych_key, {}))
        if not data:
            continue
        index = cluster_number(psych_key)
        series.append({
            "psych_topic_key": psych_key,
            "psych_topic": _topic_label(cluster),
            "cluster_index": index,
            "color": psych_color(index),
            "data": data,
        })
    return series


# ---------------------------------------------------------------------------
# Theory table
# ---------------------------------------------------------------------------

def top_theories(theories: Dict[str, Theory], n: int = TOP_THEORY_COUNT) -> List[Theory]:
    # sorted() is stable, so equal counts keep declaration order
    ranked = sorted(theories.values(), key=lambda t: t.citation_count, reverse=True)
    return ranked[:n]


def _normalized_theory_index(theories: Dict[str, Theory]) -> Dict[str, Theory]:
    return {normalize_theory_name(n): t for n, t in theories.items()}


def resolve_theory_name(
    name: str,
    theories: Dict[str, Theory],
    normalized_index: Optional[Dict[str, Theory]] = None,
) -> Optional[Theory]:
    """Exact name first, then the normalized form."""
    theory = theories.get(name)
    if theory is not None:
        return theory

    if normalized_index is None:
        normalized_index = _normalized_theory_index(theories)
    return normalized_index.get(normalize_theory_name(name))


def _apply_intensity(rows: List[TheoryRow]) -> None:
    if not rows:
        return
    counts = [row["citations"] for row in rows]
    low, high = min(counts), max(counts)
    span = MAX_INTENSITY - MIN_INTENSITY
    for row in rows:
        ratio = 0.5 if high == low else (row["citations"] - low) / (high - low)
        row["intensity"] = round(MIN_INTENSITY + ratio * span, 4)


def build_theory_table(dataset: CitationDataset, psych_topic_key: str) -> List[TheoryRow]:
    """
    Rows of (subtopic, theory, citations) for one psychology topic, grouped
    by subtopic in declaration order and by descending citations inside each
    group. Theory names that resolve to nothing in the pool are dropped.
    """
    subtopics = dataset.subtopics.get(psych_topic_key)
    theories = dataset.theory_pool.get(psych_topic_key)
    if not subtopics or not theories:
        return []

    top_names = {t.name for t in top_theories(theories)}
    normalized_index = _normalized_theory_index(theories)

    keyed_rows: List[Tuple[int, TheoryRow]] = []
    for order, (sub_key, subtopic) in enumerate(subtopics.items()):
        for theory_name in subtopic.theory_names:
            theory = resolve_theory_name(theory_name, theories, normalized_index)
            if theory is None:
                continue
            keyed_rows.append((order, {
                "subtopic": clean_text(subtopic.topic),
                "subtopic_key": sub_key,
                "theory": theory.name,
                "citations": theory.citation_count,
                "is_top_three": theory.name in top_names,
                "intensity": 0.0,
            }))

    keyed_rows.sort(key=lambda item: (item[0], -item[1]["citations"]))
    rows = [row for _, row in keyed_rows]
    _apply_intensity(rows)
    return rows


def sort_theory_rows(rows: List[TheoryRow], mode: str = "subtopic") -> List[TheoryRow]:
    """
    Client-side ordering of an already built table. "citations" ignores the
    subtopic grouping; "subtopic" keeps the table's own order.
    """
    if mode not in SORT_MODES:
        raise ValueError(f"Unknown sort mode: {mode!r} (expected one of {SORT_MODES})")
    if mode == "citations":
        return sorted(rows, key=lambda row: row["citations"], reverse=True)
    return list(rows)


# ---------------------------------------------------------------------------
# Theory distribution
# ---------------------------------------------------------------------------

def find_theory(dataset: CitationDataset, theory_name: str) -> Optional[Theory]:
    """First theory with this exact name, scanning topics in declaration order."""
    for theories in dataset.theory_pool.values():
        theory = theories.get(theory_name)
        if theory is not None:
            return theory
    return None


def resolve_theory_papers(
    dataset: CitationDataset,
    theory: Theory,
    title_index: Optional[Dict[str, str]] = None,
) -> Set[str]:
    """Psychology paper ids behind a theory's document titles; unknown titles are skipped."""
    index = title_index if title_index is not None else _title_index(dataset)
    paper_ids: Set[str] = set()
    for title in theory.document_titles:
        paper_id = index.get(normalize_title(title))
        if paper_id:
            paper_ids.add(paper_id)
    return paper_ids


def build_theory_distribution(dataset: CitationDataset, theory_name: str) -> List[TheoryDistributionRow]:
    """
    Citations from every LLM topic into the papers of one theory, highest
    first. Topics with zero citations stay in the result for comparison.
    """
    theory = find_theory(dataset, theory_name)
    if theory is None:
        return []

    theory_paper_ids = resolve_theory_papers(dataset, theory)
    llm_index = _paper_topic_index(dataset.llm_topics)

    counts: Dict[str, int] = defaultdict(int)
    if theory_paper_ids:
        for llm_paper_id, psych_paper_id in citation_edges(dataset):
            if psych_paper_id not in theory_paper_ids:
                continue
            for llm_key in llm_index.get(llm_paper_id, ()):
                counts[llm_key] += 1

    rows: List[TheoryDistributionRow] = []
    for key, cluster in dataset.llm_topics.items():
        index = cluster_number(key)
        rows.append({
            "topic_key": key,
            "topic": _topic_label(cluster),
            "cluster_index": index,
            "color": llm_color(index),
            "citations": counts.get(key, 0),
        })

    rows.sort(key=lambda row: row["citations"], reverse=True)
    return rows


# ---------------------------------------------------------------------------
# Join report
# ---------------------------------------------------------------------------

def _unresolved_titles(theories: Iterable[Theory], title_index: Dict[str, str]) -> List[str]:
    missing = []
    for theory in theories:
        for title in theory.document_titles:
            if normalize_title(title) not in title_index:
                missing.append(title)
    return missing


def build_join_report(dataset: CitationDataset) -> JoinReport:
    """
    Counts what the views drop silently: theory document titles without a
    paper and subtopic theory names without a pool entry. Views are unaffected.
    """
    title_index = _title_index(dataset)
    topics = {}
    title_total = 0
    name_total = 0

    topic_keys = list(dict.fromkeys(list(dataset.theory_pool) + list(dataset.subtopics)))
    for key in topic_keys:
        theories = dataset.theory_pool.get(key, {})
        missing_titles = _unresolved_titles(theories.values(), title_index)

        normalized_index = _normalized_theory_index(theories)
        missing_names = []
        for subtopic in dataset.subtopics.get(key, {}).values():
            for name in subtopic.theory_names:
                if resolve_theory_name(name, theories, normalized_index) is None:
                    missing_names.append(name)

        if missing_titles or missing_names:
            topics[key] = {
                "unresolved_titles": missing_titles,
                "unresolved_theory_names": missing_names,
            }
        title_total += len(missing_titles)
        name_total += len(missing_names)

    undated = sum(1 for p in dataset.llm_papers if resolve_publication_month(p) is None)

    return {
        "topics": topics,
        "unresolved_title_count": title_total,
        "unresolved_theory_name_count": name_total,
        "undated_llm_papers": undated,
    }
