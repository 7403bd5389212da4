# utils/id_normalization.py
from typing import Optional
import re

LLM_NODE_PREFIX = "LLM-"
PSYCH_NODE_PREFIX = "Psych-"

CLUSTER_NUMBER_PATTERN = re.compile(r"Cluster (\d+)")
ARXIV_ABS_PATTERN = re.compile(r"/abs/(\d{2})(\d{2})\.\d+")


def cluster_number(cluster_key: str) -> int:
    """
    Ordinal used for color assignment: "Cluster 3" -> 3.
    Keys without a cluster number map to 0.
    """
    if not cluster_key:
        return 0
    match = CLUSTER_NUMBER_PATTERN.search(cluster_key)
    return int(match.group(1)) if match else 0


def llm_node_id(cluster_key: str) -> str:
    return f"{LLM_NODE_PREFIX}{cluster_key}"


def psych_node_id(cluster_key: str) -> str:
    return f"{PSYCH_NODE_PREFIX}{cluster_key}"


def strip_node_prefix(node_id: Optional[str]) -> Optional[str]:
    """Turns a graph node id back into its cluster key."""
    if not node_id:
        return node_id
    for prefix in (LLM_NODE_PREFIX, PSYCH_NODE_PREFIX):
        if node_id.startswith(prefix):
            return node_id[len(prefix):]
    return node_id


def month_from_arxiv_url(url: Optional[str]) -> Optional[str]:
    """
    Infers YYYY-MM from an arXiv abstract URL such as
    https://arxiv.org/abs/2310.01234v2 (YYMM.NNNNN).
    Returns None when the URL has no such code or the month is out of range.
    """
    if not url:
        return None

    match = ARXIV_ABS_PATTERN.search(url)
    if not match:
        return None

    year = 2000 + int(match.group(1))
    month = int(match.group(2))
    if month < 1 or month > 12:
        return None

    return f"{year:04d}-{month:02d}"
