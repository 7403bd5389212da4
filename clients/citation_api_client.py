# clients/citation_api_client.py
import logging
import os
from typing import Any, Optional

import requests

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = float(os.getenv("CITATION_API_TIMEOUT", "10"))

RELATION_PATHS = {
    "llm_topics": "/api/llm-topics",
    "psych_topics": "/api/psych-topics",
    "theory_pool": "/api/theory-pool",
    "secondary_clusters": "/api/secondary-clusters",
    "filtered_papers": "/api/filtered-papers",
    "papers_info": "/api/papers-info",
    "refs_info": "/api/refs-info",
}


class CitationApiError(RuntimeError):
    """A relation could not be fetched from the remote API."""


class CitationApiClient:
    """
    Reads relation exports from a deployment's /api routes.
    Each request is made once: the data is static, so a failure is final.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        if not base_url or not base_url.strip():
            raise ValueError("Citation API base URL must be provided")
        self.base_url = base_url.strip().rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def fetch(self, relation: str) -> Any:
        path = RELATION_PATHS.get(relation)
        if path is None:
            raise ValueError(f"Unknown relation: {relation}")

        url = f"{self.base_url}{path}"
        try:
            resp = self.session.get(url, timeout=self.timeout)
            resp.raise_for_status()
            return resp.json()
        except requests.exceptions.RequestException as e:
            logger.error(f"Citation API request failed for {relation}: {e}")
            raise CitationApiError(f"Failed to fetch {relation} from {url}") from e
        except ValueError as e:
            # Body was not JSON
            logger.error(f"Citation API returned invalid JSON for {relation}: {e}")
            raise CitationApiError(f"Invalid JSON for {relation} from {url}") from e
