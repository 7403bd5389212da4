# tests/conftest.py
import pytest

from sample_data import make_dataset, write_export
from state.relations import CitationDataset


@pytest.fixture
def dataset() -> CitationDataset:
    return make_dataset()


@pytest.fixture
def export_dir(tmp_path):
    """The sample dataset written out as the JSON export files."""
    return write_export(tmp_path)
