import pytest
from pathlib import Path

from indexer.javascript_indexer import NavtreeScriptIndexer


SAMPLE_SCRIPT = Path(__file__).resolve().parent.parent / "sample_inputs" / "a00022.js"


@pytest.fixture(scope="session")
def sample_script_path():
    return SAMPLE_SCRIPT


@pytest.fixture(scope="session")
def sample_script_text():
    return SAMPLE_SCRIPT.read_text(encoding="utf8")


@pytest.fixture
def sample_index(sample_script_text):
    return NavtreeScriptIndexer().read_index(sample_script_text)
