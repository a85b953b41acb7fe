from pathlib import Path
import pytest
from helpers import mark_by_dir


TESTS = Path(__file__).parent

def pytest_collection_modifyitems(config, items):
    # Mark tests by directory structure
    mark_by_dir(items, TESTS / "local_action_checker" / "core", pytest.mark.unit)
    mark_by_dir(items, TESTS / "local_action_checker" / "infra", pytest.mark.integration)
    mark_by_dir(items, TESTS / "local_action_checker" / "app", pytest.mark.e2e)
