from pathlib import Path

import pytest

from src.adapters.dev_host import DevHost
from src.rules.loader import load_rules
from src.rules.models import Rules

PROJECT_ROOT = Path(__file__).parent.parent


@pytest.fixture
def rules_path() -> Path:
    return PROJECT_ROOT / "rules.yaml"


@pytest.fixture
def rules(rules_path: Path) -> Rules:
    """Load REAL rules from project root."""
    return load_rules(rules_path)


@pytest.fixture
def dev_host() -> DevHost:
    return DevHost(start_seconds=1_700_000_000.0)
