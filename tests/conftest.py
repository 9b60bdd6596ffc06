from __future__ import annotations

import sys
from pathlib import Path
from typing import List

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.schemas.trivia import TriviaQuestion  # noqa: E402
from tests.fakes import make_question  # noqa: E402


@pytest.fixture
def medium_cache_rows() -> List[TriviaQuestion]:
    return [make_question(i, "medium") for i in range(15)]
