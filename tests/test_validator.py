from __future__ import annotations

import pytest

from app.services.validator import normalize_category, validate_batch, validate_question
from tests.fakes import make_candidate


def test_valid_candidate_builds_question():
    result = validate_question(make_candidate(1, category="development", year=2021), "medium")

    assert result.ok
    question = result.question
    assert question.category == "development"
    assert question.year_indicator == 2021
    assert question.difficulty == "medium"
    assert question.correct_answer == 1
    assert question.id.startswith("development-2021-")
    assert len(question.options) == 4


@pytest.mark.parametrize(
    "overrides, reason_fragment",
    [
        ({"question": ""}, "question text"),
        ({"question": "   "}, "question text"),
        ({"options": ["a", "b", "c"]}, "exactly 4"),
        ({"options": "a,b,c,d"}, "exactly 4"),
        ({"options": ["a", "b", "", "d"]}, "non-empty"),
        ({"options": ["a", "b", "a", "d"]}, "distinct"),
        ({"correctAnswer": 4}, "correct answer"),
        ({"correctAnswer": -1}, "correct answer"),
        ({"correctAnswer": "1"}, "correct answer"),
        ({"correctAnswer": True}, "correct answer"),
        ({"category": "defi"}, "unknown category"),
    ],
)
def test_invalid_candidates_are_rejected(overrides, reason_fragment):
    result = validate_question(make_candidate(0, **overrides), "easy")

    assert not result.ok
    assert reason_fragment in result.error.reason


def test_checks_run_in_order():
    candidate = make_candidate(0, question="", options=["x"], correctAnswer=9, category="nope")
    result = validate_question(candidate, "easy")
    assert "question text" in result.error.reason


def test_options_are_case_sensitive():
    candidate = make_candidate(0, options=["Bitcoin", "bitcoin", "BITCOIN", "BitCoin"])
    assert validate_question(candidate, "easy").ok


@pytest.mark.parametrize("candidate", [None, 42, "question", ["a", "b"]])
def test_non_object_candidates_never_raise(candidate):
    result = validate_question(candidate, "hard")
    assert not result.ok


def test_missing_year_uses_fallback_year():
    result = validate_question(make_candidate(0, year=None), "medium", fallback_year=2015)
    assert result.question.year_indicator == 2015


def test_missing_year_without_fallback_is_rejected():
    result = validate_question(make_candidate(0, year=None), "medium")
    assert not result.ok


def test_alternate_key_names_are_accepted():
    candidate = {
        "category": "scams-incidents",
        "questionText": "Which exchange collapsed in 2022?",
        "options": ["FTX", "Kraken", "Coinbase", "Gemini"],
        "correctAnswerIndex": 0,
        "yearIndicator": 2022,
    }
    result = validate_question(candidate, "hard")
    assert result.ok
    assert result.question.year_indicator == 2022


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Development", "development"),
        ("  memes nfts tokens ", "memes-nfts-tokens"),
        ("crypto_characters", "crypto-characters"),
        ("memes-nfts", None),
        (None, None),
    ],
)
def test_normalize_category(raw, expected):
    assert normalize_category(raw) == expected


def test_revalidating_a_question_returns_it_unchanged():
    first = validate_question(make_candidate(3), "medium").question
    second = validate_question(first, "medium")

    assert second.ok
    assert second.question == first
    assert second.question.id == first.id


def test_validate_batch_drops_invalid_and_keeps_unique_ids():
    items = [make_candidate(i, category="development", year=2020) for i in range(6)]
    items.insert(2, {"garbage": True})
    items.append(make_candidate(9, options=["a", "a", "b", "c"]))

    questions = validate_batch(items, "easy")

    assert len(questions) == 6
    assert len({q.id for q in questions}) == 6


def test_validate_batch_uses_per_index_fallback_years():
    items = [make_candidate(0, year=None), make_candidate(1, year=None)]
    questions = validate_batch(items, "easy", fallback_years=[2019, 2017])
    assert [q.year_indicator for q in questions] == [2019, 2017]
