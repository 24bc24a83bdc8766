"""Tests for word service."""
import random
from pathlib import Path

import pytest
from faker import Faker

from spelldrill.services.word_service import (
    DEFAULT_WORDS,
    choose_words,
    get_word_pool,
    has_nontrivial_shuffle,
    load_words_file,
    normalize_words,
    validate_words,
)

fake = Faker()


def test_default_words_are_valid() -> None:
    """Test that the built-in list can always start a game."""
    validate_words(list(DEFAULT_WORDS))


def test_normalize_words() -> None:
    """Test stripping, lowercasing and dropping blanks."""
    assert normalize_words(["  Apple", "", "RIVER \n", "   "]) == ["apple", "river"]


def test_has_nontrivial_shuffle() -> None:
    """Test detecting words whose letters can be reordered."""
    assert has_nontrivial_shuffle("ab")
    assert has_nontrivial_shuffle("noon")
    assert not has_nontrivial_shuffle("aaa")
    assert not has_nontrivial_shuffle("a")


@pytest.mark.parametrize("words", [
    [],
    ["apple", "Apple"],
    ["apple", "apple"],
    ["a"],
    ["zzz"],
    ["ice-cream"],
    ["two words"],
    ["r2d2"],
])
def test_validate_words_rejects(words: list) -> None:
    """Test that unusable word lists are rejected."""
    with pytest.raises(ValueError):
        validate_words(words)


def test_load_words_file(tmp_path: Path) -> None:
    """Test reading a word list with comments and blank lines."""
    path = tmp_path / "words.txt"
    path.write_text("# animals\nCat\n\ndog  # a pet\n   \nhorse\n", encoding="utf-8")

    assert load_words_file(path) == ["cat", "dog", "horse"]


def test_get_word_pool_defaults() -> None:
    """Test that an empty setting falls back to the built-in words."""
    assert get_word_pool("") == normalize_words(DEFAULT_WORDS)


def test_get_word_pool_from_file(tmp_path: Path) -> None:
    """Test loading and validating a configured file."""
    path = tmp_path / "words.txt"
    path.write_text("apple\nriver\n", encoding="utf-8")

    assert get_word_pool(str(path)) == ["apple", "river"]


def test_get_word_pool_rejects_invalid_file(tmp_path: Path) -> None:
    """Test that a file with unusable words is rejected."""
    path = tmp_path / "words.txt"
    path.write_text("apple\nzz\n", encoding="utf-8")

    with pytest.raises(ValueError):
        get_word_pool(str(path))


def test_choose_words() -> None:
    """Test picking a random subset in random order."""
    pool = [word for word in fake.words(nb=30, unique=True) if word.isalpha() and has_nontrivial_shuffle(word)]
    chosen = choose_words(pool, 5, random.Random(7))

    assert len(chosen) == 5
    assert len(set(chosen)) == 5
    assert set(chosen) <= set(pool)
    # Same seed, same choice
    assert choose_words(pool, 5, random.Random(7)) == chosen


def test_choose_more_words_than_available() -> None:
    """Test that asking for too many words returns the whole pool."""
    chosen = choose_words(["apple", "river"], 10, random.Random(1))

    assert sorted(chosen) == ["apple", "river"]


def test_choose_words_rejects_zero() -> None:
    with pytest.raises(ValueError):
        choose_words(["apple"], 0)
