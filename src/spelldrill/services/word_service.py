"""Service for sourcing and validating the words of a game."""
import logging
import random
from pathlib import Path
from typing import Iterable, List, Optional, Union

from spelldrill.config import settings

logger = logging.getLogger(__name__)

DEFAULT_WORDS = [
    "apple", "banana", "cherry", "garden", "window", "pencil",
    "rabbit", "castle", "dragon", "forest", "island", "jacket",
    "kitten", "lemon", "market", "number", "orange", "planet",
    "rocket", "silver", "turtle", "violin", "wizard", "yellow",
    "bridge", "candle", "doctor", "engine", "flower", "guitar",
    "hammer", "jungle", "ladder", "mirror", "napkin", "pillow",
    "puzzle", "school", "summer", "ticket", "winter", "zipper",
]


def normalize_words(words: Iterable[str]) -> List[str]:
    """Strip and lowercase words, dropping blanks."""
    result = []
    for word in words:
        word = word.strip().lower()
        if word:
            result.append(word)
    return result


def has_nontrivial_shuffle(word: str) -> bool:
    """A word can be shuffled into a different order only with 2+ distinct letters."""
    return len(set(word)) >= 2


def validate_words(words: List[str]) -> None:
    """Raise ValueError unless the words are usable for a game.

    Every word must be unique, alphabetic and contain at least two distinct
    letters, otherwise the letter shuffle could never differ from the word.
    """
    if not words:
        raise ValueError("At least one word is required")

    seen = set()
    for word in words:
        if not word.isalpha() or not word.islower():
            raise ValueError(f"Word {word!r} must contain lowercase letters only")
        if not has_nontrivial_shuffle(word):
            raise ValueError(f"Word {word!r} needs at least two distinct letters")
        if word in seen:
            raise ValueError(f"Word {word!r} is listed more than once")
        seen.add(word)


def load_words_file(path: Union[str, Path]) -> List[str]:
    """Read one word per line; blank lines and ``#`` comments are skipped."""
    path = Path(path)
    lines = []
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            line = line.split("#", 1)[0]
            if line.strip():
                lines.append(line)
    words = normalize_words(lines)
    logger.info("Loaded %d words from %s", len(words), path)
    return words


def get_word_pool(words_file: Optional[str] = None) -> List[str]:
    """Return the validated pool of candidate words."""
    words_file = words_file if words_file is not None else settings.game.words_file
    if words_file:
        words = load_words_file(words_file)
    else:
        words = normalize_words(DEFAULT_WORDS)
    validate_words(words)
    return words


def choose_words(words: List[str], count: int, rng: Optional[random.Random] = None) -> List[str]:
    """Pick ``count`` words in random order (all of them if fewer are available)."""
    if count < 1:
        raise ValueError("At least one word must be chosen")
    rng = rng or random.Random()
    shuffled = list(words)
    rng.shuffle(shuffled)
    return shuffled[:count]
