from __future__ import annotations

import pytest

from src.signal_noise.words import WordList, WordSource, load_word_list


def test_bundled_list_loads():
    words = load_word_list()

    assert len(words) >= 50
    assert "ocean" in words
    assert all(w == w.lower() and " " not in w for w in words)


def test_load_skips_comments_and_counts(tmp_path):
    path = tmp_path / "nouns.txt"
    path.write_text("# nouns\n\n   12 Time\n    3 harbor\nlantern\n")

    assert load_word_list(path) == ["time", "harbor", "lantern"]


def test_empty_file_is_rejected(tmp_path):
    path = tmp_path / "empty.txt"
    path.write_text("# nothing here\n\n")

    with pytest.raises(ValueError):
        load_word_list(path)


def test_seeded_lists_draw_the_same_words():
    words = ["ocean", "mountain", "harbor", "anchor", "lantern"]
    first = WordList(words, seed=7)
    second = WordList(words, seed=7)

    assert [first.get_random_word() for _ in range(10)] == [second.get_random_word() for _ in range(10)]


def test_draws_come_from_the_list():
    source = WordList(["ocean", "river"], seed=1)

    assert {source.get_random_word() for _ in range(20)} <= {"ocean", "river"}
    assert source.words == ("ocean", "river")
    assert isinstance(source, WordSource)


def test_categories_are_optional():
    assert WordList(["ocean"]).get_random_category() is None
    assert WordList(["ocean"], categories=["nature"]).get_random_category() == "nature"


def test_word_list_needs_words():
    with pytest.raises(ValueError):
        WordList([])
