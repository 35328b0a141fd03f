import pytest

from evolver.errors import ConfigurationError, InputError, InvalidCharacter
from evolver.text_utils import (Corpus, clean_text_for_analysis, extract_csv_column, load_corpus,
                                load_corpus_from_config)


def test_strict_policy_rejects_first_invalid_character():
    with pytest.raises(InvalidCharacter) as excinfo:
        Corpus.from_text("ab c")
    assert excinfo.value.char == ' '
    assert excinfo.value.offset == 2
    assert excinfo.value.stage == 'input'


def test_strict_policy_rejects_uppercase():
    with pytest.raises(InvalidCharacter):
        Corpus.from_text("abC")


def test_filter_policy_drops_invalid_characters():
    corpus = Corpus.from_text("Hello, World!\r\nBye 2\n", policy='filter')
    assert corpus.text == "helloworld\nbye\n"
    assert corpus.keystrokes == 13


def test_unknown_policy():
    with pytest.raises(ConfigurationError):
        Corpus.from_text("abc", policy='lenient')


def test_letters_and_line_ids():
    corpus = Corpus.from_text("ab\ncd\n\ne")
    assert corpus.letters.tolist() == [0, 1, 2, 3, 4]
    assert corpus.line_ids.tolist() == [0, 0, 1, 1, 3]
    assert corpus.line_count == 4


def test_empty_text_has_no_keystrokes():
    corpus = Corpus.from_text("\n\n")
    assert corpus.keystrokes == 0


def test_clean_text_for_analysis():
    assert clean_text_for_analysis("A-b c\r") == "abc\n"
    assert clean_text_for_analysis("") == ""


def test_load_corpus(corpus_file):
    corpus = load_corpus(str(corpus_file))
    assert corpus.keystrokes > 0
    assert corpus.text.startswith("thequick")


def test_load_corpus_max_chars(corpus_file):
    corpus = load_corpus(str(corpus_file), max_chars=5)
    assert corpus.text == "thequ"


def test_load_corpus_missing_file(tmp_path):
    with pytest.raises(InputError):
        load_corpus(str(tmp_path / "missing.txt"))


def test_load_corpus_without_keystrokes(tmp_path):
    path = tmp_path / "empty.txt"
    path.write_text("\n\n", encoding="utf-8")
    with pytest.raises(InputError):
        load_corpus(str(path))


def test_load_corpus_strict_invalid_character(tmp_path):
    path = tmp_path / "bad.txt"
    path.write_text("abc def\n", encoding="utf-8")
    with pytest.raises(InvalidCharacter):
        load_corpus(str(path))
    assert load_corpus(str(path), policy='filter').text == "abcdef\n"


def test_extract_csv_column(tmp_path):
    path = tmp_path / "abstracts.csv"
    path.write_text(
        'id,title,abstract\n'
        '1,First,"Typing is fun.\nReally."\n'
        '2,Second,"Keys, keys!"\n'
        '3,Short\n',
        encoding="utf-8",
    )
    assert extract_csv_column(str(path), column=2) == "typingisfunreally\nkeyskeys\n"


def test_load_corpus_from_config_csv(tmp_path):
    path = tmp_path / "abstracts.csv"
    path.write_text('id,text\n1,Hello there\n2,General Kenobi\n', encoding="utf-8")
    corpus = load_corpus_from_config({'path': str(path), 'policy': 'strict'}, csv_column=1)
    assert corpus.text == "hellothere\ngeneralkenobi\n"


def test_load_corpus_from_config_requires_path():
    with pytest.raises(InputError):
        load_corpus_from_config({'path': None})
