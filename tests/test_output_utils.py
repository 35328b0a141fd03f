import io

import pandas as pd
import pytest

from evolver.controller import GenerationRecord, RunHistory
from evolver.fitness import FitnessEvaluator
from evolver.layout_utils import Layout
from evolver.output_utils import (format_comparison_output, format_generation, format_layout, print_generation,
                                  print_results, save_run_history)
from evolver.text_utils import Corpus


@pytest.fixture
def history(sample_corpus, distance_matrix):
    evaluator = FitnessEvaluator()
    history = RunHistory()
    for generation, name in enumerate(['qwerty', 'colemak', 'colemak']):
        best = evaluator.evaluate(Layout.reference(name), sample_corpus, distance_matrix)
        history.append(GenerationRecord(generation, best.fitness, best.total_distance, min(generation, 1), best))
    return history


def test_format_layout():
    assert format_layout(Layout.reference('qwerty')) == (
        " WERT  YUIO\n"
        "ASDFG  HJKLP\n"
        "ZXCV    BNMQ"
    )


def test_format_generation(history):
    text = format_generation(history.records[1])
    assert text.startswith("Generation 1")
    assert "Fitness:" in text.splitlines()[2]


def test_print_generation_respects_show_every(history):
    out = io.StringIO()
    for record in history.records:
        print_generation(record, show_every=2, file=out)
    assert out.getvalue().count("Generation") == 2


def test_save_run_history(history, tmp_path):
    paths = save_run_history(history, str(tmp_path / "run"))
    assert [p.name for p in paths] == ['fitness.txt', 'distance.txt', 'history.csv', 'best_layout.txt']

    fitness_lines = (tmp_path / "run" / "fitness.txt").read_text().splitlines()
    assert [float(v) for v in fitness_lines] == history.fitness

    table = pd.read_csv(tmp_path / "run" / "history.csv")
    assert table['generation'].tolist() == [0, 1, 2]
    assert table['best_layout'].iloc[-1] == Layout.reference('colemak').to_letters()

    best = (tmp_path / "run" / "best_layout.txt").read_text().splitlines()
    assert best[0] == Layout.reference('colemak').to_letters()


def test_decimal_separator(history, tmp_path):
    save_run_history(history, str(tmp_path), decimal_separator=',')
    for line in (tmp_path / "distance.txt").read_text().splitlines():
        assert ',' in line and '.' not in line


@pytest.mark.parametrize("output_format", ["detailed", "csv", "score_only"])
def test_print_results(history, output_format):
    out = io.StringIO()
    print_results(history.best, output_format, name="colemak", file=out)
    assert out.getvalue().strip()


def test_print_results_unknown_format(history):
    with pytest.raises(ValueError):
        print_results(history.best, "xml")


def test_csv_output_has_header_and_row(history):
    out = io.StringIO()
    print_results(history.best, "csv", name="colemak", file=out)
    header, row = out.getvalue().strip().splitlines()
    assert header.split(',')[:3] == ['name', 'layout', 'fitness']
    assert row.startswith("colemak,")


def test_comparison_output_ranks_by_fitness(sample_corpus, distance_matrix):
    evaluator = FitnessEvaluator()
    corpus = Corpus.from_text("asdf\n")
    results = [evaluator.evaluate(Layout.reference(n), corpus, distance_matrix) for n in ('qwerty', 'colemak')]
    text = format_comparison_output(results, ['qwerty', 'colemak'])
    best_name = 'qwerty' if results[0].fitness >= results[1].fitness else 'colemak'
    assert f"# 1 {best_name}" in text
    with pytest.raises(ValueError):
        format_comparison_output(results, ['only-one'])
