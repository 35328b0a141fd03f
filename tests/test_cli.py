import pandas as pd
import pytest

import evolve_layout
import score_layout


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("common:\n  log_level: WARNING\n", encoding="utf-8")
    return path


def test_score_layout_score_only(corpus_file, tmp_path, capsys, config_file):
    code = score_layout.main(['--config', str(config_file), '--corpus', str(corpus_file),
                              '--layout', 'qwerty', '--layout', 'colemak', '--format', 'score_only', '--quiet'])
    assert code == 0
    lines = capsys.readouterr().out.strip().splitlines()
    assert len(lines) == 2
    fitness, distance = lines[0].split()
    assert float(fitness) > 0
    assert int(distance) > 0


def test_score_layout_detailed_comparison(corpus_file, tmp_path, capsys, config_file):
    csv_path = tmp_path / "scores.csv"
    code = score_layout.main(['--config', str(config_file), '--corpus', str(corpus_file),
                              '--layout', 'qwerty', '--letters', 'wfpgjluyarstdhneiozxcvmkbq',
                              '--engine', 'sequential', '--csv', str(csv_path)])
    assert code == 0
    out = capsys.readouterr().out
    assert "Layout comparison" in out
    assert "custom shares" in out and "key positions with qwerty" in out
    assert pd.read_csv(csv_path)['name'].tolist() == ['qwerty', 'custom']


def test_score_layout_reports_invalid_character(tmp_path, capsys, config_file):
    corpus = tmp_path / "bad.txt"
    corpus.write_text("hello world\n", encoding="utf-8")
    code = score_layout.main(['--config', str(config_file), '--corpus', str(corpus)])
    assert code == 1
    assert "Error during input stage" in capsys.readouterr().err


def test_score_layout_reports_bad_layout(corpus_file, tmp_path, capsys, config_file):
    code = score_layout.main(['--config', str(config_file), '--corpus', str(corpus_file),
                              '--letters', 'abc'])
    assert code == 1
    assert "Error during configuration stage" in capsys.readouterr().err


def test_evolve_layout_writes_outputs(corpus_file, tmp_path, capsys, config_file):
    output_dir = tmp_path / "run"
    code = evolve_layout.main(['--config', str(config_file), '--corpus', str(corpus_file),
                               '--seed', '1', '--population-size', '20', '--elite-count', '4',
                               '--offspring', '3', '--stagnation', '3', '--max-generations', '10',
                               '--workers', '2', '--output-dir', str(output_dir)])
    assert code == 0
    assert "Best layout after" in capsys.readouterr().out
    for name in ['fitness.txt', 'distance.txt', 'history.csv', 'best_layout.txt', 'fitness.png', 'distance.png']:
        assert (output_dir / name).exists()


def test_evolve_layout_rejects_bad_settings(corpus_file, tmp_path, capsys, config_file):
    code = evolve_layout.main(['--config', str(config_file), '--corpus', str(corpus_file),
                               '--population-size', '2', '--elite-count', '5', '--no-plots', '--no-history'])
    assert code == 1
    assert "Error during configuration stage" in capsys.readouterr().err


def test_explicit_missing_config_is_an_error(corpus_file, tmp_path, capsys):
    code = score_layout.main(['--config', str(tmp_path / "typo.yaml"), '--corpus', str(corpus_file)])
    assert code == 1
    assert "Configuration file not found" in capsys.readouterr().err
