import pytest

from evolver.config_loader import DEFAULT_CONFIG, ConfigLoader, load_config, merge_config, section_config
from evolver.errors import ConfigurationError


def write_config(tmp_path, text, name="config.yaml"):
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return path


def test_file_values_override_defaults(tmp_path):
    path = write_config(tmp_path, "evolution:\n  population_size: 50\n  seed: 3\n")
    config = load_config(str(path))
    assert config['evolution']['population_size'] == 50
    assert config['evolution']['seed'] == 3
    assert config['evolution']['elite_count'] == DEFAULT_CONFIG['evolution']['elite_count']
    assert config['fitness'] == DEFAULT_CONFIG['fitness']


def test_common_is_merged_under_sections(tmp_path):
    path = write_config(tmp_path, "common:\n  output_dir: runs\noutput:\n  show_every: 10\n")
    output = ConfigLoader(str(path)).get_section_config('output')
    assert output['output_dir'] == 'runs'
    assert output['show_every'] == 10


def test_section_values_win_over_common():
    config = merge_config(DEFAULT_CONFIG, {'common': {'log_level': 'INFO'}, 'output': {'log_level': 'DEBUG'}})
    assert section_config(config, 'output')['log_level'] == 'DEBUG'


def test_unknown_section_is_rejected(tmp_path):
    path = write_config(tmp_path, "mutation:\n  rate: 0.5\n")
    with pytest.raises(ConfigurationError):
        ConfigLoader(str(path)).load_config()


def test_invalid_yaml_is_rejected(tmp_path):
    path = write_config(tmp_path, "evolution: [unclosed\n")
    with pytest.raises(ConfigurationError):
        ConfigLoader(str(path)).load_config()


def test_explicit_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "absent.yaml"))


def test_default_path_falls_back_to_defaults(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    config = load_config()
    assert config == DEFAULT_CONFIG
    assert config is not DEFAULT_CONFIG


def test_default_path_is_used_when_present(tmp_path, monkeypatch):
    write_config(tmp_path, "output:\n  show_every: 5\n")
    monkeypatch.chdir(tmp_path)
    assert load_config()['output']['show_every'] == 5


def test_empty_file_gives_defaults(tmp_path):
    path = write_config(tmp_path, "")
    assert load_config(str(path)) == DEFAULT_CONFIG


def test_loaded_config_is_a_copy(tmp_path):
    path = write_config(tmp_path, "corpus:\n  policy: filter\n")
    first = load_config(str(path))
    first['corpus']['policy'] = 'strict'
    assert load_config(str(path))['corpus']['policy'] == 'filter'


def test_missing_section():
    with pytest.raises(ValueError):
        section_config({'common': {}}, 'fitness')
