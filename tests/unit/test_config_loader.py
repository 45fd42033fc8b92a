"""Unit tests for configuration loading and validation"""

import json
from pathlib import Path

import pytest
import yaml

from footstep_planning.utils.config_loader import (
    ConfigManager, SystemConfig, load_config, validate_config, validate_planner_config
)

REPO_CONFIG = Path(__file__).resolve().parents[2] / 'config' / 'footstep_planner.yaml'


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    import os
    for key in list(os.environ):
        if key.startswith('FOOTSTEP_PLANNER_'):
            monkeypatch.delenv(key)


class TestConfigManager:
    """Test cases for ConfigManager"""

    def test_defaults_when_file_missing(self, tmp_path):
        manager = ConfigManager(str(tmp_path))

        config = manager.load_config('planner')

        assert config.planner['planner_type'] == 'ARAPlanner'
        assert config.planner['accuracy']['num_angle_bins'] == 64
        assert config.logging['level'] == 'INFO'

    def test_file_overrides_defaults(self, tmp_path):
        data = {'planner': {'planner_type': 'ADPlanner', 'accuracy': {'cell_size': 0.02}}}
        (tmp_path / 'footstep_planner.yaml').write_text(yaml.dump(data))

        config = ConfigManager(str(tmp_path)).load_config('planner')

        assert config.planner['planner_type'] == 'ADPlanner'
        assert config.planner['accuracy']['cell_size'] == 0.02
        # untouched siblings keep their defaults
        assert config.planner['accuracy']['num_angle_bins'] == 64

    def test_config_is_cached(self, tmp_path):
        manager = ConfigManager(str(tmp_path))
        assert manager.load_config('planner') is manager.load_config('planner')

    def test_json_file(self, tmp_path):
        path = tmp_path / 'custom.json'
        path.write_text(json.dumps({'planner': {'allocated_time': 1.5}}))

        config = load_config(str(path))

        assert config.planner['allocated_time'] == 1.5

    def test_unreadable_file_gives_defaults(self, tmp_path):
        path = tmp_path / 'broken.yaml'
        path.write_text('planner: [unclosed')

        config = load_config(str(path))

        assert config.planner['allocated_time'] == 7.0

    def test_env_override_with_underscored_key(self, tmp_path, monkeypatch):
        monkeypatch.setenv('FOOTSTEP_PLANNER_PLANNER_ALLOCATED_TIME', '2.5')

        config = ConfigManager(str(tmp_path)).load_config('planner')

        assert config.planner['allocated_time'] == 2.5

    def test_env_override_nested(self, tmp_path, monkeypatch):
        monkeypatch.setenv('FOOTSTEP_PLANNER_PLANNER_ACCURACY_CELL_SIZE', '0.02')
        monkeypatch.setenv('FOOTSTEP_PLANNER_PLANNER_FORWARD_SEARCH', 'true')

        config = ConfigManager(str(tmp_path)).load_config('planner')

        assert config.planner['accuracy']['cell_size'] == 0.02
        assert config.planner['forward_search'] is True

    def test_env_override_json_list(self, tmp_path, monkeypatch):
        monkeypatch.setenv('FOOTSTEP_PLANNER_PLANNER_FOOTSTEPS_THETA', '[0.0, 0.1]')

        config = ConfigManager(str(tmp_path)).load_config('planner')

        assert config.planner['footsteps']['theta'] == [0.0, 0.1]

    def test_save_and_reload(self, tmp_path):
        manager = ConfigManager(str(tmp_path))
        config = SystemConfig()
        config.planner['planner_type'] = 'RSTARPlanner'

        manager.save_config(config, str(tmp_path / 'saved.yaml'))
        reloaded = load_config(str(tmp_path / 'saved.yaml'))

        assert reloaded.planner['planner_type'] == 'RSTARPlanner'


class TestValidation:
    """Test cases for configuration validation"""

    def test_defaults_are_valid(self):
        assert validate_config(SystemConfig()) == {}

    def test_repository_config_is_valid(self):
        config = load_config(str(REPO_CONFIG))
        assert validate_config(config) == {}

    def test_unknown_types(self):
        errors = validate_planner_config({
            'planner_type': 'Dijkstra',
            'heuristic_type': 'Manhattan',
            'footsteps': {'x': [0.0], 'y': [0.1], 'theta': [0.0]},
        })
        assert len(errors) == 2

    @pytest.mark.parametrize('footsteps', [
        None,
        {'x': [0.0], 'y': [0.1]},
        {'x': [0.0, 0.02], 'y': [0.1], 'theta': [0.0]},
        {'x': [], 'y': [], 'theta': []},
    ])
    def test_bad_footsteps(self, footsteps):
        planner = {'footsteps': footsteps} if footsteps is not None else {}
        assert validate_planner_config(planner)

    def test_numeric_ranges(self):
        config = SystemConfig()
        config.planner['accuracy']['cell_size'] = 0.0
        config.planner['accuracy']['collision_check'] = 3
        config.planner['initial_epsilon'] = 0.5
        config.planner['changed_states_limit'] = -1

        errors = validate_config(config)

        assert len(errors['planner']) == 4

    def test_unknown_log_level(self):
        config = SystemConfig()
        config.logging['level'] = 'LOUD'

        errors = validate_config(config)

        assert 'logging' in errors
        assert 'planner' not in errors
