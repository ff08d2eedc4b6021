"""
Tests for the configuration module.
"""

import pytest
import json
import yaml
import sys
import os

# Add the parent directory to the path to import the module
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from pcakit.components.config import (
    to_int, to_float, to_bool, Config, ConfigManager, load_config_file
)

PCA_ENV_VARS = [
    'PCA_STANDARDIZE', 'PCA_CENTER', 'PCA_DDOF', 'PCA_N_COMPONENTS', 'PCA_SOLVER',
    'PCA_SCALE_LOADINGS', 'PCA_POWER_ITERS', 'PCA_TOLERANCE', 'PCA_OUTPUT_PRECISION',
    'LOG_LEVEL'
]


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Run every test without PCA environment variables or a shared config."""
    for name in PCA_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    ConfigManager.reset()
    yield
    ConfigManager.reset()


class TestConverters:
    """Tests for the value converters."""

    def test_to_int(self):
        """Test integer conversion."""
        assert to_int('3') == 3
        assert to_int(None) is None
        assert to_int('three') is None

    def test_to_float(self):
        """Test float conversion."""
        assert to_float('1e-8') == 1e-8
        assert to_float('x') is None

    def test_to_bool(self):
        """Test boolean conversion."""
        assert to_bool('Yes') is True
        assert to_bool('0') is False
        assert to_bool(1) is True
        assert to_bool('maybe') is None


class TestConfig:
    """Tests for the Config class."""

    def test_defaults(self):
        """Test default values."""
        config = Config()

        assert config.get('pca.standardize') is True
        assert config.get('pca.ddof') == 1
        assert config.get('pca.n-components') is None
        assert config.get('pca.solver') == 'eigh'
        assert config.get('output.precision') == 4
        assert config.get('missing.key', 'fallback') == 'fallback'

    def test_environment(self, monkeypatch):
        """Test that environment variables override defaults."""
        monkeypatch.setenv('PCA_STANDARDIZE', 'false')
        monkeypatch.setenv('PCA_N_COMPONENTS', '2')
        monkeypatch.setenv('PCA_SOLVER', 'SVD')
        monkeypatch.setenv('PCA_TOLERANCE', '1e-8')
        monkeypatch.setenv('LOG_LEVEL', 'DEBUG')

        config = Config()

        assert config.get('pca.standardize') is False
        assert config.get('pca.n-components') == 2
        assert config.get('pca.solver') == 'svd'
        assert config.get('pca.tolerance') == 1e-8
        assert config.get('logging.level') == 'debug'

    def test_invalid_environment_value_is_ignored(self, monkeypatch):
        """Test that unparseable environment values keep the default."""
        monkeypatch.setenv('PCA_DDOF', 'one')
        assert Config().get('pca.ddof') == 1

    def test_overrides_win(self, monkeypatch):
        """Test precedence: defaults < environment < overrides."""
        monkeypatch.setenv('PCA_DDOF', '0')
        config = Config({'pca': {'ddof': 1, 'solver': 'power'}})

        assert config.get('pca.ddof') == 1
        assert config.get('pca.solver') == 'power'
        # Sibling keys survive the deep update
        assert config.get('pca.standardize') is True

    def test_set(self):
        """Test setting values by dotted path."""
        config = Config()
        config.set('pca.ddof', 0)
        config.set('plots.dpi', 150)

        assert config.get('pca.ddof') == 0
        assert config.get('plots.dpi') == 150

    def test_pca_options(self):
        """Test the compute_pca keyword arguments."""
        options = Config({'pca': {'n-components': 3}}).pca_options()

        assert options == {
            'standardize': True,
            'center': True,
            'ddof': 1,
            'n_components': 3,
            'solver': 'eigh',
            'scale_loadings': False,
            'iters': 1000,
            'tol': 1e-10
        }

    @pytest.mark.parametrize('filename', ['config.json', 'config.yaml'])
    def test_file_round_trip(self, tmp_path, filename):
        """Test saving and reloading configuration."""
        path = str(tmp_path / filename)
        config = Config({'pca': {'solver': 'svd'}})
        config.save_to_file(path)

        reloaded = Config()
        reloaded.load_from_file(path)
        assert reloaded.get('pca.solver') == 'svd'

    def test_unsupported_file(self, tmp_path):
        """Test that unknown file formats are rejected."""
        with pytest.raises(ValueError):
            Config().save_to_file(str(tmp_path / 'config.ini'))
        with pytest.raises(ValueError):
            load_config_file(str(tmp_path / 'config.ini'))

    def test_to_dict_is_a_copy(self):
        """Test that to_dict does not expose internal state."""
        config = Config()
        data = config.to_dict()
        data['pca']['ddof'] = 0

        assert config.get('pca.ddof') == 1


class TestConfigManager:
    """Tests for the ConfigManager singleton."""

    def test_singleton(self):
        """Test that the same instance is returned."""
        first = ConfigManager.get_config()
        second = ConfigManager.get_config()
        assert first is second

    def test_reload_with_overrides(self):
        """Test that overrides reload the shared instance."""
        config = ConfigManager.get_config()
        ConfigManager.get_config({'pca': {'ddof': 0}})

        assert config.get('pca.ddof') == 0
