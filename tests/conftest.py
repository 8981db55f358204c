"""Shared fixtures for assetpipe tests."""

import pytest
import yaml

from assetpipe.config import parse_settings_string
from assetpipe.tasks import BuildContext


def base_settings():
    """Settings dict for a project under src/ with external commands off."""
    return {
        'dist': 'dist',
        'paths': {'static': ['src/**/*', '!src/scss/**/*', '!src/js/**/*', '!src/gr/**/*']},
        'styles': {'entry': 'src/scss/app.scss'},
        'scripts': {'entries': ['src/js/app.js']},
        'images': {'src': 'src/gr'},
        'commands': {'prefix': None, 'prune': None, 'bundle': None, 'transpile': None},
    }


def merge(base, overrides):
    """Recursively merge overrides into base (in place)."""
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            merge(base[key], value)
        else:
            base[key] = value
    return base


@pytest.fixture
def make_context(tmp_path):
    """Factory building a BuildContext rooted at tmp_path.

    Example:
        context = make_context(production=True, scripts={'strategy': 'concat'})
    """
    def factory(production=False, **overrides):
        data = merge(base_settings(), overrides)
        settings = parse_settings_string(yaml.safe_dump(data), base_path=tmp_path)
        return BuildContext(settings, production=production)
    return factory


@pytest.fixture
def write(tmp_path):
    """Write a file under tmp_path, creating parent directories."""
    def factory(name, content=''):
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content)
        return path
    return factory


@pytest.fixture
def config_file(tmp_path):
    """Write config.yml for the base settings and return its path."""
    def factory(**overrides):
        path = tmp_path / 'config.yml'
        path.write_text(yaml.safe_dump(merge(base_settings(), overrides)))
        return path
    return factory


@pytest.fixture
def project(write):
    """A small source tree matching base_settings()."""
    write('src/index.html', '<h1>Home</h1>\n')
    write('src/fonts/icons.woff', b'wOFF')
    write('src/scss/app.scss', '$primary: red;\nbody {\n  color: $primary;\n}\n')
    write('src/js/app.js', 'function add(first, second) {\n  return first + second;\n}\n')
    write('src/gr/logo.png', b'not really a png')
