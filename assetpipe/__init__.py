"""Static site asset pipeline.

Reads a YAML settings file and runs a fixed graph of tasks that compile
Sass, bundle JavaScript, compress images, copy static files and serve
the result with live reload.

Example:
    from assetpipe import BuildContext, Pipeline, load_settings

    settings = load_settings('config.yml')
    pipeline = Pipeline(BuildContext(settings, production=True))
    result = pipeline.run(['build'])
    if not result.succeeded:
        print(result.failures)

CLI:
    assetpipe build --production
    python -m assetpipe
"""

from .config import Settings, StyleGuideSettings, load_settings, parse_settings_string
from .exceptions import AssetpipeError, ConfigError, CommandError
from .graph import Leaf, Series, Parallel, Runner, RunResult, TaskFailure
from .pipeline import Pipeline
from .tasks import BuildContext

__version__ = '0.1.0'

__all__ = [
    'Settings', 'StyleGuideSettings', 'load_settings', 'parse_settings_string',
    'AssetpipeError', 'ConfigError', 'CommandError',
    'Leaf', 'Series', 'Parallel', 'Runner', 'RunResult', 'TaskFailure',
    'Pipeline', 'BuildContext',
]
