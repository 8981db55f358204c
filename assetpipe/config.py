"""Settings loading and validation for assetpipe.

The settings file is YAML. It is read once at startup; a missing or
malformed file is fatal.

Example config.yml:
    dist: dist
    port: 3000
    ui_port: 3001
    proxy: "http://localhost:8000"

    compatibility:
      - "last 2 versions"

    paths:
      static:
        - "src/**/*"
        - "!src/scss/**/*"
      sass:
        - "node_modules/foundation-sites/scss"

    styles:
      entry: src/scss/app.scss

    scripts:
      entries:
        - src/js/app.js
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Any, Optional, Union

import yaml

from .exceptions import ConfigError


SCRIPT_STRATEGIES = ('bundle', 'concat')

DEFAULT_COMMANDS = {
    'prefix': 'npx --no-install postcss --use autoprefixer',
    'prune': 'npx --no-install uncss --raw "$(cat)" {pages}',
    'bundle': 'npx --no-install esbuild {entry} --bundle --target={target}',
    'transpile': 'npx --no-install esbuild {source} --target={target}',
}


@dataclass(frozen=True)
class StyleGuideSettings:
    """Where the style guide reads its content and writes its page."""
    source: Path
    template: Path
    output: str = 'styleguide.html'
    title: str = 'Style Guide'


@dataclass(frozen=True)
class Settings:
    """Immutable build settings.

    Relative paths in the settings file are resolved against ``base_path``,
    which defaults to the directory holding the settings file. Glob patterns
    are kept as strings and expanded relative to ``base_path`` when used.
    """

    base_path: Path
    dist: Path
    static: List[str]
    style_entry: Path
    script_entries: List[str]
    sass_include_paths: List[Path] = field(default_factory=list)
    style_bundle: str = 'app.css'
    script_strategy: str = 'bundle'
    script_bundle: str = 'app.js'
    script_target: str = 'es2015'
    compatibility: List[str] = field(default_factory=list)
    css_prune: Dict[str, Any] = field(default_factory=dict)
    port: int = 3000
    ui_port: int = 3001
    proxy: Optional[str] = None
    images_src: Optional[Path] = None
    images_dir: str = 'gr'
    image_quality: int = 80
    templates: List[str] = field(default_factory=list)
    styleguide: Optional[StyleGuideSettings] = None
    commands: Dict[str, Optional[str]] = field(default_factory=dict)
    config_path: Optional[Path] = None

    @property
    def css_dir(self) -> Path:
        return self.dist / 'css'

    @property
    def js_dir(self) -> Path:
        return self.dist / 'js'

    @property
    def images_out(self) -> Path:
        return self.dist / self.images_dir

    @property
    def prune_enabled(self) -> bool:
        return bool(self.css_prune.get('enabled', False))

    def command(self, name: str) -> Optional[str]:
        """Return the configured command template, or None if disabled."""
        return self.commands.get(name)


def load_settings(
    path: Union[str, Path],
    base_path: Optional[Union[str, Path]] = None,
) -> Settings:
    """Load and validate a settings file.

    Args:
        path: Path to the YAML settings file
        base_path: Override the directory relative paths resolve against

    Returns:
        Validated Settings

    Raises:
        FileNotFoundError: If the file doesn't exist
        ConfigError: If the file is invalid or missing required fields
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Settings file not found: {path}")

    with open(path, encoding='utf-8') as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML syntax in {path}: {e}")

    if base_path is None:
        base_path = path.parent
    return _validate_settings(data, Path(base_path).resolve(), path.resolve())


def parse_settings_string(
    content: str,
    base_path: Union[str, Path, None] = None,
) -> Settings:
    """Parse settings from a YAML string.

    Args:
        content: YAML content as string
        base_path: Directory relative paths resolve against (default: cwd)
    """
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML syntax: {e}")

    return _validate_settings(data, Path(base_path or Path.cwd()).resolve(), None)


def _validate_settings(
    data: Any,
    base_path: Path,
    config_path: Optional[Path],
) -> Settings:
    """Validate the parsed YAML structure and build Settings."""
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError("Settings root must be a mapping")

    paths = _mapping(data, 'paths')
    styles = _mapping(data, 'styles')
    scripts = _mapping(data, 'scripts')
    images = _mapping(data, 'images')

    dist = _string(data, 'dist', required=True)
    static = _string_list(paths, 'static', 'paths.static', required=True)

    style_entry = _string(styles, 'entry', 'styles.entry', required=True)
    entries = _string_list(scripts, 'entries', 'scripts.entries', required=True)

    strategy = _string(scripts, 'strategy', 'scripts.strategy') or 'bundle'
    if strategy not in SCRIPT_STRATEGIES:
        raise ConfigError(
            f"'scripts.strategy' has invalid value '{strategy}'. "
            f"Valid values: {', '.join(SCRIPT_STRATEGIES)}"
        )

    prune = _mapping(styles, 'prune', 'styles.prune')
    if 'pages' in prune:
        _string_list(prune, 'pages', 'styles.prune.pages')

    commands = dict(DEFAULT_COMMANDS)
    for name, template in _mapping(data, 'commands').items():
        if template is not None and not isinstance(template, str):
            raise ConfigError(f"'commands.{name}' must be a string or null")
        commands[name] = template

    images_src = _string(images, 'src', 'images.src')

    return Settings(
        base_path=base_path,
        dist=_resolve(base_path, dist),
        static=static,
        style_entry=_resolve(base_path, style_entry),
        script_entries=entries,
        sass_include_paths=[
            _resolve(base_path, p)
            for p in _string_list(paths, 'sass', 'paths.sass')
        ],
        style_bundle=_string(styles, 'bundle', 'styles.bundle') or 'app.css',
        script_strategy=strategy,
        script_bundle=_string(scripts, 'bundle', 'scripts.bundle') or 'app.js',
        script_target=_string(scripts, 'target', 'scripts.target') or 'es2015',
        compatibility=_string_list(data, 'compatibility'),
        css_prune=prune,
        port=_integer(data, 'port', 3000),
        ui_port=_integer(data, 'ui_port', 3001),
        proxy=_string(data, 'proxy'),
        images_src=_resolve(base_path, images_src) if images_src else None,
        images_dir=_string(images, 'dir', 'images.dir') or 'gr',
        image_quality=_integer(images, 'quality', 80, 'images.quality'),
        templates=_string_list(paths, 'templates', 'paths.templates'),
        styleguide=_styleguide(data, base_path),
        commands=commands,
        config_path=config_path,
    )


def _styleguide(data: Dict[str, Any], base_path: Path) -> Optional[StyleGuideSettings]:
    if data.get('styleguide') is None:
        return None
    section = _mapping(data, 'styleguide')
    source = _string(section, 'source', 'styleguide.source', required=True)
    template = _string(section, 'template', 'styleguide.template', required=True)
    return StyleGuideSettings(
        source=_resolve(base_path, source),
        template=_resolve(base_path, template),
        output=_string(section, 'output', 'styleguide.output') or 'styleguide.html',
        title=_string(section, 'title', 'styleguide.title') or 'Style Guide',
    )


def _resolve(base_path: Path, value: str) -> Path:
    path = Path(value)
    if not path.is_absolute():
        path = base_path / path
    return path


def _mapping(data: Dict[str, Any], key: str, label: Optional[str] = None) -> Dict[str, Any]:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"'{label or key}' must be a mapping")
    return value


def _string(
    data: Dict[str, Any],
    key: str,
    label: Optional[str] = None,
    required: bool = False,
) -> Optional[str]:
    value = data.get(key)
    if value is None:
        if required:
            raise ConfigError(f"Settings missing required field '{label or key}'")
        return None
    if not isinstance(value, str):
        raise ConfigError(f"'{label or key}' must be a string")
    return value


def _string_list(
    data: Dict[str, Any],
    key: str,
    label: Optional[str] = None,
    required: bool = False,
) -> List[str]:
    value = data.get(key)
    if value is None:
        if required:
            raise ConfigError(f"Settings missing required field '{label or key}'")
        return []
    # Short form: a single string
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"'{label or key}' must be a string or a list of strings")
    if required and not value:
        raise ConfigError(f"'{label or key}' must not be empty")
    return list(value)


def _integer(
    data: Dict[str, Any],
    key: str,
    default: int,
    label: Optional[str] = None,
) -> int:
    value = data.get(key, default)
    # bool is an int subclass; reject `port: yes`
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"'{label or key}' must be an integer")
    return value
