"""Leaf tasks of the asset pipeline.

Every task is a callable object built from a BuildContext. Calling it
does the work; returning signals completion and raising signals failure.

Classes:
    BuildContext: Settings plus the production flag
    Clean: Delete the output directory
    CopyStatic: Mirror static files into the output directory
    CompileStyles: Sass -> prefixed, minified or source-mapped CSS
    BundleScripts: Bundle or concatenate JavaScript
    ProcessImages: Copy or compress images
    StyleGuide: Render a Markdown style guide through an HTML template
"""

from .context import BuildContext, Reloader
from .clean import Clean
from .copy import CopyStatic
from .styles import CompileStyles
from .scripts import BundleScripts
from .images import ProcessImages
from .styleguide import StyleGuide

__all__ = [
    'BuildContext', 'Reloader',
    'Clean', 'CopyStatic', 'CompileStyles', 'BundleScripts',
    'ProcessImages', 'StyleGuide',
]
