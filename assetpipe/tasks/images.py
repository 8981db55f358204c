"""Copy images into the output directory, compressing them in production."""

import io
import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import List

from PIL import Image, UnidentifiedImageError

from .context import BuildContext


logger = logging.getLogger(__name__)


# Pillow format name -> save options
COMPRESSIBLE = {
    'JPEG': {'optimize': True, 'progressive': True},
    'PNG': {'optimize': True},
    'GIF': {'optimize': True},
}


@dataclass
class ProcessImages:
    """Mirror ``settings.images_src`` into ``<dist>/<images_dir>``.

    Development builds copy bytes unchanged. Production builds re-encode
    JPEG, PNG and GIF files and keep whichever of the original and the
    re-encoded bytes is smaller, so no image ever grows.
    """

    context: BuildContext
    name: str = 'images'

    def sources(self) -> List[Path]:
        src = self.context.settings.images_src
        if src is None or not src.is_dir():
            return []
        return sorted(p for p in src.rglob('*') if p.is_file())

    def compress(self, path: Path) -> bytes:
        """Return the smallest encoding of the image at path."""
        original = path.read_bytes()
        try:
            with Image.open(io.BytesIO(original)) as image:
                options = COMPRESSIBLE.get(image.format)
                # Re-encoding would keep only the first frame
                if options is None or getattr(image, 'is_animated', False):
                    return original
                if image.format == 'JPEG':
                    options = dict(options, quality=self.context.settings.image_quality)
                buffer = io.BytesIO()
                image.save(buffer, format=image.format, **options)
        except UnidentifiedImageError:
            # SVG, ICO with odd headers, anything Pillow can't read
            return original

        compressed = buffer.getvalue()
        if len(compressed) < len(original):
            return compressed
        return original

    def __call__(self) -> List[Path]:
        settings = self.context.settings
        written = []
        saved = 0
        for source in self.sources():
            dest = settings.images_out / source.relative_to(settings.images_src)
            dest.parent.mkdir(parents=True, exist_ok=True)
            if self.context.production:
                data = self.compress(source)
                saved += source.stat().st_size - len(data)
                dest.write_bytes(data)
            else:
                shutil.copyfile(source, dest)
            written.append(dest)

        if self.context.production:
            logger.info("Processed %d image(s), saved %d bytes", len(written), saved)
        else:
            logger.info("Copied %d image(s)", len(written))
        return written
