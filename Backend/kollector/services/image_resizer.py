"""
Shrink and recompress cover images in place.

Every supported image is re-encoded (JPEG/WebP at quality 80, PNG at maximum
compression); images larger than the limit on either side are also scaled
down to fit inside a max x max box. Output is written to a temp file next to
the original and then moved over it, so an interrupted run never leaves a
half-written cover behind.
"""

import logging
import math
import os
import tempfile
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from PIL import Image

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = (".jpg", ".jpeg", ".png", ".webp")
DEFAULT_MAX_DIMENSION = 1600


def human_size(num_bytes: int) -> str:
    if num_bytes == 0:
        return "0 B"
    sign = "-" if num_bytes < 0 else ""
    num_bytes = abs(num_bytes)
    units = ["B", "KB", "MB", "GB", "TB"]
    i = min(int(math.log(num_bytes, 1024)), len(units) - 1)
    return f"{sign}{num_bytes / 1024 ** i:.2f} {units[i]}"


def fit_inside(width: int, height: int, max_dim: int) -> Tuple[int, int]:
    """Size that fits inside max_dim x max_dim keeping the aspect ratio. Never enlarges."""
    if width <= max_dim and height <= max_dim:
        return width, height
    scale = min(max_dim / width, max_dim / height)
    return max(1, round(width * scale)), max(1, round(height * scale))


@dataclass
class ResizeResult:
    path: str
    original_size: int
    new_size: int
    resized: bool


@dataclass
class ResizeSummary:
    scanned: int = 0
    processed: int = 0
    skipped: int = 0
    errors: int = 0
    original_total: int = 0
    new_total: int = 0
    failures: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def saved(self) -> int:
        return self.original_total - self.new_total

    @property
    def saved_percent(self) -> float:
        if self.original_total <= 0:
            return 0.0
        return round(self.saved / self.original_total * 100, 1)


def _save(image: Image.Image, path: str, ext: str) -> None:
    if ext in (".jpg", ".jpeg"):
        if image.mode not in ("RGB", "L"):
            image = image.convert("RGB")
        image.save(path, format="JPEG", quality=80, optimize=True, progressive=True)
    elif ext == ".png":
        image.save(path, format="PNG", optimize=True, compress_level=9)
    elif ext == ".webp":
        image.save(path, format="WEBP", quality=80)
    else:
        raise ValueError(f"Unsupported image type: {ext}")


def resize_image(path: str, max_dim: int = DEFAULT_MAX_DIMENSION, simulate: bool = False) -> ResizeResult:
    """Re-encode one image, shrinking it if needed. With simulate the original is untouched."""
    ext = os.path.splitext(path)[1].lower()
    original_size = os.path.getsize(path)

    with Image.open(path) as image:
        image.load()
        new_dims = fit_inside(image.width, image.height, max_dim)
        resized = new_dims != image.size
        output = image.resize(new_dims, Image.Resampling.LANCZOS) if resized else image.copy()

    fd, temp_path = tempfile.mkstemp(suffix=ext, prefix=".resize-", dir=os.path.dirname(path) or ".")
    os.close(fd)
    try:
        _save(output, temp_path, ext)
        new_size = os.path.getsize(temp_path)
        if simulate:
            os.remove(temp_path)
        else:
            os.replace(temp_path, path)
    except Exception:
        if os.path.exists(temp_path):
            os.remove(temp_path)
        raise

    return ResizeResult(path=path, original_size=original_size, new_size=new_size, resized=resized)


def iter_files(root: str):
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        for name in sorted(filenames):
            yield os.path.join(dirpath, name)


def resize_directory(root: str, max_dim: int = DEFAULT_MAX_DIMENSION, dry: bool = False,
                     simulate: bool = False,
                     on_error: Optional[Callable[[str, Exception], None]] = None) -> ResizeSummary:
    """
    Walk `root` and process every supported image.

    dry only measures the current sizes; simulate re-encodes to a temp file to
    report what would be saved without replacing anything.
    """
    summary = ResizeSummary()
    for path in iter_files(root):
        summary.scanned += 1
        if os.path.splitext(path)[1].lower() not in SUPPORTED_EXTENSIONS:
            summary.skipped += 1
            continue

        if dry and not simulate:
            size = os.path.getsize(path)
            summary.original_total += size
            summary.new_total += size
            continue

        try:
            result = resize_image(path, max_dim=max_dim, simulate=simulate)
        except (OSError, ValueError) as e:
            summary.errors += 1
            summary.failures.append((path, str(e)))
            logger.error(f"Error processing {path}: {e}")
            if on_error:
                on_error(path, e)
            continue

        summary.processed += 1
        summary.original_total += result.original_size
        summary.new_total += result.new_size
    return summary
