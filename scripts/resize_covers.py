"""
Shrink cover images in place so they are cheap to serve.

    python scripts/resize_covers.py --path ./images --max 1600
    python scripts/resize_covers.py --dry        # only report current sizes
    python scripts/resize_covers.py --simulate   # re-encode to temp files, report savings

Without --path the folder comes from IMAGES_PATH (environment or the project
.env), falling back to <project root>/images like the API does.
"""
import os
import sys

import click
from dotenv import load_dotenv

backend_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'Backend'))
project_root = os.path.dirname(backend_dir)
sys.path.append(backend_dir)
load_dotenv(os.path.join(project_root, ".env"))

from kollector.services.image_resizer import DEFAULT_MAX_DIMENSION, human_size, resize_directory

DEFAULT_IMAGES_PATH = os.path.join(project_root, "images")


@click.command()
@click.option("--path", "images_path", envvar="IMAGES_PATH", default=DEFAULT_IMAGES_PATH, show_default=True,
              help="Folder of cover images (also read from IMAGES_PATH).")
@click.option("--max", "max_dim", type=click.IntRange(min=1), default=DEFAULT_MAX_DIMENSION,
              show_default=True, help="Largest allowed width or height in pixels.")
@click.option("--dry", is_flag=True, help="Report sizes without re-encoding anything.")
@click.option("--simulate", is_flag=True, help="Re-encode to temp files and report savings without replacing.")
def main(images_path, max_dim, dry, simulate):
    """Resize and recompress every image under PATH."""
    if not os.path.isdir(images_path):
        click.echo(f"Images folder not found: {images_path}", err=True)
        sys.exit(2)

    mode = "dry run" if dry and not simulate else "simulation" if simulate else "resize"
    click.echo(f"Processing {images_path} ({mode}, max {max_dim}px)")

    def report_error(path, error):
        click.echo(f" ERROR {path}: {error}", err=True)

    summary = resize_directory(images_path, max_dim=max_dim, dry=dry, simulate=simulate, on_error=report_error)

    click.echo(f"Scanned:   {summary.scanned}")
    click.echo(f"Processed: {summary.processed}")
    click.echo(f"Skipped:   {summary.skipped}")
    click.echo(f"Errors:    {summary.errors}")
    click.echo(f"Original:  {human_size(summary.original_total)}")
    click.echo(f"New:       {human_size(summary.new_total)}")
    click.echo(f"Saved:     {human_size(summary.saved)} ({summary.saved_percent}%)")


if __name__ == "__main__":
    main()
