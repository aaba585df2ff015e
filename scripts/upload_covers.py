"""
Upload a folder of cover images to the Cloudflare R2 bucket.

    python scripts/upload_covers.py ./images covers

Credentials come from the environment (or the project .env): R2_ENDPOINT,
R2_ACCESS_KEY_ID, R2_SECRET_ACCESS_KEY and optionally R2_BUCKET_NAME.
Only files directly inside SOURCE_FOLDER are uploaded, each as PREFIX/<file name>.
"""
import os
import sys

import click
from dotenv import load_dotenv

backend_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'Backend'))
sys.path.append(backend_dir)
load_dotenv(os.path.join(os.path.dirname(backend_dir), ".env"))

from kollector.services.storage import R2ImageStorage, create_r2_client

REQUIRED_ENV = ("R2_ENDPOINT", "R2_ACCESS_KEY_ID", "R2_SECRET_ACCESS_KEY")


def object_key(prefix: str, filename: str) -> str:
    prefix = prefix.strip("/")
    return f"{prefix}/{filename}" if prefix else filename


def build_storage() -> R2ImageStorage:
    client = create_r2_client(
        os.environ["R2_ENDPOINT"], os.environ["R2_ACCESS_KEY_ID"], os.environ["R2_SECRET_ACCESS_KEY"]
    )
    return R2ImageStorage(client, os.environ.get("R2_BUCKET_NAME") or "cover-art")


@click.command()
@click.argument("source_folder")
@click.argument("prefix")
def main(source_folder, prefix):
    """Upload every file in SOURCE_FOLDER under PREFIX/ with public-read access."""
    if not os.path.isdir(source_folder):
        click.echo(f"Source folder not found: {source_folder}", err=True)
        sys.exit(3)

    missing = [name for name in REQUIRED_ENV if not os.environ.get(name)]
    if missing:
        click.echo(f"Missing environment variables: {', '.join(missing)}", err=True)
        sys.exit(4)

    storage = build_storage()
    files = sorted(
        name for name in os.listdir(source_folder)
        if os.path.isfile(os.path.join(source_folder, name))
    )

    uploaded = 0
    for name in files:
        key = object_key(prefix, name)
        if storage.upload_file(os.path.join(source_folder, name), key):
            uploaded += 1
            click.echo(f" uploaded {key}")
        else:
            click.echo(f" FAILED {key}", err=True)

    click.echo(f"Uploaded {uploaded}/{len(files)} files to {storage.bucket_name}")
    if uploaded != len(files):
        sys.exit(1)


if __name__ == "__main__":
    main()
