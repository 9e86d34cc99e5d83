"""Persistence of bucket collections as JSON files."""

import json
from collections.abc import Sequence
from pathlib import Path

from .logging_config import create_execution_logger
from .models import Item


class BucketWriter:
    """Writes each bucket's items to ``<output_dir>/<bucket>.json``."""

    def __init__(self, output_dir: str | Path, execution_id: str | None = None):
        self.output_dir = Path(output_dir)
        self.logger = create_execution_logger("storage", execution_id)

    def path_for(self, bucket_name: str) -> Path:
        return self.output_dir / f"{bucket_name}.json"

    def save(self, bucket_name: str, items: Sequence[Item]) -> Path:
        """Overwrite the bucket file with a pretty-printed JSON array.

        Args:
            bucket_name: Bucket name, also the file stem
            items: Items in output order

        Returns:
            Path of the written file
        """
        self.output_dir.mkdir(parents=True, exist_ok=True)
        path = self.path_for(bucket_name)

        payload = json.dumps([item.to_dict() for item in items], ensure_ascii=False, indent=2)
        path.write_text(payload + "\n", encoding="utf-8")

        self.logger.bind(bucket=bucket_name).info(
            f"Wrote {len(items)} items to {path}", items_count=len(items)
        )
        return path
