"""
Utility CLI for bulk prompt uploads.

    python bulk_upload_cli.py check prompts.csv
    python bulk_upload_cli.py run prompts.csv --actor-id USER_ID --thumbnails
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from integrations.bulk_prompts.config import BulkPromptSettings
from integrations.bulk_prompts.csv_parser import tokenize
from integrations.bulk_prompts.errors import BatchRejectedError, RowValidationError
from integrations.bulk_prompts.factory import build_pipeline
from integrations.bulk_prompts.normalizer import build_header_map, missing_required_columns, normalize
from integrations.bulk_prompts.pipeline import split_results

# Load environment variables
env_path = Path(__file__).parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Bulk-create prompts from a CSV file.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    check = subparsers.add_parser("check", help="Validate a CSV without writing anything.")
    check.add_argument("file", type=Path, help="CSV file (header row first).")

    run = subparsers.add_parser("run", help="Create prompts from a CSV file.")
    run.add_argument("file", type=Path, help="CSV file (header row first).")
    run.add_argument("--actor-id", required=True, help="User id recorded as the prompts' author.")
    run.add_argument("--thumbnails", action="store_true", help="Generate a thumbnail for each prompt.")
    run.add_argument("--output", type=Path, help="Write the full batch result as JSON to this file.")

    return parser


def check_file(path: Path) -> int:
    rows = tokenize(path.read_text(encoding="utf-8"))
    if not rows:
        print("CSV file is empty or invalid.")  # noqa: T201
        return 1

    header = build_header_map(rows[0])
    missing = missing_required_columns(header)
    if missing:
        print(f"Missing required columns: {', '.join(missing)}")  # noqa: T201
        return 1

    valid = invalid = blank = 0
    for row_number, row in enumerate(rows[1:], start=2):
        try:
            prompt = normalize(header, row, row_number)
        except RowValidationError as exc:
            invalid += 1
            print(f"  ✗ {exc}")  # noqa: T201
            continue
        if prompt is None:
            blank += 1
            continue
        valid += 1
        print(f"  ✓ Row {row_number}: {prompt.title} [{prompt.tag}]")  # noqa: T201

    print(f"{valid} valid, {invalid} invalid, {blank} blank")  # noqa: T201
    return 0 if invalid == 0 else 1


async def run_file(path: Path, actor_id: str, thumbnails: bool, output: Path | None) -> int:
    settings = BulkPromptSettings()
    pipeline = build_pipeline(settings)

    try:
        job = await pipeline.run_batch(path.read_text(encoding="utf-8"), thumbnails, actor_id)
    except BatchRejectedError as exc:
        logger.error(f"Batch rejected: {exc}")
        return 1

    succeeded, failed = split_results(job)
    for entry in succeeded:
        image = f" -> {entry.image_url}" if entry.image_url else ""
        print(f"  ✓ Row {entry.row}: {entry.record_id} {entry.title}{image}")  # noqa: T201
    for entry in failed:
        print(f"  ✗ Row {entry.row}: {entry.error}")  # noqa: T201

    summary = job.summary
    print(  # noqa: T201
        f"Batch {job.batch_id}: {summary.success} created, {summary.failed} failed, "
        f"{summary.skipped} skipped (of {summary.total})"
    )

    if output:
        output.write_text(json.dumps(job.model_dump(mode="json", by_alias=True, exclude_none=True), indent=2))
        logger.info(f"Wrote results to {output}")

    return 0 if not failed else 1


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )
    parser = build_parser()
    args = parser.parse_args()

    if args.command == "check":
        code = check_file(args.file)
    elif args.command == "run":
        code = asyncio.run(run_file(args.file, args.actor_id, args.thumbnails, args.output))
    else:  # pragma: no cover - argparse guards commands
        parser.error("Unknown command")
    sys.exit(code)


if __name__ == "__main__":
    main()
