#!/usr/bin/env python3
"""
Create the BigQuery table that bulk-uploaded prompts are written to.

Usage:
    python setup_prompt_tables.py [--dataset DATASET] [--table TABLE] [--project PROJECT] [--recreate]
"""

import argparse
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv
from google.cloud import bigquery
from google.cloud.exceptions import NotFound

sys.path.insert(0, str(Path(__file__).parent))

from integrations.bulk_prompts.store import prompts_table_schema

# Load environment variables
env_path = Path(__file__).parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

PROJECT_ID = os.environ.get("GOOGLE_CLOUD_PROJECT")
DEFAULT_DATASET = os.environ.get("BIGQUERY_DATASET", "prompts")
DEFAULT_TABLE = os.environ.get("BIGQUERY_PROMPTS_TABLE", "prompts")


def create_prompts_table(
    client: bigquery.Client,
    project_id: str,
    dataset_id: str,
    table_id: str,
    recreate: bool = False,
) -> None:
    """Create the dataset (if needed) and the prompts table."""
    table_ref = f"{project_id}.{dataset_id}.{table_id}"

    dataset = bigquery.Dataset(f"{project_id}.{dataset_id}")
    dataset.location = "US"
    try:
        client.get_dataset(dataset)
        logger.info(f"Dataset {dataset_id} exists")
    except NotFound:
        client.create_dataset(dataset)
        logger.info(f"Created dataset {dataset_id}")

    try:
        existing_table = client.get_table(table_ref)
    except NotFound:
        existing_table = None

    if existing_table is not None:
        if not recreate:
            logger.warning(
                f"Table {table_ref} already exists ({existing_table.num_rows:,} rows); "
                f"pass --recreate to drop it"
            )
            return
        client.delete_table(table_ref)
        logger.info(f"Deleted existing table {table_ref}")

    table = bigquery.Table(table_ref, schema=prompts_table_schema())
    table.description = "Prompts created through bulk uploads, one row per prompt."
    table.time_partitioning = bigquery.TimePartitioning(
        field="created_at",
        type_=bigquery.TimePartitioningType.DAY
    )
    table.clustering_fields = ["author_id", "bulk_upload_batch_id"]

    client.create_table(table)
    logger.info(f"✅ Created table {table_ref}")


def main():
    parser = argparse.ArgumentParser(description="Create the BigQuery prompts table")
    parser.add_argument("--dataset", default=DEFAULT_DATASET, help=f"Dataset ID (default: {DEFAULT_DATASET})")
    parser.add_argument("--table", default=DEFAULT_TABLE, help=f"Table ID (default: {DEFAULT_TABLE})")
    parser.add_argument("--project", default=PROJECT_ID, help="GCP project ID (default: from environment)")
    parser.add_argument("--recreate", action="store_true", help="Drop and recreate an existing table")
    args = parser.parse_args()

    if not args.project:
        logger.error("GOOGLE_CLOUD_PROJECT environment variable not set.")
        logger.error("Or provide --project argument")
        sys.exit(1)

    client = bigquery.Client(project=args.project)
    create_prompts_table(client, args.project, args.dataset, args.table, recreate=args.recreate)


if __name__ == "__main__":
    main()
