"""
BigQuery persistence for prompts created by bulk uploads.

Records are handled as dicts keyed by camelCase document field names
(``authorId``, ``launchGpt``); columns are the snake_case equivalents.
Rows are written with DML rather than streaming inserts so a freshly created
prompt can be patched with its thumbnail URL straight away.
"""

import logging
import re
import uuid
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Protocol

from google.cloud import bigquery

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])([A-Z])")


class RecordStore(Protocol):
    def create(self, record: Dict[str, Any]) -> str:
        """Persist a new record and return its id."""

    def update(self, record_id: str, patch: Dict[str, Any]) -> None:
        """Apply a partial update to an existing record."""


def to_column(field_name: str) -> str:
    column = _CAMEL_BOUNDARY.sub(r"_\1", field_name).lower()
    if not _IDENTIFIER.match(column):
        raise ValueError(f"Invalid field name: {field_name!r}")
    return column


def to_field_name(column: str) -> str:
    head, *rest = column.split("_")
    return head + "".join(part.capitalize() for part in rest)


def prompts_table_schema() -> List[bigquery.SchemaField]:
    """Schema for the prompts table."""
    return [
        bigquery.SchemaField("id", "STRING", mode="REQUIRED"),
        bigquery.SchemaField("author_id", "STRING", mode="REQUIRED"),
        bigquery.SchemaField("title", "STRING", mode="REQUIRED"),
        bigquery.SchemaField("content", "STRING", mode="REQUIRED"),
        bigquery.SchemaField("tag", "STRING", mode="REQUIRED"),
        bigquery.SchemaField("custom_url", "STRING"),
        bigquery.SchemaField("image_url", "STRING"),
        # Counters
        bigquery.SchemaField("views", "INT64"),
        bigquery.SchemaField("likes", "INT64"),
        bigquery.SchemaField("launch_gpt", "INT64"),
        bigquery.SchemaField("launch_gemini", "INT64"),
        bigquery.SchemaField("launch_claude", "INT64"),
        bigquery.SchemaField("launch_grok", "INT64"),
        bigquery.SchemaField("copied", "INT64"),
        bigquery.SchemaField("total_launch", "INT64"),
        # Counter values at import time, so organic growth can be told apart
        bigquery.SchemaField("initial_launch_gpt", "INT64"),
        bigquery.SchemaField("initial_launch_gemini", "INT64"),
        bigquery.SchemaField("initial_launch_claude", "INT64"),
        bigquery.SchemaField("initial_launch_grok", "INT64"),
        bigquery.SchemaField("initial_copied", "INT64"),
        bigquery.SchemaField("initial_likes", "INT64"),
        # Visibility and provenance
        bigquery.SchemaField("is_invisible", "BOOLEAN"),
        bigquery.SchemaField("is_bulk_upload", "BOOLEAN"),
        bigquery.SchemaField("bulk_upload_batch_id", "STRING"),
        bigquery.SchemaField("created_at", "TIMESTAMP", mode="REQUIRED"),
        bigquery.SchemaField("updated_at", "TIMESTAMP"),
    ]


class BigQueryPromptStore:
    """RecordStore backed by a BigQuery table."""

    def __init__(
        self,
        project_id: str,
        dataset_id: str = "prompts",
        table_id: str = "prompts",
        client: Optional[bigquery.Client] = None,
    ):
        self.project_id = project_id
        self.dataset_id = dataset_id
        self.table_id = table_id
        self.client = client or bigquery.Client(project=project_id)

    @property
    def table_ref(self) -> str:
        return f"{self.project_id}.{self.dataset_id}.{self.table_id}"

    def _get_bq_type(self, value: Any) -> str:
        """Infer BigQuery type from Python value."""
        if value is None:
            return "STRING"  # Default, will be NULL
        if isinstance(value, bool):
            return "BOOL"
        if isinstance(value, int):
            return "INT64"
        if isinstance(value, float):
            return "FLOAT64"
        if isinstance(value, datetime):
            return "TIMESTAMP"
        if isinstance(value, date):
            return "DATE"
        return "STRING"

    def _params(self, values: Dict[str, Any]) -> List[bigquery.ScalarQueryParameter]:
        return [
            bigquery.ScalarQueryParameter(to_column(name), self._get_bq_type(value), value)
            for name, value in values.items()
        ]

    def create(self, record: Dict[str, Any]) -> str:
        record_id = str(uuid.uuid4())
        values = {"id": record_id, **record}

        columns = [to_column(name) for name in values]
        insert_sql = f"""
        INSERT INTO `{self.table_ref}` ({", ".join(columns)})
        VALUES ({", ".join(f"@{column}" for column in columns)})
        """
        job_config = bigquery.QueryJobConfig(query_parameters=self._params(values))
        self.client.query(insert_sql, job_config=job_config).result()

        logger.debug(f"Inserted prompt {record_id} into {self.table_ref}")
        return record_id

    def update(self, record_id: str, patch: Dict[str, Any]) -> None:
        if not patch:
            return
        if "id" in patch:
            raise ValueError("Record id cannot be patched")

        assignments = ", ".join(f"{to_column(name)} = @{to_column(name)}" for name in patch)
        update_sql = f"""
        UPDATE `{self.table_ref}`
        SET {assignments}
        WHERE id = @id
        """
        params = self._params(patch)
        params.append(bigquery.ScalarQueryParameter("id", "STRING", record_id))
        job_config = bigquery.QueryJobConfig(query_parameters=params)

        job = self.client.query(update_sql, job_config=job_config)
        job.result()
        if job.num_dml_affected_rows == 0:
            raise LookupError(f"Prompt {record_id} not found in {self.table_ref}")

        logger.debug(f"Updated prompt {record_id}: {sorted(patch)}")

    def get(self, record_id: str) -> Optional[Dict[str, Any]]:
        query = f"""
        SELECT *
        FROM `{self.table_ref}`
        WHERE id = @id
        LIMIT 1
        """
        job_config = bigquery.QueryJobConfig(
            query_parameters=[
                bigquery.ScalarQueryParameter("id", "STRING", record_id),
            ]
        )
        result = list(self.client.query(query, job_config=job_config).result())
        if not result:
            return None
        return {to_field_name(key): value for key, value in result[0].items()}
