from typing import List, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BulkPromptSettings(BaseSettings):
    project_id: str = Field(..., alias="GOOGLE_CLOUD_PROJECT")
    location: str = Field("us-central1", alias="GCP_LOCATION")

    image_backend: Literal["imagen", "gemini"] = Field("imagen", alias="IMAGE_GENERATION_BACKEND")
    imagen_model: str = Field("imagen-3.0-generate-002", alias="IMAGEN_MODEL")
    gemini_image_model: str = Field("gemini-2.5-flash-image", alias="GEMINI_IMAGE_MODEL")
    gemini_api_key: str | None = Field(None, alias="GEMINI_API_KEY")
    thumbnail_bucket: str | None = Field(None, alias="THUMBNAIL_BUCKET")

    dataset_id: str = Field("prompts", alias="BIGQUERY_DATASET")
    prompts_table: str = Field("prompts", alias="BIGQUERY_PROMPTS_TABLE")

    max_rows: int = Field(100, alias="BULK_MAX_ROWS")
    max_retries: int = Field(3, alias="ENRICHMENT_MAX_RETRIES")
    base_delay_seconds: float = Field(3.0, alias="ENRICHMENT_BASE_DELAY_SECONDS")
    inter_record_delay_seconds: float = Field(5.0, alias="INTER_RECORD_DELAY_SECONDS")
    request_timeout_seconds: float = Field(120.0, alias="IMAGE_REQUEST_TIMEOUT_SECONDS")
    admin_user_ids_raw: str = Field("", alias="BULK_ADMIN_USER_IDS")

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    @property
    def admin_user_ids(self) -> List[str]:
        return [user_id.strip() for user_id in self.admin_user_ids_raw.split(",") if user_id.strip()]

    @property
    def image_model(self) -> str:
        if self.image_backend == "gemini":
            return self.gemini_image_model
        return self.imagen_model
