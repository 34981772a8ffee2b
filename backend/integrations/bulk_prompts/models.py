from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field

REQUIRED_FIELDS = ("title", "content", "tag")

LAUNCH_CHANNELS = ("launch_gpt", "launch_gemini", "launch_claude", "launch_grok")


class BulkPromptInput(BaseModel):
    """One validated, defaulted prompt ready to be stored."""

    title: str
    content: str
    tag: str
    custom_url: Optional[str] = Field(None, alias="customUrl")
    views: int = Field(0, ge=0)
    likes: int = Field(0, ge=0)
    launch_gpt: int = Field(0, ge=0, alias="launchGpt")
    launch_gemini: int = Field(0, ge=0, alias="launchGemini")
    launch_claude: int = Field(0, ge=0, alias="launchClaude")
    launch_grok: int = Field(0, ge=0, alias="launchGrok")
    copied: int = Field(0, ge=0)
    is_invisible: bool = Field(False, alias="isInvisible")

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @property
    def total_launch(self) -> int:
        return sum(getattr(self, channel) for channel in LAUNCH_CHANNELS)


class ResultEntry(BaseModel):
    record_id: str = Field("", alias="recordId")
    title: str
    row: Optional[int] = None
    image_url: Optional[str] = Field(None, alias="imageUrl")
    error: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)


class BatchSummary(BaseModel):
    total: int
    success: int
    failed: int
    skipped: int = 0


class BatchProgress(BaseModel):
    """Running counters handed to an in-process progress callback."""

    processed: int = 0
    total: int = 0
    success: int = 0
    failed: int = 0


class BatchJob(BaseModel):
    batch_id: str = Field(..., alias="batchId")
    total: int
    results: List[ResultEntry] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)

    @computed_field
    @property
    def summary(self) -> BatchSummary:
        success = sum(1 for entry in self.results if entry.error is None)
        failed = len(self.results) - success
        return BatchSummary(
            total=self.total,
            success=success,
            failed=failed,
            skipped=self.total - len(self.results),
        )


class ImagePayload(BaseModel):
    data: bytes
    mime_type: str = "image/png"

    @property
    def extension(self) -> str:
        _, _, subtype = self.mime_type.partition("/")
        return subtype or "png"


class BulkPromptsRequest(BaseModel):
    prompts: List[dict]
    auto_thumbnail: bool = Field(False, alias="autoThumbnail")

    model_config = ConfigDict(populate_by_name=True)


class BulkCsvRequest(BaseModel):
    csv: str
    auto_thumbnail: bool = Field(False, alias="autoThumbnail")

    model_config = ConfigDict(populate_by_name=True)


class ThumbnailResponse(BaseModel):
    prompt_id: str = Field(..., alias="promptId")
    image_url: str = Field(..., alias="imageUrl")

    model_config = ConfigDict(populate_by_name=True)
