"""
Pydantic models for assets and description records.
"""

from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class Asset(BaseModel):
    """
    A file in the source Drive folder.

    Read-only projection of Drive metadata; built by the lister and never
    modified afterwards.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str = Field(..., min_length=1, description="Drive file ID")
    name: str = Field(..., min_length=1, description="Display name, also used as the local/mirror file name")
    mime_type: str = Field(..., alias="mimeType", description="Content type reported by Drive")
    size: Optional[int] = Field(default=None, description="Byte size reported by Drive, if any")


class DescriptionRecord(BaseModel):
    """
    One row of the output report.
    """
    model_config = ConfigDict(frozen=True)

    name: str
    size: int = Field(default=0, ge=0, description="Downloaded byte count, 0 on error")
    mime_type: str
    file_id: str
    description: str = ""
    failed: bool = Field(default=False, description="True when description holds error text")

    @classmethod
    def from_error(cls, asset: Asset, error: Exception) -> "DescriptionRecord":
        """Build a record carrying the error text in place of a description."""
        return cls(
            name=asset.name,
            size=0,
            mime_type=asset.mime_type,
            file_id=asset.id,
            description=f"Error: {error}",
            failed=True
        )

    @property
    def is_error(self) -> bool:
        return self.failed

    def as_row(self) -> List[str]:
        """Columns in report order: name, size, content type, id, description."""
        return [self.name, str(self.size), self.mime_type, self.file_id, self.description]
