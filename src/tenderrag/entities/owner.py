"""Parent entities that own chunks."""

from datetime import date, datetime

from pydantic import BaseModel, Field

from .chunk import SearchSource


class ChunkOwner(BaseModel):
    """
    The minimal view of a chunk's parent that search needs.

    For documents ``published_at`` is the upload time, for external tenders
    the publication date. Only document owners are scoped by project and
    organization; tender records are public.
    """

    id: str
    source: SearchSource = SearchSource.DOCUMENT
    title: str
    project_id: str | None = None
    organization_id: str | None = None
    published_at: datetime | None = None
    deleted: bool = False


class TenderRecord(BaseModel):
    """A tender notice harvested from the TenderNed register."""

    id: str
    external_id: str
    title: str
    description: str | None = None
    contracting_authority: str | None = None
    procedure_type: str | None = None
    publication_date: date | None = None
    cpv_codes: list[str] = Field(default_factory=list)

    def to_owner(self) -> ChunkOwner:
        published = (
            datetime.combine(self.publication_date, datetime.min.time())
            if self.publication_date
            else None
        )
        return ChunkOwner(
            id=self.id,
            source=SearchSource.EXTERNAL_TENDER,
            title=self.title,
            published_at=published,
        )
