from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional


class HighlightCreate(BaseModel):
    book_id: int = Field(..., ge=1)
    chapter: int = Field(..., ge=1)
    verse: int = Field(..., ge=1)
    version: str = Field('KJV', max_length=20)
    color: str = Field(..., max_length=20)
    label: Optional[str] = Field(None, max_length=100)


class HighlightRemove(BaseModel):
    book_id: int = Field(..., ge=1)
    chapter: int = Field(..., ge=1)
    verse: int = Field(..., ge=1)


class HighlightRead(BaseModel):
    id: str
    book_id: int
    chapter: int
    verse: int
    version: Optional[str] = None
    color: str
    label: Optional[str] = None
    text: Optional[str] = None

    model_config = ConfigDict(from_attributes=True, coerce_numbers_to_str=True)


class CategoryLabelUpdate(BaseModel):
    label: str = Field(..., max_length=200)


class CategoryRead(BaseModel):
    name: str
    is_synthetic: bool = False

    model_config = ConfigDict(from_attributes=True)


class DeletionReportRead(BaseModel):
    category: str
    colors: List[str]
    requested_count: int
    deleted_count: int
    failed_ids: List[str] = []

    model_config = ConfigDict(coerce_numbers_to_str=True)


class NoteSave(BaseModel):
    book_id: int = Field(..., ge=1)
    chapter: int = Field(..., ge=1)
    verse: int = Field(..., ge=1)
    version: str = Field('KJV', max_length=20)
    text: str = Field(..., max_length=10000)


class NoteRead(BaseModel):
    id: str
    book_id: int
    chapter: int
    verse: int
    version: Optional[str] = None
    text: str
    updated_at: Optional[str] = None

    model_config = ConfigDict(from_attributes=True, coerce_numbers_to_str=True)
