# api/schemas.py

from typing import List, Optional
from pydantic import BaseModel, Field


class SpanSchema(BaseModel):
    start: int
    length: int
    end: int
    concept_id: str
    surface: str


class AnnotateRequest(BaseModel):
    text: str
    config_path: str = "configs/annotator.yaml"
    max_fragment_length: Optional[int] = Field(default=None, gt=0)


class AnnotateResponse(BaseModel):
    spans: List[SpanSchema]
    chunks: int
    failed_chunks: List[int]
    dropped_unresolved: int
    dropped_out_of_range: int
    elapsed_ms: float
