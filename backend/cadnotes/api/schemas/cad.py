from __future__ import annotations

from pydantic import BaseModel, Field


class ElementRef(BaseModel):
    """Identifies one Onshape element: document, workspace, element."""

    document_id: str = Field(..., min_length=1)
    workspace_id: str = Field(..., min_length=1)
    element_id: str = Field(..., min_length=1)
