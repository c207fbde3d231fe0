from pydantic import BaseModel, ConfigDict
from datetime import datetime
from typing import Optional

# Schemas commentaires

class CommentCreate(BaseModel):
    text: Optional[str] = None

class CommentResponse(BaseModel):
    id: int
    task_id: Optional[int]
    subtask_id: Optional[int]
    author_id: int
    author_name: str
    text: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
