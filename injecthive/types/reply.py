from typing import Any

from pydantic import BaseModel, Field


class Reply(BaseModel):
    text: str = Field(description="Markdown reply shown to the user")
    content: Any = Field(default=None, description="Structured payload mirroring the gateway result")
