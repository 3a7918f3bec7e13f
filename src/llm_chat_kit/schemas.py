"""
Request and response models for the HTTP API.

Field names follow the client's camelCase wire format through aliases;
Python code uses the snake_case attribute names.
"""
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ChatMessage(BaseModel):
    role: Literal["user", "assistant", "system"]
    content: str

    def to_provider(self) -> Dict[str, Any]:
        return {"role": self.role, "content": self.content}


class ChatRequest(BaseModel):
    """Normalized chat request. The caller prepends the system message."""

    model_config = ConfigDict(populate_by_name=True)

    provider: str
    model: str = Field(..., min_length=1)
    messages: List[ChatMessage] = Field(..., min_length=1)
    temperature: Optional[float] = Field(None, ge=0, le=2)
    max_tokens: Optional[int] = Field(None, alias="maxTokens", gt=0)


class ProviderInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    docs_url: Optional[str] = Field(None, alias="docsUrl")


class ProviderDefaults(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    provider: Optional[str] = None
    temperature: float
    max_tokens: int = Field(..., alias="maxTokens")


class ProvidersResponse(BaseModel):
    providers: List[ProviderInfo]
    defaults: ProviderDefaults


class PromptOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    prompt: str
    is_default: bool = Field(False, alias="isDefault")


class PromptIn(BaseModel):
    name: str
    prompt: str

    @field_validator("name", "prompt")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("field must not be empty")
        return value


class PromptResponse(BaseModel):
    prompt: PromptOut


class PromptListResponse(BaseModel):
    prompts: List[PromptOut]


class ErrorResponse(BaseModel):
    error: str
