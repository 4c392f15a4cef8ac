"""
Boundary schemas for everything that crosses the service edge:
chain reads, the off-chain metadata document and the served response.
"""
from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class OwnershipResult(BaseModel):
    """owner is None when the token was never minted (or was burned)."""

    owner: Optional[str] = None

    @property
    def minted(self) -> bool:
        return self.owner is not None


class BlockInfo(BaseModel):
    number: int = Field(..., ge=0)
    timestamp: int = Field(..., ge=0)


class Attribute(BaseModel):
    trait_type: str
    value: Union[str, int]
    display_type: Optional[Literal["number"]] = None


class ExternalDocument(BaseModel):
    """Off-chain metadata document as published on IPFS. Every field is optional."""

    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    attributes: List[Dict[str, Any]] = Field(default_factory=list)

    # each field is checked on its own so one bad field never discards the rest
    @field_validator("name", "description", "image", mode="before")
    @classmethod
    def _text_or_none(cls, v):
        if not isinstance(v, str) or not v.strip():
            return None
        return v

    @field_validator("attributes", mode="before")
    @classmethod
    def _attribute_list(cls, v):
        if not isinstance(v, list):
            return []
        return [a for a in v if isinstance(a, dict)]


class DocumentDefaults(BaseModel):
    name: str
    description: str


class FetchedDocument(BaseModel):
    document: ExternalDocument
    source: Literal["remote", "fallback"]
    diagnostic: Optional[str] = None

    @property
    def degraded(self) -> bool:
        return self.source == "fallback"


class ResolvedMetadata(BaseModel):
    name: str
    description: str
    image: Optional[str] = None
    attributes: List[Attribute] = Field(default_factory=list)

    def to_response(self) -> Dict[str, Any]:
        # image stays as an explicit null; unset display_type is dropped
        return {
            "name": self.name,
            "description": self.description,
            "image": self.image,
            "attributes": [a.model_dump(exclude_none=True) for a in self.attributes],
        }


class PinResult(BaseModel):
    cid: str
    uri: str
    gateway_url: str
