from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from datetime import datetime
from enum import Enum


class ItemStatus(str, Enum):
    LOST = "lost"
    FOUND = "found"

    @property
    def opposite(self) -> "ItemStatus":
        return ItemStatus.FOUND if self is ItemStatus.LOST else ItemStatus.LOST


class Item(BaseModel):
    """Firestore `items` document. Field names mirror the stored keys."""
    id: Optional[str] = None
    name: str
    description: str
    category: str
    status: ItemStatus
    lastSeenLocation: str
    itemCollectLocation: Optional[str] = None
    imageUrl: Optional[str] = None
    textEmbedding: List[float] = Field(default_factory=list)
    isApproved: bool = False
    isResolved: bool = False
    posterUid: Optional[str] = None
    dateReported: Optional[datetime] = None


class CreateItemResponse(BaseModel):
    success: bool
    message: str
    itemId: str


class MatchesResponse(BaseModel):
    success: bool
    queryId: str
    targetStatus: Optional[ItemStatus] = None
    message: Optional[str] = None
    # {id, score, ...candidate fields}
    matches: List[Dict[str, Any]]


class ApprovalResponse(BaseModel):
    success: bool
    message: str
    isMatchFound: bool


class DeleteItemResponse(BaseModel):
    success: bool
    message: str


class ReembedItemResponse(BaseModel):
    success: bool
    itemId: str
    dimension: int


class ReembedBatchResponse(BaseModel):
    checked: int
    reembedded: int
    failed: int
