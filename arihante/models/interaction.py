"""Interaction state contract for the assistant screens.

The controller owns exactly one mutable `InteractionState` per conversation.
Everything outside the controller only ever sees frozen `StateSnapshot` copies.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ViewState(str, Enum):
    HOME = "HOME"
    INPUT_PROBLEM = "INPUT_PROBLEM"
    LOADING = "LOADING"
    RESULT = "RESULT"


class ResultData(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    answer: str = Field(min_length=1)

    @field_validator("answer")
    @classmethod
    def validate_answer(cls, value: str) -> str:
        text = value.strip()
        if not text:
            raise ValueError("answer must not be blank")
        return text


class CompletionPayload(BaseModel):
    """Raw reply shape requested from the completion engines."""

    model_config = ConfigDict(extra="ignore")

    answer: str


@dataclass
class InteractionState:
    view: ViewState = ViewState.HOME
    result: Optional[ResultData] = None
    input_text: str = ""
    listening: bool = False


@dataclass(frozen=True)
class StateSnapshot:
    view: ViewState
    result: Optional[ResultData]
    input_text: str
    listening: bool
    voice_capability: bool

    @property
    def answer(self) -> Optional[str]:
        if self.result is None:
            return None
        return self.result.answer

    @property
    def can_submit(self) -> bool:
        return self.view in {ViewState.INPUT_PROBLEM, ViewState.RESULT} and bool(self.input_text.strip())


def is_blank(text: Optional[str]) -> bool:
    return not (text or "").strip()
