from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model whose JSON field names are camelCase, as the web client expects."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TransitionPreference(str, Enum):
    WIREHOUSE = "wirehouse"
    INDEPENDENT = "independent"
    REGIONAL_BD = "regionalBD"
    RIA = "ria"


class RetirementTimeline(str, Enum):
    WITHIN_FIVE = "0-5"
    FIVE_TO_TEN = "5-10"
    TEN_PLUS = "10+"
