"""
Collection and royalty configuration
"""

import json
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from assetmint.core.exceptions import ConfigurationError, ValidationError


class _Model(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class Creator(_Model):
    address: str
    percentage: int = Field(ge=0, le=100)


class RoyaltyConfig(_Model):
    """Royalties plugin settings. `authority` defaults to the signing wallet."""
    basis_points: int = Field(0, ge=0, le=10000)
    creators: List[Creator] = Field(default_factory=list)
    authority: Optional[str] = None

    @field_validator("creators")
    @classmethod
    def creators_share_everything(cls, creators: List[Creator]) -> List[Creator]:
        if creators and sum(c.percentage for c in creators) != 100:
            raise ValueError("creator percentages must add up to 100")
        return creators


class CollectionConfig(_Model):
    name: str
    uri: str
    royalty_enforcement_config: Optional[RoyaltyConfig] = None

    @classmethod
    def from_file(cls, path: str) -> "CollectionConfig":
        try:
            with open(path, 'r') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise ConfigurationError(f"Could not read collection config {path}: {e}") from e
        try:
            return cls.model_validate(data)
        except PydanticValidationError as e:
            raise ConfigurationError(f"Invalid collection configuration: {e}") from e


def parse_creators(value: str) -> List[Creator]:
    """Parse `address:percentage` pairs separated by commas"""
    creators = []
    for entry in value.split(','):
        address, sep, percentage = entry.strip().partition(':')
        if not sep or not address:
            raise ValidationError(f"Creator must look like <address>:<percentage>, got {entry!r}")
        try:
            creators.append(Creator(address=address, percentage=int(percentage)))
        except (ValueError, PydanticValidationError) as e:
            raise ValidationError(f"Invalid creator {entry!r}: {e}") from e
    return creators


def build_royalties(basis_points: Optional[int], creators: Optional[str]) -> Optional[RoyaltyConfig]:
    """Royalty config from command line values. None when no creators are given."""
    if not creators:
        return None
    try:
        return RoyaltyConfig(basis_points=basis_points or 0, creators=parse_creators(creators))
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid royalty configuration: {e}") from e
