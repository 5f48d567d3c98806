# Settings for the related activities rewrite
# Values come from RELATED_ACTIVITIES_* environment variables when present

import os
from typing import Dict, List, Mapping, Optional

from pydantic import BaseModel, Field, field_validator

from . import schema

ENV_PREFIX = "RELATED_ACTIVITIES_"

_TRUE_VALUES = {"1", "true", "yes", "on"}


class RelatedActivitiesSettings(BaseModel):
    """
    Tunables for the rewrite pipeline.

    The defaults reproduce the behaviour hosts expect; override them only
    for schemas that differ from the stock one.
    """

    max_depth: int = Field(
        default=1,
        ge=1,
        description="Highest host recursion depth at which the rewrite still runs"
    )

    spousal_status: str = Field(
        default="Current",
        description="Status name a spousal relationship must have to widen the closure"
    )

    channels: List[str] = Field(
        default_factory=lambda: list(schema.CHANNEL_ALIASES),
        description="Activity types whose subsystem-created mirrors are excluded"
    )

    include_descendants: bool = Field(
        default=True,
        description="Whether organizations under a seed identifier join the closure"
    )

    @field_validator("channels")
    @classmethod
    def _channels_not_empty(cls, value: List[str]) -> List[str]:
        channels = [channel.strip() for channel in value if channel.strip()]
        if not channels:
            raise ValueError("At least one channel entity is required")
        return channels

    def channel_aliases(self) -> Dict[str, str]:
        """Map each channel entity to the alias of its exclusion join."""
        return {
            channel: schema.CHANNEL_ALIASES.get(channel, f"remove{channel}")
            for channel in self.channels
        }

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "RelatedActivitiesSettings":
        """
        Build settings from environment variables.

        Respects:
        - RELATED_ACTIVITIES_MAX_DEPTH
        - RELATED_ACTIVITIES_SPOUSAL_STATUS
        - RELATED_ACTIVITIES_CHANNELS (comma separated)
        - RELATED_ACTIVITIES_INCLUDE_DESCENDANTS

        Raises:
            pydantic.ValidationError: If a variable holds an invalid value
        """
        environ = os.environ if environ is None else environ
        values = {}

        max_depth = environ.get(f"{ENV_PREFIX}MAX_DEPTH")
        if max_depth:
            values["max_depth"] = max_depth

        spousal_status = environ.get(f"{ENV_PREFIX}SPOUSAL_STATUS")
        if spousal_status:
            values["spousal_status"] = spousal_status

        channels = environ.get(f"{ENV_PREFIX}CHANNELS")
        if channels:
            values["channels"] = channels.split(",")

        include_descendants = environ.get(f"{ENV_PREFIX}INCLUDE_DESCENDANTS")
        if include_descendants:
            values["include_descendants"] = include_descendants.strip().lower() in _TRUE_VALUES

        return cls(**values)
