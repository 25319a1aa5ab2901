"""Pydantic schemas for the GraphQL response envelope."""

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

DataT = TypeVar("DataT")

UNKNOWN_GRAPHQL_ERROR = "Unknown GraphQL error"


class GraphQLErrorMessage(BaseModel):
    """A single entry of the ``errors`` array.

    Only ``message`` is interpreted; locations, path and extensions are kept
    as extra fields for logging.
    """

    model_config = ConfigDict(extra="allow")

    message: str = Field(
        UNKNOWN_GRAPHQL_ERROR,
        description="Human-readable error message.",
    )


class GraphQLEnvelope(BaseModel, Generic[DataT]):
    """Top-level GraphQL response body: ``{data?, errors?}``."""

    data: DataT | None = Field(
        default=None,
        description="Query result shaped by the caller's model.",
    )
    errors: list[GraphQLErrorMessage] = Field(
        default_factory=list,
        description="Application-level errors reported alongside a 2xx status.",
    )
    extensions: dict[str, Any] | None = Field(
        default=None,
        description="Server extensions, e.g. Shopify query cost information.",
    )

    @field_validator("errors", mode="before")
    @classmethod
    def null_errors_as_empty(cls, v: Any) -> Any:
        return [] if v is None else v
