from abc import ABC, abstractmethod
from typing import Any, Mapping, TypeVar

from pydantic import BaseModel

ModelT = TypeVar("ModelT", bound=BaseModel)


class AbstractGraphQLClient(ABC):
	"""Interface for clients that run GraphQL operations against a commerce API."""

	@abstractmethod
	async def execute(
		self,
		query: str,
		variables: Mapping[str, Any] | None = None,
		*,
		data_model: type[ModelT] | None = None,
	) -> ModelT | dict[str, Any]:
		"""Run a GraphQL operation and return its ``data`` payload.

		Args:
			query: GraphQL document.
			variables: Optional operation variables.
			data_model: Pydantic model used to validate ``data``; a plain dict
				is returned when omitted.

		Returns:
			The validated ``data`` payload.

		Raises:
			ShopifyAppError: One of the typed client failures.
		"""
		...

	@property
	@abstractmethod
	def is_configured(self) -> bool:
		"""Whether credentials are present so ``execute`` can reach the API."""
		...

	async def aclose(self) -> None:
		"""Release network resources held by the client."""
		return None
