from abc import ABC, abstractmethod

from podcast_gateway.schemas.podcast import Podcast

# Page size used to approximate the number of matching podcasts
TOTAL_COUNT_PROBE_LIMIT = 10000


class AbstractPodcastCatalogClient(ABC):
	"""Interface for clients of the upstream podcast catalog."""

	@abstractmethod
	async def fetch_page(
		self,
		page: int,
		limit: int,
		search: str | None = None,
	) -> list[Podcast]:
		"""Fetch one page of podcasts.

		Args:
			page: 1-based page number.
			limit: Page size.
			search: Optional filter. Omitted from the upstream call when blank.

		Returns:
			list[Podcast]: Podcasts in upstream order.

		Raises:
			UpstreamAppError: On network failure or a non-success response.
		"""
		...

	@abstractmethod
	async def fetch_total_count(self, search: str | None = None) -> int:
		"""Count podcasts matching ``search``.

		Upstream has no count endpoint, so this is allowed to be an
		approximation (see TOTAL_COUNT_PROBE_LIMIT).

		Raises:
			UpstreamAppError: On network failure or a non-success response.
		"""
		...

	async def aclose(self) -> None:
		"""Release network resources held by the client."""
		return None
