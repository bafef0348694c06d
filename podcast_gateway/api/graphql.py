"""GraphQL endpoint for the podcast catalog.

Exposes a single ``podcasts`` query backed by the same PodcastService as the
REST endpoint. Upstream and validation failures are reported as fixed
GraphQL error messages; the underlying cause is only logged.
"""

import logging
from typing import Any

import strawberry
from graphql import GraphQLError
from pydantic import ValidationError
from starlette.requests import HTTPConnection
from strawberry.extensions import MaskErrors
from strawberry.fastapi import GraphQLRouter
from strawberry.types import Info

from podcast_gateway.core.config import Settings
from podcast_gateway.core.errors import AggregationAppError, ValidationAppError
from podcast_gateway.schemas import podcast as schemas
from podcast_gateway.services.podcast_service import PodcastService

logger = logging.getLogger(__name__)

INVALID_ARGUMENTS_MESSAGE = "Invalid podcast query arguments"
FETCH_FAILED_MESSAGE = "Error fetching podcast data"


def _as_str(value: Any) -> str | None:
    return None if value is None else str(value)


def _as_bool(value: Any) -> bool | None:
    return None if value is None else bool(value)


@strawberry.type
class PodcastImages:
    default: str | None = None
    featured: str | None = None
    thumbnail: str | None = None
    wide: str | None = None


@strawberry.type
class Podcast:
    id: strawberry.ID | None = None
    title: str | None = None
    description: str | None = None
    category_name: str | None = None
    publisher_name: str | None = None
    images: PodcastImages | None = None
    is_exclusive: bool | None = None
    has_free_episodes: bool | None = None
    media_type: str | None = None

    @classmethod
    def from_model(cls, podcast: schemas.Podcast) -> "Podcast":
        images = None
        if podcast.images is not None:
            images = PodcastImages(
                default=_as_str(podcast.images.default),
                featured=_as_str(podcast.images.featured),
                thumbnail=_as_str(podcast.images.thumbnail),
                wide=_as_str(podcast.images.wide),
            )
        return cls(
            id=strawberry.ID(str(podcast.id)) if podcast.id is not None else None,
            title=_as_str(podcast.title),
            description=_as_str(podcast.description),
            category_name=_as_str(podcast.category_name),
            publisher_name=_as_str(podcast.publisher_name),
            images=images,
            is_exclusive=_as_bool(podcast.is_exclusive),
            has_free_episodes=_as_bool(podcast.has_free_episodes),
            media_type=_as_str(podcast.media_type),
        )


@strawberry.type
class PodcastResponse:
    podcasts: list[Podcast]
    total_items: int
    total_pages: int
    current_page: int


@strawberry.type
class Query:
    @strawberry.field(description="One page of podcasts with catalog-wide totals.")
    async def podcasts(
        self,
        info: Info,
        page: int | None = schemas.DEFAULT_PAGE,
        limit: int | None = schemas.DEFAULT_LIMIT,
        search: str | None = None,
    ) -> PodcastResponse | None:
        try:
            page_request = schemas.PageRequest(
                page=schemas.DEFAULT_PAGE if page is None else page,
                limit=schemas.DEFAULT_LIMIT if limit is None else limit,
                search=search,
            )
        except ValidationError as exc:
            logger.info(
                "graphql.podcasts.invalid_arguments",
                extra={"fields": [".".join(map(str, e["loc"])) for e in exc.errors()]},
            )
            raise GraphQLError(INVALID_ARGUMENTS_MESSAGE) from exc

        service: PodcastService = info.context["request"].app.state.podcast_service
        try:
            result = await service.get_page(page_request)
        except AggregationAppError as exc:
            logger.error(
                "graphql.podcasts.failed",
                extra={"error_code": exc.code, "cause": repr(exc.__cause__)},
            )
            raise GraphQLError(FETCH_FAILED_MESSAGE) from exc

        return PodcastResponse(
            podcasts=[Podcast.from_model(p) for p in result.podcasts],
            total_items=result.total_items,
            total_pages=result.total_pages,
            current_page=result.current_page,
        )


def _should_mask_error(error: GraphQLError) -> bool:
    # Resolvers raise GraphQLError for client-facing messages; mask anything else
    return error.original_error is not None and not isinstance(
        error.original_error, GraphQLError
    )


schema = strawberry.Schema(
    query=Query,
    extensions=[
        lambda: MaskErrors(
            should_mask_error=_should_mask_error,
            error_message="Unexpected error.",
        )
    ],
)


async def require_graphql_query(connection: HTTPConnection) -> None:
    """Reject ``GET /graphql`` without a ``query`` parameter.

    In development the same request opens GraphiQL, so it is let through.

    Raises:
        ValidationAppError: When the query string lacks ``query``.
    """
    if connection.scope["type"] != "http" or connection.scope.get("method") != "GET":
        return
    if connection.app.state.settings.is_development:
        return
    if connection.query_params.get("query"):
        return

    raise ValidationAppError(
        code="graphql_query_required",
        message="GraphQL endpoint requires a query",
        details={
            "hint": (
                "Send a POST with a JSON body, or a GET with a ?query= "
                "parameter, e.g. /graphql?query={podcasts{totalItems}}"
            )
        },
    )


def create_graphql_router(cfg: Settings) -> GraphQLRouter:
    """Build the GraphQL router; GraphiQL is served in development only.

    Usage:
        app.include_router(create_graphql_router(settings), prefix="/graphql")
    """
    return GraphQLRouter(
        schema,
        graphql_ide="graphiql" if cfg.is_development else None,
    )
