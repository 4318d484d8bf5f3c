import logging
from typing import Any

import strawberry
from graphql import GraphQLError
from sqlalchemy.exc import SQLAlchemyError
from strawberry.extensions import SchemaExtension
from strawberry.utils.await_maybe import await_maybe

from learning_journal.core.exceptions import APIException

logger = logging.getLogger(__name__)


class CustomErrorHandler(SchemaExtension):
    """A Strawberry extension that turns resolver exceptions into coded GraphQL errors.

    Application exceptions keep their message and carry their ``code`` (and any
    structured detail, such as validation field errors) in ``extensions``.
    Database and unexpected errors are logged with a traceback and masked.
    """

    async def resolve(self, _next, root, info: strawberry.Info, *args, **kwargs):
        """Wraps individual resolver calls."""
        try:
            return await await_maybe(_next(root, info, *args, **kwargs))
        except GraphQLError:
            raise
        except APIException as e:
            logger.warning(
                f"{type(e).__name__} in resolver '{info.field_name}': {e.message}",
                extra={"props": {"code": e.code, "field_name": info.field_name}},
            )
            raise GraphQLError(message=e.message, extensions=e.extensions, original_error=e) from e
        except SQLAlchemyError as e:
            logger.error(
                f"SQLAlchemyError in resolver '{info.field_name}': {e}", exc_info=True
            )
            # Hide detailed DB errors from the client
            raise GraphQLError(
                message="A database error occurred.",
                extensions=self.format_error_extensions(code="DATABASE_ERROR"),
            ) from e
        except Exception as e:
            logger.error(
                f"Unexpected Exception in resolver '{info.field_name}': {e}",
                exc_info=True,
            )
            raise GraphQLError(
                message="An unexpected error occurred.",
                extensions=self.format_error_extensions(code="INTERNAL_SERVER_ERROR"),
            ) from e

    def format_error_extensions(self, code: str) -> dict[str, Any]:
        return {"code": code}


def is_client_error(error: GraphQLError) -> bool:
    """True when the error was raised from an APIException somewhere down the chain."""
    original = error.original_error
    while isinstance(original, GraphQLError):
        original = original.original_error
    return isinstance(original, APIException)
