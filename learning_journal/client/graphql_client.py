import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)

LOG_FIELDS = """
    id
    title
    reflection
    tags
    timeSpent
    sourceUrl
    createdAt
"""

LEARNING_LOGS_QUERY = f"""
query LearningLogs($first: Int!, $after: String, $filter: LearningLogFilter) {{
  learningLogs(first: $first, after: $after, filter: $filter) {{
    edges {{ cursor node {{ {LOG_FIELDS} }} }}
    pageInfo {{ hasNextPage hasPreviousPage startCursor endCursor }}
  }}
}}
"""

CREATE_LEARNING_LOG_MUTATION = f"""
mutation CreateLearningLog($input: CreateLearningLogInput!) {{
  createLearningLog(input: $input) {{ log {{ {LOG_FIELDS} }} }}
}}
"""

UPDATE_LEARNING_LOG_MUTATION = f"""
mutation UpdateLearningLog($input: UpdateLearningLogInput!) {{
  updateLearningLog(input: $input) {{ log {{ {LOG_FIELDS} }} }}
}}
"""

DELETE_LEARNING_LOG_MUTATION = """
mutation DeleteLearningLog($input: DeleteLearningLogInput!) {
  deleteLearningLog(input: $input) { deletedId }
}
"""


class GraphQLClientError(Exception):
    """Transport-level failure talking to the GraphQL endpoint."""

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class GraphQLResponseError(Exception):
    """The endpoint answered with a non-empty `errors` list."""

    def __init__(self, errors: list[dict[str, Any]], data: dict[str, Any] | None = None):
        message = errors[0].get("message", "GraphQL error") if errors else "GraphQL error"
        super().__init__(message)
        self.errors = errors
        self.data = data

    @property
    def codes(self) -> list[str]:
        return [(error.get("extensions") or {}).get("code", "") for error in self.errors]

    @property
    def validation_fields(self) -> dict[str, str] | None:
        """Field errors of the first VALIDATION_ERROR, if there is one."""
        for error in self.errors:
            extensions = error.get("extensions") or {}
            if extensions.get("code") == "VALIDATION_ERROR":
                return dict(extensions.get("fields") or {})
        return None


class GraphQLClient:
    """Async client for the learning journal GraphQL API."""

    def __init__(self, url: str = "/graphql", http_client: httpx.AsyncClient | None = None):
        self._url = url
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=30.0)

    async def execute(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        payload: dict[str, Any] = {"query": query}
        if variables:
            payload["variables"] = variables

        logger.debug(f"Making GraphQL request to {self._url}")
        try:
            response = await self._client.post(
                self._url, headers={"Content-Type": "application/json"}, json=payload
            )
            response.raise_for_status()
            response_data = response.json()
        except httpx.HTTPStatusError as e:
            logger.exception(
                f"HTTP error occurred during GraphQL request: {e.request.url!r} - {e.response.status_code}"
            )
            raise GraphQLClientError(
                f"GraphQL request failed: {e.response.status_code} {e.response.reason_phrase}",
                status_code=e.response.status_code,
            ) from e
        except httpx.RequestError as e:
            logger.exception(f"Network error occurred during GraphQL request: {e.request.url!r}")
            raise GraphQLClientError(f"Network error during GraphQL request: {e}") from e

        if response_data.get("errors"):
            logger.warning(f"GraphQL API returned errors: {response_data['errors']}")
            raise GraphQLResponseError(response_data["errors"], response_data.get("data"))

        if response_data.get("data") is None:
            raise GraphQLClientError(
                "Invalid response from GraphQL API (missing data).",
                status_code=response.status_code,
            )
        return response_data["data"]

    async def learning_logs(
        self, first: int, after: str | None = None, filter: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        data = await self.execute(
            LEARNING_LOGS_QUERY, {"first": first, "after": after, "filter": filter}
        )
        return data["learningLogs"]

    async def create_learning_log(self, fields: dict[str, Any]) -> dict[str, Any]:
        data = await self.execute(CREATE_LEARNING_LOG_MUTATION, {"input": fields})
        return data["createLearningLog"]["log"]

    async def update_learning_log(self, log_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        data = await self.execute(UPDATE_LEARNING_LOG_MUTATION, {"input": {"id": log_id, **fields}})
        return data["updateLearningLog"]["log"]

    async def delete_learning_log(self, log_id: str) -> str:
        data = await self.execute(DELETE_LEARNING_LOG_MUTATION, {"input": {"id": log_id}})
        return data["deleteLearningLog"]["deletedId"]

    async def aclose(self):
        if self._owns_client:
            await self._client.aclose()
