"""Basic Locust file for performance testing the Learning Journal API.

To run:
1. Ensure Locust is installed (`pip install -e ".[test]"`).
2. Run locust -f performance_tests/locustfile.py
3. Open your browser to http://localhost:8089 (or the port specified by Locust).
4. Configure the number of users, spawn rate, and host (e.g., http://localhost:8000).
5. Start Swarming.

Raise GRAPHQL_RATE_LIMIT on the server first, or set RATE_LIMIT_ENABLED=false.
"""

import random
import time

from locust import HttpUser, between, events, task

LOG_FIELDS = "id title tags timeSpent createdAt"
TAG_POOL = ["python", "graphql", "sql", "testing", "design", "reading"]


@events.init_command_line_parser.add_listener
def _(parser):
    parser.add_argument(
        "--page-size",
        type=int,
        env_var="LOCUST_PAGE_SIZE",
        default=10,
        help="`first` argument for learningLogs queries",
    )


class JournalUser(HttpUser):
    # Wait time between tasks executed by each user
    wait_time = between(1, 3)  # seconds
    graphql_endpoint = "/graphql"
    # IDs created by this user during the run
    log_ids: list[str]

    def on_start(self):
        self.log_ids = []

    def _post(self, name, query, variables=None):
        """Posts a GraphQL operation and returns `data`, or None on failure."""
        with self.client.post(
            self.graphql_endpoint,
            json={"query": query, "variables": variables or {}},
            catch_response=True,
            name=name,
        ) as response:
            if response.status_code != 200:
                response.failure(f"{name} failed with status {response.status_code}: {response.text}")
                return None
            data = response.json()
            if data.get("errors"):
                response.failure(f"GraphQL error in {name}: {data['errors']}")
                return None
            response.success()
            return data.get("data")

    @task(1)
    def health_check(self):
        self.client.get("/health", name="App: Health Check")

    @task(5)  # Higher weight: reading the journal is the common path
    def list_logs(self):
        query = f"""
            query List($first: Int!, $after: String) {{
                learningLogs(first: $first, after: $after) {{
                    edges {{ cursor node {{ {LOG_FIELDS} }} }}
                    pageInfo {{ hasNextPage endCursor }}
                }}
            }}
        """
        first = self.environment.parsed_options.page_size
        data = self._post("GraphQL: List Logs", query, {"first": first})
        page_info = (data or {}).get("learningLogs", {}).get("pageInfo", {})
        if page_info.get("hasNextPage"):
            self._post(
                "GraphQL: List Logs (next page)",
                query,
                {"first": first, "after": page_info["endCursor"]},
            )

    @task(2)
    def filter_logs(self):
        query = f"""
            query Filtered($filter: LearningLogFilter) {{
                learningLogs(first: 10, filter: $filter) {{
                    edges {{ node {{ {LOG_FIELDS} }} }}
                }}
            }}
        """
        variables = {"filter": {"tagsAny": random.sample(TAG_POOL, 2), "q": "a"}}
        self._post("GraphQL: Filter Logs", query, variables)

    @task(3)
    def create_log(self):
        mutation = f"""
            mutation Create($input: CreateLearningLogInput!) {{
                createLearningLog(input: $input) {{ log {{ {LOG_FIELDS} }} }}
            }}
        """
        variables = {
            "input": {
                "title": f"Locust session {time.time()}",
                "reflection": "Load test reflection",
                "tags": random.sample(TAG_POOL, 2),
                "timeSpent": random.randint(5, 120),
            }
        }
        data = self._post("GraphQL: Create Log", mutation, variables)
        log = (data or {}).get("createLearningLog", {}).get("log")
        if log:
            self.log_ids.append(log["id"])

    @task(1)
    def update_log(self):
        if not self.log_ids:
            return
        mutation = """
            mutation Update($input: UpdateLearningLogInput!) {
                updateLearningLog(input: $input) { log { id timeSpent } }
            }
        """
        variables = {"input": {"id": random.choice(self.log_ids), "timeSpent": random.randint(5, 120)}}
        self._post("GraphQL: Update Log", mutation, variables)

    @task(1)
    def delete_log(self):
        if not self.log_ids:
            return
        mutation = """
            mutation Delete($input: DeleteLearningLogInput!) {
                deleteLearningLog(input: $input) { deletedId }
            }
        """
        log_id = self.log_ids.pop(random.randrange(len(self.log_ids)))
        self._post("GraphQL: Delete Log", mutation, {"input": {"id": log_id}})

    @task(1)  # Lower weight: analytics, no summary text so no LLM call
    def learning_summary(self):
        query = """
            query Summary {
                learningSummary {
                    totalMinutes totalEntries currentStreak longestStreak
                    minutesByTag { tag minutes }
                }
            }
        """
        self._post("GraphQL: Learning Summary", query)
