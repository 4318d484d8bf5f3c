"""Business logic: filtering, pagination, mutations and analytics."""
