"""Service clients and orchestration for catalog aggregation."""
