"""Replication setup/cleanup orchestration and the OpenAPI diff wrapper."""
