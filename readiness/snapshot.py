# readiness/snapshot.py
"""
Dummy-mode session: replays recorded API responses from a JSON snapshot.

Expected shape:
{
  "region": "us-east-1",
  "services": {
    "organizations": { "describe_organization": { "Organization": { ... } } },
    ...
  },
  "regional": {
    "eu-west-1": { "sso-admin": { "list_instances": { "Instances": [ ... ] } } }
  }
}

Operations are keyed by their boto3 (snake_case) names. A missing operation
behaves like a permission gap on a live account.
"""

import copy
from types import SimpleNamespace
from typing import Any, Dict, Iterator, Optional

from botocore.exceptions import ClientError


class SnapshotPaginator:
    """Yields the single recorded page for an operation."""

    def __init__(self, client: "SnapshotClient", operation: str):
        self._client = client
        self._operation = operation

    def paginate(self, **kwargs) -> Iterator[Dict[str, Any]]:
        yield self._client.call(self._operation, **kwargs)


class SnapshotClient:
    def __init__(self, service_name: str, responses: Dict[str, Any], region_name: Optional[str]):
        self.service_name = service_name
        self._responses = responses
        self.meta = SimpleNamespace(region_name=region_name, service_model=None)

    def call(self, operation: str, **kwargs) -> Dict[str, Any]:
        if operation not in self._responses:
            raise ClientError(
                {"Error": {"Code": "AccessDeniedException",
                           "Message": f"{self.service_name}.{operation} is not recorded in the snapshot"}},
                operation,
            )
        return copy.deepcopy(self._responses[operation])

    def get_paginator(self, operation: str) -> SnapshotPaginator:
        return SnapshotPaginator(self, operation)

    def __getattr__(self, name: str):
        if name.startswith("_"):
            raise AttributeError(name)

        def _operation(**kwargs):
            return self.call(name, **kwargs)
        return _operation


class SnapshotSession:
    """
    Minimal stand-in for boto3.Session backed by a snapshot dict.

    Clients for the snapshot's own region see "services" overlaid with that
    region's "regional" block; other regions see only their "regional" block.
    """

    def __init__(self, data: Dict[str, Any], region_name: Optional[str] = None):
        self._data = data or {}
        self.region_name = region_name or self._data.get("region")

    def client(self, service_name: str, region_name: Optional[str] = None) -> SnapshotClient:
        region = region_name or self.region_name
        regional = (self._data.get("regional", {}).get(region, {}) or {}).get(service_name, {})
        if region == self.region_name:
            responses = dict(self._data.get("services", {}).get(service_name, {}) or {})
            responses.update(regional)
        else:
            responses = dict(regional)
        return SnapshotClient(service_name, responses, region)
