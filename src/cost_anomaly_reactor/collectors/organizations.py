"""Linked account naming via AWS Organizations."""

from __future__ import annotations

import threading
import time
from typing import Callable

import boto3
from botocore.exceptions import ClientError

DEFAULT_TTL_SECONDS = 300


class AccountNameResolver:
    """
    Resolve linked account IDs to "name(id)" labels.

    Lookups, including failed ones, are cached for ``ttl_seconds`` so an
    account that appears on every day of a graph is described once. Member
    accounts without organizations:DescribeAccount permission get the bare
    account ID.
    """

    def __init__(
        self,
        org_client: boto3.client | None = None,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._org_client = org_client
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._cache: dict[str, tuple[str | None, float]] = {}

    @property
    def org_client(self) -> boto3.client:
        """Get or create Organizations client."""
        if self._org_client is None:
            self._org_client = boto3.client("organizations")
        return self._org_client

    def name(self, account_id: str) -> str | None:
        """
        Get the account name.

        Args:
            account_id: 12-digit AWS account ID.

        Returns:
            Account name, or None if it could not be described.
        """
        now = self._clock()
        with self._lock:
            cached = self._cache.get(account_id)
            if cached is not None and cached[1] > now:
                return cached[0]

        account_name: str | None = None
        try:
            response = self.org_client.describe_account(AccountId=account_id)
            account_name = response["Account"].get("Name")
        except ClientError as e:
            print(f"Could not describe account {account_id}: {e.response.get('Error', {}).get('Code', e)}")

        with self._lock:
            self._cache[account_id] = (account_name, now + self.ttl_seconds)
        return account_name

    def label(self, account_id: str, fallback_name: str | None = None) -> str:
        """Format ``name(id)``, or the bare ID when no name is known."""
        account_name = fallback_name or self.name(account_id)
        if account_name:
            return f"{account_name}({account_id})"
        return account_id

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()
