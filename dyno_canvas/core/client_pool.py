"""
DynamoDB Client Pool

Caches one boto3 DynamoDB resource per connection target (endpoint or AWS,
region, profile) so every gateway created for the same target shares the
underlying HTTP connection pool.

The pool is an ordinary object: create one and hand it to the gateways and
APIs that should share it. Gateways created without a pool get a private one.
"""

import logging
import threading
from typing import Any, Dict

import boto3
from botocore.config import Config

from ..config import DynoCanvasConfig
from ..exceptions import ConnectionError

logger = logging.getLogger(__name__)


class ClientPool:
    """Lazily-created boto3 resources keyed by ``config.pool_key()``."""

    def __init__(self):
        self._resources: Dict[str, Any] = {}
        self._lock = threading.Lock()

    def resource(self, config: DynoCanvasConfig):
        """Get (or create) the DynamoDB resource for a configuration.

        Raises:
            ConnectionError: The boto3 session or resource could not be created
        """
        key = config.pool_key()
        with self._lock:
            resource = self._resources.get(key)
            if resource is None:
                resource = self._create_resource(config)
                self._resources[key] = resource
                logger.debug(f"Created DynamoDB resource for {key}")
        return resource

    def client(self, config: DynoCanvasConfig):
        """Low-level client behind the pooled resource."""
        return self.resource(config).meta.client

    def sts_client(self, config: DynoCanvasConfig):
        """STS client for the same credentials, used to look up the account id."""
        try:
            return self._session(config).client('sts', region_name=config.region_name)
        except Exception as e:
            logger.error(f"Failed to create STS client: {e}")
            raise ConnectionError(f"Failed to create STS client: {e}", e) from e

    def clear(self) -> None:
        with self._lock:
            self._resources.clear()

    def __len__(self) -> int:
        return len(self._resources)

    @staticmethod
    def _session(config: DynoCanvasConfig) -> boto3.Session:
        access_key_id, secret_access_key = config.resolved_credentials()
        session_kwargs = {'region_name': config.region_name}
        if config.profile_name and not config.is_local:
            session_kwargs['profile_name'] = config.profile_name
        if access_key_id and secret_access_key:
            session_kwargs['aws_access_key_id'] = access_key_id
            session_kwargs['aws_secret_access_key'] = secret_access_key
        return boto3.Session(**session_kwargs)

    def _create_resource(self, config: DynoCanvasConfig):
        try:
            session = self._session(config)

            resource_kwargs = {'region_name': config.region_name}
            if config.endpoint_url:
                resource_kwargs['endpoint_url'] = config.endpoint_url

            resource_kwargs['config'] = Config(
                retries={'max_attempts': config.retries},
                max_pool_connections=config.max_pool_connections,
                read_timeout=config.timeout_seconds,
                connect_timeout=config.timeout_seconds,
            )
            return session.resource('dynamodb', **resource_kwargs)
        except Exception as e:
            logger.error(f"Failed to create DynamoDB resource: {e}")
            raise ConnectionError(f"Failed to connect to DynamoDB: {e}", e) from e
