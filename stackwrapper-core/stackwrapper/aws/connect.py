"""
Boto client creation.

This module provides the factory every stackwrapper component obtains its AWS clients from.
"""
import logging
import threading
from functools import lru_cache
from typing import Optional

from boto3.session import Session
from botocore.client import BaseClient
from botocore.config import Config

from stackwrapper import config as stackwrapper_config
from stackwrapper.constants import MAX_POOL_CONNECTIONS

LOG = logging.getLogger(__name__)


class ClientFactory:
    """
    Factory to build AWS clients.

    Boto client creation is resource intensive. This class caches all Boto
    clients it creates and must be used instead of directly using boto lib.
    """

    def __init__(
        self,
        session: Session = None,
        config: Config = None,
    ):
        """
        :param session: Session to be used for client creation. Will create a new session if not provided.
            Please note that sessions are not generally thread safe. The factory itself has a lock for the session,
            so as long as you only use the session in one factory, it should be fine using the factory in a
            multithreaded context.
        :param config: Config used as default for client creation.
        """
        self._config: Config = config or Config(
            max_pool_connections=MAX_POOL_CONNECTIONS,
            retries={"mode": "standard"},
        )
        self._session: Session = session or Session()
        self._create_client_lock = threading.RLock()

    def get_client(
        self,
        service_name: str,
        region_name: Optional[str] = None,
        aws_access_key_id: Optional[str] = None,
        aws_secret_access_key: Optional[str] = None,
        aws_session_token: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        config: Optional[Config] = None,
    ) -> BaseClient:
        """
        Build and return a client for the given service.

        If either of the access keys or region are set to None, they are loaded from following
        locations:
        - AWS environment variables
        - Credentials file `~/.aws/credentials`
        - Config file `~/.aws/config`

        :param service_name: Service to build the client for, eg. `cloudformation`
        :param region_name: Name of the AWS region to be associated with the client
            If set to None, loads from botocore session.
        :param aws_access_key_id: Access key to use for the client.
            If set to None, loads from botocore session.
        :param aws_secret_access_key: Secret key to use for the client.
            If set to None, loads from botocore session.
        :param aws_session_token: Session token to use for the client.
            Not being used if not set.
        :param endpoint_url: Full endpoint URL to be used by the client.
            Defaults to the configured ``AWS_ENDPOINT_URL``, or the regular AWS endpoint.
        :param config: Boto config for advanced use.
        """
        if config is None:
            config = self._config
        else:
            config = self._config.merge(config)

        return self._get_client(
            service_name=service_name,
            region_name=region_name or self._get_session_region(),
            endpoint_url=endpoint_url or stackwrapper_config.AWS_ENDPOINT_URL,
            aws_access_key_id=aws_access_key_id or None,
            aws_secret_access_key=aws_secret_access_key or None,
            aws_session_token=aws_session_token or None,
            config=config,
        )

    @lru_cache(maxsize=256)
    def _get_client(
        self,
        service_name: str,
        region_name: str,
        endpoint_url: Optional[str],
        aws_access_key_id: Optional[str],
        aws_secret_access_key: Optional[str],
        aws_session_token: Optional[str],
        config: Config,
    ) -> BaseClient:
        """
        Returns a boto3 client with the given configuration.
        This is a cached call, so modifications to the used client will affect others.
        """
        LOG.debug("Creating %s client for region %s (endpoint=%s)", service_name, region_name, endpoint_url)
        with self._create_client_lock:
            return self._session.client(
                service_name=service_name,
                region_name=region_name,
                endpoint_url=endpoint_url,
                aws_access_key_id=aws_access_key_id,
                aws_secret_access_key=aws_secret_access_key,
                aws_session_token=aws_session_token,
                config=config,
            )

    def _get_session_region(self) -> str:
        """
        Return AWS region as set in the Boto session, falling back to the configured default region.
        """
        return self._session.region_name or stackwrapper_config.DEFAULT_REGION


connect_to = ClientFactory()
