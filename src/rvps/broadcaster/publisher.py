# Copyright (c) 2026 - 2026, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""This module contains the channels the reference values are published on."""

import abc
import logging

import redis

from rvps.errors import ChannelUnavailableError

logger: logging.Logger = logging.getLogger(__name__)


class Publisher(abc.ABC):
    """The channel notifying the subscribers, e.g. the Attestation Service, of new reference values."""

    @abc.abstractmethod
    def publish(self, message: str) -> None:
        """Publish the message to all the subscribers.

        Delivery is best-effort: a successful call does not mean any subscriber received the message.

        Parameters
        ----------
        message : str
            The message.

        Raises
        ------
        ChannelUnavailableError
            If the message cannot be handed to the channel.
        """

    def close(self) -> None:
        """Release the connection to the channel."""


class RedisPublisher(Publisher):
    """Publish messages on a Redis pub/sub channel."""

    def __init__(self, channel: str, url: str) -> None:
        """Initialize instance.

        The connection is opened on the first publish.

        Parameters
        ----------
        channel : str
            The Redis channel for publishing.
        url : str
            The address of the Redis server, e.g. ``redis://127.0.0.1:6379/0``.
        """
        self.channel = channel
        self.url = url
        self.client = redis.Redis.from_url(url, decode_responses=True)

    def publish(self, message: str) -> None:
        try:
            receivers = self.client.publish(self.channel, message)
        except redis.exceptions.RedisError as error:
            raise ChannelUnavailableError(f"Cannot publish on the Redis channel {self.channel}: {error}") from error
        logger.debug("Published on %s to %s subscribers.", self.channel, receivers)

    def close(self) -> None:
        """Close the connection to the Redis server."""
        self.client.close()
