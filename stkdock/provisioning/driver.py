"""Provider-agnostic compute driver interface."""

from abc import ABC, abstractmethod

from stkdock.provisioning.types import CreateRequest, Node


class ComputeDriver(ABC):
    """Creates compute nodes and reports the provider's default login user."""

    @abstractmethod
    async def create(self, request: CreateRequest) -> Node:
        """Create a node and return it once the provider reports it running.

        Raises:
            ProviderError: the node could not be created.
        """

    @abstractmethod
    def default_user(self) -> str:
        """Login user provisioned on new nodes."""
