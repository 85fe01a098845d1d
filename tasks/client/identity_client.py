# Unless explicitly stated otherwise all files in this repository are licensed under the Apache-2 License.
#
# This product includes software developed at Datadog (https://www.datadoghq.com/) Copyright 2025 Datadog, Inc.

# stdlib
from asyncio import gather
from collections.abc import Awaitable, Callable
from contextlib import AbstractAsyncContextManager
from logging import Logger
from types import TracebackType
from typing import Any, Self, cast

# 3p
from azure.core.exceptions import AzureError, ClientAuthenticationError, ResourceNotFoundError
from azure.identity.aio import DefaultAzureCredential
from azure.mgmt.msi.aio import ManagedServiceIdentityClient
from azure.mgmt.msi.models import Identity
from azure.mgmt.resource.resources.aio import ResourceManagementClient
from azure.mgmt.storage.aio import StorageManagementClient

# project
from tasks.common import (
    OWNED_TAG_VALUE,
    AuthenticationError,
    DeletionError,
    DiscoveryError,
    ManagedIdentityRecord,
    dry_run_of,
    is_owned,
)
from tasks.polling import wait_for_deletion


def to_record(identity: Identity) -> ManagedIdentityRecord:
    return ManagedIdentityRecord(
        name=cast(str, identity.name),
        id=cast(str, identity.id),
        type=cast(str, identity.type),
        tags=dict(identity.tags or {}),
    )


class IdentityClient(AbstractAsyncContextManager["IdentityClient"]):
    """Bundle of the Azure management clients for one subscription.
    When `dry_run` is set, deletions are logged and skipped but listing still happens"""

    def __init__(
        self, log: Logger, credential: DefaultAzureCredential, subscription_id: str, *, dry_run: bool = False
    ) -> None:
        self.log = log
        self.subscription_id = subscription_id
        self.dry_run = dry_run
        self.msi_client = ManagedServiceIdentityClient(credential, subscription_id)
        self.resource_client = ResourceManagementClient(credential, subscription_id)
        self.storage_client = StorageManagementClient(credential, subscription_id)

    async def __aenter__(self) -> Self:
        await gather(
            self.msi_client.__aenter__(),
            self.resource_client.__aenter__(),
            self.storage_client.__aenter__(),
        )
        return self

    async def __aexit__(
        self, exc_type: type[BaseException] | None, exc_val: BaseException | None, exc_tb: TracebackType | None
    ) -> None:
        await gather(
            self.msi_client.__aexit__(exc_type, exc_val, exc_tb),
            self.resource_client.__aexit__(exc_type, exc_val, exc_tb),
            self.storage_client.__aexit__(exc_type, exc_val, exc_tb),
        )

    async def list_owned_managed_identities(
        self, resource_group: str, owned_tag_key: str
    ) -> list[ManagedIdentityRecord]:
        """Lists the user-assigned managed identities in the resource group carrying the owned tag.
        Pages are fetched one at a time, a failure on any page discards everything collected so far"""
        owned: list[ManagedIdentityRecord] = []
        pages_read = 0
        pages = self.msi_client.user_assigned_identities.list_by_resource_group(resource_group).by_page()
        try:
            async for page in pages:
                owned.extend([to_record(identity) async for identity in page if is_owned(identity.tags, owned_tag_key)])
                pages_read += 1
        except ResourceNotFoundError as e:
            if pages_read:
                raise DiscoveryError(
                    f"Resource group {resource_group} disappeared while listing managed identities"
                ) from e
            self.log.info("Resource group %s does not exist, there are no managed identities to delete", resource_group)
            return []
        except ClientAuthenticationError as e:
            raise AuthenticationError(f"Not authorized to list managed identities in {resource_group}") from e
        except AzureError as e:
            raise DiscoveryError(f"Failed to list managed identities in {resource_group}: {e.message}") from e

        if not owned:
            self.log.info(
                "Found no user-assigned managed identities with tag key=%s, value=%s", owned_tag_key, OWNED_TAG_VALUE
            )
        return owned

    async def delete_managed_identity(self, resource_group: str, identity: ManagedIdentityRecord) -> bool:
        return await self._delete(
            f"{identity.type} {identity.id}",
            lambda: self.msi_client.user_assigned_identities.delete(resource_group, identity.name),
        )

    async def delete_storage_account(self, resource_group: str, storage_account_name: str) -> bool:
        return await self._delete(
            f"storage account {storage_account_name}",
            lambda: self.storage_client.storage_accounts.delete(resource_group, storage_account_name),
        )

    async def delete_resource_group(
        self, resource_group: str, polling_interval: float, deadline: float | None = None
    ) -> bool:
        """Deletes the resource group and everything inside it, waiting until Azure reports completion"""
        if self.dry_run:
            self.log.info(dry_run_of(f"Deleting resource group {resource_group} and every resource within it"))
            return False
        self.log.info("Deleting resource group %s, polling every %s seconds", resource_group, polling_interval)
        try:
            poller = await self.resource_client.resource_groups.begin_delete(
                resource_group, polling_interval=polling_interval
            )
        except ResourceNotFoundError:
            self.log.info("Resource group %s was already deleted", resource_group)
            return False
        except ClientAuthenticationError as e:
            raise AuthenticationError(f"Not authorized to delete resource group {resource_group}") from e
        except AzureError as e:
            raise DeletionError(f"Failed to delete resource group {resource_group}: {e.message}") from e

        if not await wait_for_deletion(poller, resource_group, deadline):
            self.log.info("Resource group %s was already deleted", resource_group)
            return False
        self.log.info("Deleted resource group %s", resource_group)
        return True

    async def _delete(self, description: str, delete: Callable[[], Awaitable[Any]]) -> bool:
        """Runs a single delete call, returns True if something was deleted.
        A resource which is already gone counts as deleted so reruns are safe"""
        if self.dry_run:
            self.log.info(dry_run_of(f"Deleting {description}"))
            return False
        try:
            await delete()
        except ResourceNotFoundError:
            self.log.info("Skipping %s, it was already deleted", description)
            return False
        except ClientAuthenticationError as e:
            raise AuthenticationError(f"Not authorized to delete {description}") from e
        except AzureError as e:
            raise DeletionError(f"Failed to delete {description}: {e.message}") from e
        self.log.info("Deleted %s", description)
        return True
