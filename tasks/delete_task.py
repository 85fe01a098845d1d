# Unless explicitly stated otherwise all files in this repository are licensed under the Apache-2 License.
#
# This product includes software developed at Datadog (https://www.datadoghq.com/) Copyright 2025 Datadog, Inc.

# stdlib
from types import TracebackType
from typing import Self

# project
from config.options import DeleteOptions
from tasks.client.identity_client import IdentityClient
from tasks.common import AuthenticationError, get_owned_tag_key
from tasks.task import Task

DELETE_TASK_NAME = "delete_task"


class DeleteTask(Task):
    """Deletes the OIDC issuer storage account and the user-assigned managed identities created
    for `options.name`, or the whole OIDC resource group when `delete_oidc_resource_group` is set.

    Every resource created during provisioning lives within the OIDC resource group, so deleting
    the group deletes everything and no finer grained deletion is needed afterwards."""

    NAME = DELETE_TASK_NAME

    def __init__(self, options: DeleteOptions, execution_id: str = "") -> None:
        super().__init__(execution_id=execution_id)
        self.options = options
        self.tags.extend([f"oidc_name:{options.name}", f"region:{options.region}"])
        try:
            self.client = IdentityClient(self.log, self.credential, options.subscription_id, dry_run=options.dry_run)
        except ValueError as e:
            raise AuthenticationError(f"Failed to create Azure clients: {e}") from e
        if options.dry_run:
            self.log.info("Dry run enabled, no changes will be made")

    async def __aenter__(self) -> Self:
        await super().__aenter__()
        try:
            await self.client.__aenter__()
        except BaseException as e:
            await super().__aexit__(type(e), e, e.__traceback__)
            raise
        return self

    async def __aexit__(
        self, exc_type: type[BaseException] | None, exc_value: BaseException | None, traceback: TracebackType | None
    ) -> None:
        await self.client.__aexit__(exc_type, exc_value, traceback)
        await super().__aexit__(exc_type, exc_value, traceback)

    async def run(self) -> None:
        if self.options.delete_oidc_resource_group:
            await self.delete_resource_group()
            return

        await self.delete_managed_identities()
        await self.delete_storage_account()

    async def delete_resource_group(self) -> None:
        await self.client.delete_resource_group(
            self.options.oidc_resource_group_name, self.options.polling_interval, self.options.deadline
        )

    async def delete_managed_identities(self) -> None:
        """Deletes the managed identities tagged as owned by `options.name`, stopping at the first failure"""
        resource_group = self.options.oidc_resource_group_name
        owned_tag_key = get_owned_tag_key(self.options.name)
        identities = await self.client.list_owned_managed_identities(resource_group, owned_tag_key)
        self.log.info("Found %s user-assigned managed identities to delete in %s", len(identities), resource_group)
        for identity in identities:
            await self.client.delete_managed_identity(resource_group, identity)

    async def delete_storage_account(self) -> None:
        await self.client.delete_storage_account(
            self.options.oidc_resource_group_name, self.options.storage_account_name
        )
