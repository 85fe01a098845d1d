# Unless explicitly stated otherwise all files in this repository are licensed under the Apache-2 License.
#
# This product includes software developed at Datadog (https://www.datadoghq.com/) Copyright 2025 Datadog, Inc.

# stdlib
from asyncio import timeout
from typing import TypeVar

# 3p
from azure.core.exceptions import AzureError, ClientAuthenticationError, ResourceNotFoundError
from azure.core.polling import AsyncLROPoller

# project
from tasks.common import AuthenticationError, PollError

T = TypeVar("T")


async def wait_for_deletion(poller: AsyncLROPoller[T], resource_group: str, deadline: float | None = None) -> bool:
    """Wait for the resource group deletion to reach a terminal state.
    The polling interval is set on the poller when the deletion is started,
    `deadline` bounds the total wait in seconds, `None` waits until the poller finishes.
    Returns False if the resource group was already gone"""
    try:
        async with timeout(deadline):
            await poller.result()
    except ResourceNotFoundError:
        return False
    except ClientAuthenticationError as e:
        raise AuthenticationError(f"Not authorized to delete resource group {resource_group}") from e
    except AzureError as e:
        raise PollError(f"Failed to delete resource group {resource_group}: {e.message}") from e
    except TimeoutError as e:
        raise PollError(f"Resource group {resource_group} was not deleted within {deadline} seconds") from e
    return True
