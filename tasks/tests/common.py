# Unless explicitly stated otherwise all files in this repository are licensed under the Apache-2 License.
#
# This product includes software developed at Datadog (https://www.datadoghq.com/) Copyright 2025 Datadog, Inc.

# stdlib
from collections.abc import AsyncIterable, Iterable
from typing import Any, TypeVar
from unittest import IsolatedAsyncioTestCase
from unittest.mock import AsyncMock, MagicMock, Mock, call, patch

# 3p
from azure.core.exceptions import HttpResponseError

SUB_ID1 = "f7a0a345-103e-4b6e-93b7-13d0a56fd363"
EAST_US = "eastus"
NAME = "cluster1"
RESOURCE_GROUP = "cluster1-oidc"
OWNED_TAG_KEY = "openshift.io_cloud-credential-operator_cluster1"


class AsyncTestCase(IsolatedAsyncioTestCase):
    def patch_path(self, path: str, **kwargs: Any) -> MagicMock | AsyncMock:
        p = patch(path, **kwargs)
        self.addCleanup(p.stop)
        return p.start()

    def assertCalledTimesWith(self, mock: AsyncMock, times: int, /, *args: Any, **kwargs: Any):
        self.assertEqual(mock.await_count, times)
        self.assertEqual([call(*args, **kwargs)] * times, mock.await_args_list)


T = TypeVar("T")


class TaskTestCase(AsyncTestCase):
    def setUp(self) -> None:
        cred_mock = self.patch_path("tasks.task.DefaultAzureCredential", return_value=AsyncMockClient())
        self.credential = cred_mock.return_value
        self.datadog_api_client = self.patch_path("tasks.task.AsyncApiClient", return_value=AsyncMockClient())
        self.datadog_logs_api = self.patch_path("tasks.task.LogsApi", return_value=AsyncMock())
        self.datadog_metrics_api = self.patch_path("tasks.task.MetricsApi", return_value=AsyncMock())
        self.env: dict[str, str] = {}
        task_env_mock = self.patch_path("tasks.task.environ", create=True)
        task_env_mock.get.side_effect = lambda k, default=None: self.env.get(k, default)
        env_env_mock = self.patch_path("config.env.environ", create=True)
        env_env_mock.get.side_effect = lambda k, default=None: self.env.get(k, default)


async def async_generator(*items: T) -> AsyncIterable[T]:
    for x in items:
        if isinstance(x, Exception):
            raise x
        yield x


def pager(*pages: Iterable[Any] | Exception) -> Mock:
    """A paged listing result as returned by the azure sdk list operations,
    an exception in place of a page is raised when that page is fetched"""
    return Mock(
        by_page=Mock(
            side_effect=lambda: async_generator(
                *(page if isinstance(page, Exception) else async_generator(*page) for page in pages)
            )
        )
    )


class UnexpectedException(Exception):
    """Testing for exceptions that we havent accounted for"""

    pass


class FakeHttpError(HttpResponseError):
    def __init__(self, status_code: int) -> None:
        self.status_code = status_code
        self.message = str({"code": f"something related to {self.status_code}"})

    reason = None
    error = None

    def __eq__(self, value: object) -> bool:
        return isinstance(value, FakeHttpError) and value.status_code == self.status_code


def mock(**kwargs: Any) -> Mock:
    m = Mock()
    for k, v in kwargs.items():
        setattr(m, k, v)
    return m


def identity(name: str, tags: dict[str, str] | None = None) -> Mock:
    return mock(
        name=name,
        id=f"/subscriptions/{SUB_ID1}/resourcegroups/{RESOURCE_GROUP}/providers/"
        f"microsoft.managedidentity/userassignedidentities/{name}",
        type="Microsoft.ManagedIdentity/userAssignedIdentities",
        tags=tags,
    )


def owned_identity(name: str) -> Mock:
    return identity(name, {OWNED_TAG_KEY: "owned"})


def AsyncMockClient(**kwargs: Any) -> AsyncMock:
    """An AsyncMock with the context manager methods set up to use as a client"""
    m = AsyncMock(**kwargs)
    m.__aenter__.return_value = m
    m.__aexit__.return_value = None
    return m
