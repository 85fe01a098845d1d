# Unless explicitly stated otherwise all files in this repository are licensed under the Apache-2 License.
#
# This product includes software developed at Datadog (https://www.datadoghq.com/) Copyright 2025 Datadog, Inc.

# stdlib
from collections.abc import Mapping
from datetime import datetime
from logging import getLogger
from typing import Any, Final, NamedTuple

# 3p
from jsonschema import ValidationError, validate

log = getLogger(__name__)

METRIC_PREFIX = "azure.oidc_cleanup."

OIDC_RESOURCE_GROUP_SUFFIX: Final = "-oidc"

# Tag stamped on every resource created during provisioning.
# Key: "openshift.io_cloud-credential-operator_<name>", Value: "owned"
OWNED_TAG_KEY_PREFIX: Final = "openshift.io_cloud-credential-operator"
OWNED_TAG_VALUE: Final = "owned"

STORAGE_ACCOUNT_NAME_MIN_LENGTH: Final = 3
STORAGE_ACCOUNT_NAME_MAX_LENGTH: Final = 24

# https://learn.microsoft.com/en-us/azure/azure-resource-manager/management/resource-name-rules#microsoftstorage
STORAGE_ACCOUNT_NAME_SCHEMA: dict[str, Any] = {
    "type": "string",
    "minLength": STORAGE_ACCOUNT_NAME_MIN_LENGTH,
    "maxLength": STORAGE_ACCOUNT_NAME_MAX_LENGTH,
    # \Z rather than $, which also matches before a trailing newline
    "pattern": r"^[a-z0-9]+\Z",
}


class IdentityCleanupError(Exception):
    """Base class for every error which should stop the cleanup"""


class ConfigurationError(IdentityCleanupError):
    pass


class InvalidStorageAccountNameError(ConfigurationError):
    def __init__(self, storage_account_name: str) -> None:
        super().__init__(
            f"Invalid storage account name {storage_account_name!r}: Azure storage account names must be between "
            f"{STORAGE_ACCOUNT_NAME_MIN_LENGTH} and {STORAGE_ACCOUNT_NAME_MAX_LENGTH} characters in length "
            "and may contain numbers and lowercase letters only"
        )
        self.storage_account_name = storage_account_name


class AuthenticationError(IdentityCleanupError):
    pass


class DiscoveryError(IdentityCleanupError):
    pass


class DeletionError(IdentityCleanupError):
    pass


class PollError(IdentityCleanupError):
    pass


class ManagedIdentityRecord(NamedTuple):
    name: str
    id: str
    type: str
    tags: dict[str, str]


def get_oidc_resource_group_name(name: str, override: str = "") -> str:
    if override:
        return override
    resource_group = name + OIDC_RESOURCE_GROUP_SUFFIX
    log.info("No --oidc-resource-group-name provided, defaulting OIDC resource group name to %s", resource_group)
    return resource_group


def get_storage_account_name(name: str, override: str = "") -> str:
    if override:
        return override
    log.info("No --storage-account-name provided, defaulting storage account name to %s", name)
    return name


def validate_storage_account_name(storage_account_name: str) -> None:
    try:
        validate(instance=storage_account_name, schema=STORAGE_ACCOUNT_NAME_SCHEMA)
    except ValidationError as e:
        raise InvalidStorageAccountNameError(storage_account_name) from e


def get_owned_tag_key(name: str) -> str:
    return f"{OWNED_TAG_KEY_PREFIX}_{name}"


def is_owned(tags: Mapping[str, str] | None, owned_tag_key: str) -> bool:
    """Whether the tags mark the resource as created by a previous provisioning run for the same name"""
    return (tags or {}).get(owned_tag_key) == OWNED_TAG_VALUE


def dry_run_of(s: str) -> str:
    msg = s[0].lower() + s[1:]
    return f"DRY RUN | Would be {msg}"


def now() -> str:
    """Return the current time in ISO format"""
    return datetime.now().isoformat()
