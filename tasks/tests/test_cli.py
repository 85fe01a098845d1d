# Unless explicitly stated otherwise all files in this repository are licensed under the Apache-2 License.
#
# This product includes software developed at Datadog (https://www.datadoghq.com/) Copyright 2025 Datadog, Inc.

# stdlib
from os import environ
from typing import Any
from unittest import TestCase
from unittest.mock import MagicMock, Mock, patch

# project
from config.options import DeleteOptions
from tasks.cli import main
from tasks.common import DeletionError
from tasks.delete_task import DeleteTask
from tasks.tests.common import SUB_ID1

REQUIRED_ARGS = ["delete", "--name", "cluster1", "--region", "eastus", "--subscription-id", SUB_ID1]


class TestCli(TestCase):
    def setUp(self) -> None:
        self.asyncio_run = self.patch_path("tasks.cli.run")
        self.task_main = self.patch_path("tasks.cli.task_main", new_callable=MagicMock)
        self.configure_logging = self.patch_path("tasks.cli.configure_logging")
        env = patch.dict(environ, {}, clear=True)
        env.start()
        self.addCleanup(env.stop)

    def patch_path(self, path: str, **kwargs: Any) -> MagicMock:
        p = patch(path, **kwargs)
        self.addCleanup(p.stop)
        return p.start()

    def options(self) -> DeleteOptions:
        self.task_main.assert_called_once()
        task_class, options = self.task_main.call_args.args
        self.assertIs(task_class, DeleteTask)
        self.asyncio_run.assert_called_once_with(self.task_main.return_value)
        return options

    def test_delete_defaults(self):
        main(REQUIRED_ARGS)
        self.assertEqual(
            self.options(),
            DeleteOptions(
                name="cluster1",
                region="eastus",
                subscription_id=SUB_ID1,
                oidc_resource_group_name="cluster1-oidc",
                storage_account_name="cluster1",
                delete_oidc_resource_group=False,
                dry_run=False,
                polling_interval=10,
                deadline=None,
            ),
        )
        self.configure_logging.assert_called_once_with()

    def test_delete_all_flags(self):
        main(
            [
                *REQUIRED_ARGS,
                "--delete-oidc-resource-group",
                "--storage-account-name",
                "mystorage",
                "--oidc-resource-group-name",
                "my-rg",
                "--dry-run",
                "--polling-interval",
                "3",
                "--deadline",
                "900",
            ]
        )
        options = self.options()
        self.assertTrue(options.delete_oidc_resource_group)
        self.assertTrue(options.dry_run)
        self.assertEqual(options.storage_account_name, "mystorage")
        self.assertEqual(options.oidc_resource_group_name, "my-rg")
        self.assertEqual(options.polling_interval, 3)
        self.assertEqual(options.deadline, 900)

    def test_polling_settings_from_environment(self):
        environ.update({"POLLING_INTERVAL_SECONDS": "30", "DELETE_DEADLINE_SECONDS": "7200"})
        main(REQUIRED_ARGS)
        options = self.options()
        self.assertEqual(options.polling_interval, 30)
        self.assertEqual(options.deadline, 7200)

    def test_missing_required_flag_is_usage_error(self):
        with patch("sys.stderr", new=Mock()), self.assertRaises(SystemExit) as ctx:
            main(["delete", "--name", "cluster1", "--region", "eastus"])
        self.assertEqual(ctx.exception.code, 2)
        self.asyncio_run.assert_not_called()

    def test_invalid_storage_account_name_exits_before_any_call(self):
        with self.assertLogs("tasks.cli", level="ERROR") as ctx, self.assertRaises(SystemExit) as exit_ctx:
            main([*REQUIRED_ARGS, "--storage-account-name", "Not-Valid"])
        self.assertEqual(exit_ctx.exception.code, 1)
        self.assertIn("Invalid storage account name 'Not-Valid'", ctx.output[0])
        self.task_main.assert_not_called()
        self.asyncio_run.assert_not_called()

    def test_task_failure_exits_non_zero(self):
        self.asyncio_run.side_effect = DeletionError("Failed to delete storage account cluster1")
        with self.assertLogs("tasks.cli", level="ERROR") as ctx, self.assertRaises(SystemExit) as exit_ctx:
            main(REQUIRED_ARGS)
        self.assertEqual(exit_ctx.exception.code, 1)
        self.assertEqual(ctx.output, ["ERROR:tasks.cli:Failed to delete storage account cluster1"])
