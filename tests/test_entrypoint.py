import os
import unittest
from unittest import mock

from tutor_proxy import __main__ as entrypoint


class RunTest(unittest.TestCase):
    def test_uvicorn_exits_without_draining_by_default(self):
        with mock.patch.dict(os.environ, {"PORT": "4321", "UPSTREAM_API_KEY": "k"}, clear=True):
            with mock.patch.object(entrypoint.uvicorn, "run") as run:
                entrypoint.run()

        run.assert_called_once()
        kwargs = run.call_args.kwargs
        self.assertEqual(kwargs["port"], 4321)
        self.assertEqual(kwargs["timeout_graceful_shutdown"], 0)
        self.assertIsNone(kwargs["log_config"])

    def test_shutdown_timeout_is_configurable(self):
        with mock.patch.dict(os.environ, {"SHUTDOWN_TIMEOUT": "5"}, clear=True):
            with mock.patch.object(entrypoint.uvicorn, "run") as run:
                entrypoint.run()

        self.assertEqual(run.call_args.kwargs["timeout_graceful_shutdown"], 5)
