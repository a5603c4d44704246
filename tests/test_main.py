import unittest
import json
import logging
import tempfile
from pathlib import Path
from unittest import mock
from aiohttp import web
from aiohttp.test_utils import TestServer
from click.testing import CliRunner
from allure2testit.main import main, process_import

RESULT = {
    "historyId": "h1",
    "name": "Test A",
    "start": 1000,
    "stop": 2000,
    "status": "passed",
    "labels": [{"name": "testClass", "value": "LoginTests"}],
    "steps": [{
        "name": "Step 1", "start": 1000, "stop": 1500, "status": "passed",
        "attachments": [{"source": "step-attachment.txt", "type": "text/plain"}],
        "parameters": [{"name": "user", "value": "alice"}]
    }],
    "statusDetails": {"message": "", "trace": ""},
}

class TestCli(unittest.TestCase):
    def setUp(self):
        self.test_dir = tempfile.TemporaryDirectory()
        self.dir_path = Path(self.test_dir.name)
        with open(self.dir_path / "a-result.json", "w", encoding="utf-8") as f:
            json.dump(RESULT, f)
        patcher = mock.patch("allure2testit.main.setup_logger",
                             return_value=logging.getLogger("allure2testit.cli-test"))
        patcher.start()
        self.addCleanup(patcher.stop)

    def tearDown(self):
        self.test_dir.cleanup()

    def test_missing_arguments_prints_usage(self):
        result = CliRunner().invoke(main, [str(self.dir_path), "https://testit.example"])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Usage: allure2testit <inputDir> <url> <token>", result.output)

    def test_dry_run(self):
        args = [str(self.dir_path), "https://testit.example", "token", "project-1", "config-1", "Run 1", "--dry-run"]
        result = CliRunner().invoke(main, args)
        self.assertEqual(result.exit_code, 0)

    def test_arguments_from_environment(self):
        env = {
            "ALLURE_RESULTS_DIR": str(self.dir_path),
            "TESTIT_URL": "https://testit.example",
            "TESTIT_PRIVATE_TOKEN": "env-token",
            "TESTIT_PROJECT_ID": "project-1",
            "TESTIT_CONFIGURATION_ID": "config-1",
            "TESTIT_TEST_RUN_NAME": "Run 1",
        }
        with mock.patch("allure2testit.main.process_import", new=mock.AsyncMock(return_value=True)) as run:
            result = CliRunner(env=env).invoke(main, [])

        self.assertEqual(result.exit_code, 0)
        self.assertEqual(run.call_args[0][2], "env-token")
        self.assertEqual(run.call_args[0][5], "Run 1")

    def test_normalizes_arguments(self):
        args = ["relative-results", "https://testit.example", "token", "project-1", "config-1", "Run 1", "-k"]
        with mock.patch("allure2testit.main.process_import", new=mock.AsyncMock(return_value=True)) as run:
            result = CliRunner().invoke(main, args)

        self.assertEqual(result.exit_code, 0)
        call_args = run.call_args[0]
        self.assertTrue(Path(call_args[0]).is_absolute())
        self.assertEqual(call_args[1], "https://testit.example/")
        self.assertTrue(call_args[7])

    def test_failure_exit_code(self):
        args = [str(self.dir_path / "missing"), "https://testit.example", "token", "project-1", "config-1", "Run 1"]
        result = CliRunner().invoke(main, args)
        self.assertEqual(result.exit_code, 1)

class TestProcessImport(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.test_dir = tempfile.TemporaryDirectory()
        self.dir_path = Path(self.test_dir.name)
        with open(self.dir_path / "a-result.json", "w", encoding="utf-8") as f:
            json.dump(RESULT, f)
        (self.dir_path / "step-attachment.txt").write_bytes(b"step log")

        self.calls = []
        self.fail_results = False
        app = web.Application()
        app.router.add_post("/api/v2/testRuns/search", self.search_runs)
        app.router.add_post("/api/v2/testRuns", self.create_run)
        app.router.add_post("/api/v2/autoTests/search", self.search_autotests)
        app.router.add_post("/api/v2/autoTests", self.create_autotest)
        app.router.add_post("/api/v2/testRuns/{run_id}/testResults", self.add_results)
        app.router.add_post("/api/v2/attachments", self.upload)
        self.server = TestServer(app)
        await self.server.start_server()
        self.url = str(self.server.make_url("/"))
        self.logger = logging.getLogger("allure2testit.e2e-test")

    async def asyncTearDown(self):
        await self.server.close()
        self.test_dir.cleanup()

    async def search_runs(self, request):
        self.calls.append(("search_runs", await request.json()))
        return web.json_response([])

    async def create_run(self, request):
        self.calls.append(("create_run", await request.json()))
        return web.json_response({"id": "run-1"})

    async def search_autotests(self, request):
        self.calls.append(("search_autotests", await request.json()))
        return web.json_response([])

    async def create_autotest(self, request):
        self.calls.append(("create_autotest", await request.json()))
        return web.json_response({"id": "auto-1"}, status=201)

    async def add_results(self, request):
        self.calls.append(("add_results", request.match_info["run_id"], await request.json()))
        if self.fail_results:
            return web.Response(status=500, text="boom")
        return web.json_response(["result-1"])

    async def upload(self, request):
        await request.post()
        self.calls.append(("upload",))
        return web.json_response({"id": "att-1"})

    async def run_import(self):
        return await process_import(
            str(self.dir_path), self.url, "token", "project-1", "config-1", "Run 1",
            False, False, self.logger
        )

    async def test_end_to_end(self):
        self.assertTrue(await self.run_import())

        self.assertEqual([c[0] for c in self.calls], [
            "search_runs", "create_run", "search_autotests", "upload", "create_autotest", "add_results",
        ])
        create_payload = self.calls[4][1]
        self.assertEqual(create_payload["steps"], [{"title": "Step 1", "steps": []}])
        self.assertEqual(create_payload["classname"], "LoginTests")

        _, run_id, results = self.calls[5]
        self.assertEqual(run_id, "run-1")
        self.assertEqual(len(results), 1)
        self.assertEqual(results[0]["outcome"], "Passed")
        self.assertEqual(results[0]["duration"], 1000)
        step = results[0]["stepResults"][0]
        self.assertEqual(step["title"], "Step 1")
        self.assertEqual(step["outcome"], "Passed")
        self.assertEqual(step["duration"], 500)
        self.assertEqual(step["parameters"], {"user": "alice"})
        self.assertEqual(step["attachments"], [{"id": "att-1"}])

    async def test_remote_failure_returns_false(self):
        self.fail_results = True
        with self.assertLogs("allure2testit", level="ERROR"):
            self.assertFalse(await self.run_import())

if __name__ == '__main__':
    unittest.main()
