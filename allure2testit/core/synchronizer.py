import asyncio
import logging
from typing import Dict, Any, Optional

from allure2testit.core.client import TestItClient
from allure2testit.core.transformer import ResultTransformer

class TestRunSynchronizer:
    """
    Replays Allure results into a single Test IT test run.

    The run is resolved once per invocation; every record then upserts its
    autotest by external id and appends one result to that run.
    """
    __test__ = False

    def __init__(
        self,
        client: TestItClient,
        transformer: ResultTransformer,
        project_id: str,
        configuration_id: str,
        test_run_name: str
    ):
        self.client = client
        self.transformer = transformer
        self.project_id = project_id
        self.configuration_id = configuration_id
        self.test_run_name = test_run_name
        self.logger = logging.getLogger("allure2testit.synchronizer")
        self._test_run_id: Optional[str] = None
        self._run_lock = asyncio.Lock()

    async def resolve_test_run(self) -> str:
        """
        Finds the test run with the exact configured name or creates it.
        The id is assigned once and reused for the rest of the invocation.
        """
        async with self._run_lock:
            if self._test_run_id is not None:
                return self._test_run_id

            runs = await self.client.search_test_runs(self.project_id, self.test_run_name)
            matching = next((run for run in runs if run.get("name") == self.test_run_name), None)

            if matching:
                self._test_run_id = matching["id"]
                self.logger.info(f"Using existing test run with ID: {self._test_run_id}")
            else:
                self.logger.info("Creating new test run")
                created = await self.client.create_test_run(self.project_id, self.test_run_name)
                self._test_run_id = created["id"]
                self.logger.info(f"Created test run with ID: {self._test_run_id}")

            return self._test_run_id

    async def sync_record(self, record: Dict[str, Any]) -> str:
        """
        Creates or updates the autotest for one record and appends its result.
        Returns "created" or "updated".
        """
        test_run_id = await self.resolve_test_run()
        history_id = record.get("historyId")

        matches = await self.client.search_autotests(self.project_id, history_id)

        step_specs, step_results = await self.transformer.process_steps(record.get("steps"))
        autotest = self.transformer.build_autotest(record, step_specs)

        if matches:
            # First match wins if the external id is not unique remotely
            autotest_id = matches[0]["id"]
            self.logger.info(f"Updating existing autotest (ID: {autotest_id})")
            await self.client.update_autotest(self.transformer.build_autotest_update(autotest_id, autotest))
            action = "updated"
        else:
            self.logger.info("Creating new autotest")
            await self.client.create_autotest(
                self.transformer.build_autotest_create(record, autotest, step_results)
            )
            action = "created"

        self.logger.info("Adding test result to test run")
        attachments = await self.transformer.uploader.upload_all(record.get("attachments") or [])
        await self.client.add_test_results(test_run_id, [
            self.transformer.build_test_result(record, step_results, attachments)
        ])
        return action

    async def sync_all(self, records: Dict[str, Dict[str, Any]]) -> Dict[str, Any]:
        """
        Processes every record sequentially in loader order.
        The first failing call propagates; nothing already sent is rolled back.
        """
        test_run_id = await self.resolve_test_run()

        summary = {"test_run_id": test_run_id, "total": len(records), "created": 0, "updated": 0}
        for i, record in enumerate(records.values(), 1):
            self.logger.info(f"Processing test {i}/{len(records)}: {record.get('name')}")
            action = await self.sync_record(record)
            summary[action] += 1

        return summary
