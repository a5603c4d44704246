import logging
from typing import Dict, List, Any, Optional, Tuple

from allure2testit.config import LABEL_FIELD_MAPPING
from allure2testit.core.normalizer import status_to_outcome, convert_timestamp, compute_duration
from allure2testit.core.uploader import AttachmentUploader

class ResultTransformer:
    """
    Transforms Allure result records into Test IT API payloads.
    """
    def __init__(self, project_id: str, configuration_id: str, uploader: AttachmentUploader):
        self.project_id = project_id
        self.configuration_id = configuration_id
        self.uploader = uploader
        self.logger = logging.getLogger("allure2testit.transformer")

    @staticmethod
    def labels_to_dict(labels: Optional[List[Dict[str, Any]]]) -> Dict[str, Any]:
        return {label.get("name"): label.get("value") for label in labels or []}

    @staticmethod
    def parameters_to_dict(parameters: Optional[List[Dict[str, Any]]]) -> Dict[str, Any]:
        # Later duplicates overwrite earlier ones
        return {param.get("name"): param.get("value") for param in parameters or []}

    async def process_steps(self, steps: Optional[List[Dict[str, Any]]]) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
        """
        Walks the Allure step tree and returns parallel lists of step specs
        (structure only) and step results (outcome, timing, parameters, attachments).
        Unnamed steps are dropped together with their subtree.
        """
        step_specs = []
        step_results = []

        for step in steps or []:
            name = step.get("name")
            if not name:
                self.logger.debug("Skipping unnamed step")
                continue

            inner_specs, inner_results = await self.process_steps(step.get("steps"))

            step_specs.append({
                "title": name,
                "steps": inner_specs,
            })
            step_results.append({
                "title": name,
                "stepResults": inner_results,
                "outcome": status_to_outcome(step.get("status")),
                "duration": compute_duration(step.get("start"), step.get("stop")),
                "parameters": self.parameters_to_dict(step.get("parameters")),
                "attachments": await self.uploader.upload_all(step.get("attachments") or []),
            })

        return step_specs, step_results

    def build_autotest(self, record: Dict[str, Any], step_specs: List[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Constructs the autotest definition shared by create and update calls.
        """
        payload = {
            "externalId": record.get("historyId"),
            "projectId": self.project_id,
            "name": record.get("name"),
            "steps": step_specs,
        }

        labels = self.labels_to_dict(record.get("labels"))
        for label_name, api_key in LABEL_FIELD_MAPPING.items():
            payload[api_key] = labels.get(label_name)

        return payload

    def build_autotest_update(self, autotest_id: Any, autotest: Dict[str, Any]) -> Dict[str, Any]:
        # Updates only replace the definition, execution fields are not resent
        return {"id": autotest_id, **autotest}

    def build_autotest_create(
        self,
        record: Dict[str, Any],
        autotest: Dict[str, Any],
        step_results: List[Dict[str, Any]]
    ) -> Dict[str, Any]:
        return {
            "configurationId": self.configuration_id,
            **autotest,
            **self._execution_fields(record),
            "stepResults": step_results,
        }

    def build_test_result(
        self,
        record: Dict[str, Any],
        step_results: List[Dict[str, Any]],
        attachments: List[Dict[str, Any]]
    ) -> Dict[str, Any]:
        """
        Constructs the test result appended to the test run.
        """
        status_details = record.get("statusDetails") or {}
        return {
            "configurationId": self.configuration_id,
            "autoTestExternalId": record.get("historyId"),
            **self._execution_fields(record),
            "stepResults": step_results,
            "attachments": attachments,
            "message": status_details.get("message"),
            "trace": status_details.get("trace"),
        }

    def _execution_fields(self, record: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "duration": compute_duration(record.get("start"), record.get("stop")),
            "startedOn": convert_timestamp(record.get("start")),
            "completedOn": convert_timestamp(record.get("stop")),
            "outcome": status_to_outcome(record.get("status")),
        }
