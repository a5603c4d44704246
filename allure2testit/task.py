import asyncio
import os
import sys
import click
from typing import Dict, Any, Mapping

from allure2testit.config import (
    TASK_INPUT_REPORTS_FOLDER,
    TASK_INPUT_PROJECT_ID,
    TASK_INPUT_CONFIGURATION_ID,
    TASK_INPUT_TEST_RUN_NAME,
    TASK_INPUT_DISABLE_TLS_CHECK,
    TASK_INPUT_CONNECTED_SERVICE,
)
from allure2testit.utils.logger import setup_logger
from allure2testit.core.client import normalize_url
from allure2testit.main import process_import


# Azure Pipelines exposes task inputs and service connections to the process
# as environment variables; these helpers read them the same way the task library does.

def get_input(environ: Mapping[str, str], name: str) -> str:
    return environ.get("INPUT_" + name.replace(" ", "_").upper(), "").strip()


def get_bool_input(environ: Mapping[str, str], name: str) -> bool:
    return get_input(environ, name).upper() == "TRUE"


def get_endpoint_url(environ: Mapping[str, str], endpoint_id: str) -> str:
    return environ.get(f"ENDPOINT_URL_{endpoint_id}", "")


def get_endpoint_auth_parameter(environ: Mapping[str, str], endpoint_id: str, key: str) -> str:
    return environ.get(f"ENDPOINT_AUTH_PARAMETER_{endpoint_id}_{key.upper()}", "")


def read_task_inputs(environ: Mapping[str, str]) -> Dict[str, Any]:
    """
    Collects the import parameters from the task inputs and the Test IT service connection.
    """
    endpoint_id = get_input(environ, TASK_INPUT_CONNECTED_SERVICE)
    return {
        "input_dir": get_input(environ, TASK_INPUT_REPORTS_FOLDER),
        "url": get_endpoint_url(environ, endpoint_id) if endpoint_id else "",
        "token": get_endpoint_auth_parameter(environ, endpoint_id, "password") if endpoint_id else "",
        "project_id": get_input(environ, TASK_INPUT_PROJECT_ID),
        "configuration_id": get_input(environ, TASK_INPUT_CONFIGURATION_ID),
        "test_run_name": get_input(environ, TASK_INPUT_TEST_RUN_NAME),
        "insecure": get_bool_input(environ, TASK_INPUT_DISABLE_TLS_CHECK),
    }


def set_result(succeeded: bool, message: str) -> None:
    """Reports the task outcome through the pipeline logging command."""
    result = "Succeeded" if succeeded else "Failed"
    click.echo(f"##vso[task.complete result={result};]{message}")


@click.command()
@click.option('--verbose', '-v', is_flag=True, help='Verbose logging')
def main(verbose):
    """
    Azure Pipelines task: import Allure results into Test IT.
    """
    logger = setup_logger(verbose=verbose)
    inputs = read_task_inputs(os.environ)

    if not inputs["url"] or not inputs["token"]:
        set_result(False, "Check Test It service connection")
        sys.exit(1)

    if inputs["insecure"]:
        logger.warning("SSL certificate verification disabled!")

    success = asyncio.run(process_import(
        inputs["input_dir"],
        normalize_url(inputs["url"]),
        inputs["token"],
        inputs["project_id"],
        inputs["configuration_id"],
        inputs["test_run_name"],
        False,
        inputs["insecure"],
        logger,
        allow_empty=True
    ))

    if success:
        set_result(True, "Task completed")
        sys.exit(0)

    set_result(False, "Import of Allure results failed")
    sys.exit(1)

if __name__ == '__main__':
    main()
