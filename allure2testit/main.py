import asyncio
import json
import os
import sys
import click

from allure2testit.config import (
    ENV_RESULTS_DIR,
    ENV_URL,
    ENV_PRIVATE_TOKEN,
    ENV_PROJECT_ID,
    ENV_CONFIGURATION_ID,
    ENV_TEST_RUN_NAME,
)
from allure2testit.utils.logger import setup_logger
from allure2testit.core.reader import AllureResultsReader
from allure2testit.core.transformer import ResultTransformer
from allure2testit.core.uploader import AttachmentUploader
from allure2testit.core.client import TestItClient, normalize_url
from allure2testit.core.synchronizer import TestRunSynchronizer

USAGE = (
    "Usage: allure2testit <inputDir> <url> <token> <projectId> <configurationId> <testRunName>\n"
    "Example:\n"
    "allure2testit ./allure-results https://testit.example/ myPrivateToken "
    "123e4567-e89b-12d3-a456-426614174000 987e6543-e21b-43d3-b456-426614174000 \"Test Run 1\""
)


async def dry_run_import(records, input_dir, project_id, configuration_id, logger):
    """
    Translates every record and logs the payloads without calling the API.
    """
    transformer = ResultTransformer(project_id, configuration_id, AttachmentUploader(None, input_dir))

    for i, record in enumerate(records.values(), 1):
        logger.info(f"--- [DRY RUN] Processing test {i}/{len(records)}: {record.get('name')} ---")
        step_specs, step_results = await transformer.process_steps(record.get("steps"))
        autotest = transformer.build_autotest(record, step_specs)
        await transformer.uploader.upload_all(record.get("attachments") or [])
        result = transformer.build_test_result(record, step_results, [])
        logger.info(f"Autotest payload:\n{json.dumps(autotest, indent=2)}")
        logger.debug(f"Test result payload:\n{json.dumps(result, indent=2)}")


async def process_import(
    input_dir: str,
    url: str,
    token: str,
    project_id: str,
    configuration_id: str,
    test_run_name: str,
    dry_run: bool,
    insecure: bool,
    logger,
    allow_empty: bool = False
) -> bool:
    """
    Orchestrates the import process.
    """
    logger.info("Starting import with parameters:")
    logger.info(f"- Input directory: {input_dir}")
    logger.info(f"- TestIT URL: {url}")
    logger.info(f"- Project ID: {project_id}")
    logger.info(f"- Configuration ID: {configuration_id}")
    logger.info(f"- Test Run Name: {test_run_name}")

    try:
        reader = AllureResultsReader(input_dir, allow_empty=allow_empty)
        records = reader.read()
        logger.info(f"Found {len(records)} test results")

        if dry_run:
            await dry_run_import(records, input_dir, project_id, configuration_id, logger)
            logger.info(f"[DRY RUN] Would import {len(records)} test results into '{test_run_name}'")
            return True

        async with TestItClient(url, token, insecure=insecure) as client:
            uploader = AttachmentUploader(client, input_dir)
            transformer = ResultTransformer(project_id, configuration_id, uploader)
            synchronizer = TestRunSynchronizer(client, transformer, project_id, configuration_id, test_run_name)
            summary = await synchronizer.sync_all(records)

        # Summary
        logger.info("="*50)
        logger.info("Import Summary")
        logger.info("="*50)
        logger.info(f"Test run ID: {summary['test_run_id']}")
        logger.info(f"Total processed: {summary['total']}")
        logger.info(f"Autotests created: {summary['created']}")
        logger.info(f"Autotests updated: {summary['updated']}")
        logger.info("="*50)
        logger.info("Import completed successfully")

        return True

    except Exception as e:
        logger.critical(f"Fatal error during import: {e}")
        return False

@click.command()
@click.argument('input_dir', required=False, envvar=ENV_RESULTS_DIR)
@click.argument('url', required=False, envvar=ENV_URL)
@click.argument('token', required=False, envvar=ENV_PRIVATE_TOKEN)
@click.argument('project_id', required=False, envvar=ENV_PROJECT_ID)
@click.argument('configuration_id', required=False, envvar=ENV_CONFIGURATION_ID)
@click.argument('test_run_name', required=False, envvar=ENV_TEST_RUN_NAME)
@click.option('--dry-run', '-d', is_flag=True, help='Translate results without calling the API')
@click.option('--verbose', '-v', is_flag=True, help='Verbose logging')
@click.option('--insecure', '-k', is_flag=True, help='Disable SSL certificate verification')
def main(input_dir, url, token, project_id, configuration_id, test_run_name, dry_run, verbose, insecure):
    """
    Import Allure results into Test IT.
    """
    if not all([input_dir, url, token, project_id, configuration_id, test_run_name]):
        click.echo(USAGE, err=True)
        sys.exit(1)

    logger = setup_logger(verbose=verbose)

    if insecure:
        logger.warning("SSL certificate verification disabled!")

    success = asyncio.run(process_import(
        os.path.abspath(input_dir),
        normalize_url(url),
        token,
        project_id,
        configuration_id,
        test_run_name,
        dry_run,
        insecure,
        logger
    ))

    sys.exit(0 if success else 1)

if __name__ == '__main__':
    main()
