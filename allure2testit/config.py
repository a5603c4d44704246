from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# --- Test IT Configuration ---
# Environment variables backing the CLI positional arguments
ENV_RESULTS_DIR = "ALLURE_RESULTS_DIR"
ENV_URL = "TESTIT_URL"
ENV_PRIVATE_TOKEN = "TESTIT_PRIVATE_TOKEN"
ENV_PROJECT_ID = "TESTIT_PROJECT_ID"
ENV_CONFIGURATION_ID = "TESTIT_CONFIGURATION_ID"
ENV_TEST_RUN_NAME = "TESTIT_TEST_RUN_NAME"

# Authorization header scheme expected by the Test IT API
AUTH_SCHEME = "PrivateToken"

# --- Test IT API Endpoints ---
# Relative to the normalized base URL (which always ends with "/")
TEST_RUNS_SEARCH_PATH = "api/v2/testRuns/search"
TEST_RUNS_PATH = "api/v2/testRuns"
TEST_RUN_RESULTS_PATH = "api/v2/testRuns/{run_id}/testResults"
AUTOTESTS_SEARCH_PATH = "api/v2/autoTests/search"
AUTOTESTS_PATH = "api/v2/autoTests"
ATTACHMENTS_PATH = "api/v2/attachments"

# --- File Configuration ---
RESULT_FILE_SUFFIX = "-result.json"

# --- Allure Label Mapping ---
# Map Allure label names to the autotest fields the API expects
LABEL_FIELD_MAPPING = {
    "testClass": "classname",
    "package": "namespace",
}

# --- Azure Pipelines Task Inputs ---
TASK_INPUT_REPORTS_FOLDER = "allureReportsFolder"
TASK_INPUT_PROJECT_ID = "projectId"
TASK_INPUT_CONFIGURATION_ID = "configurationId"
TASK_INPUT_TEST_RUN_NAME = "testRunName"
TASK_INPUT_DISABLE_TLS_CHECK = "disableNodeTlsCheck"
TASK_INPUT_CONNECTED_SERVICE = "testItConnectedService"
