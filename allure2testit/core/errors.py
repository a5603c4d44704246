class MigrationError(Exception):
    """Base error for the Allure to Test IT import."""


class NotFoundError(MigrationError):
    """Raised when the Allure results directory does not exist."""


class NoResultsError(MigrationError):
    """Raised when no parseable result files were found."""


class RemoteCallFailedError(MigrationError):
    """
    Raised when the Test IT API answers with a non-2xx status.
    """
    def __init__(self, status: int, body: str, url: str):
        self.status = status
        self.body = body
        self.url = url
        super().__init__(f"API returned {status} for {url}")
