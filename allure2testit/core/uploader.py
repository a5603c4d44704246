import logging
from pathlib import Path
from typing import Dict, Any, List, Optional

from allure2testit.core.client import TestItClient

class AttachmentUploader:
    """
    Uploads Allure attachments referenced by results and steps.

    Missing or empty files are skipped with a warning; upload failures
    propagate and abort the import.
    """
    def __init__(self, client: Optional[TestItClient], input_dir: str):
        # No client means dry run: files are checked but never sent
        self.client = client
        self.input_dir = Path(input_dir)
        self.logger = logging.getLogger("allure2testit.uploader")

    def _read(self, source: Optional[str]) -> Optional[bytes]:
        if not source:
            self.logger.warning("Attachment without source, skipping")
            return None

        file_path = self.input_dir / source
        if not file_path.is_file():
            self.logger.warning(f"Attachment file not found: {file_path}")
            return None

        content = file_path.read_bytes()
        if not content:
            self.logger.warning(f"Empty attachment: {file_path}")
            return None
        return content

    async def upload_all(self, attachments: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """
        Uploads attachments in declaration order and returns their references.
        """
        refs = []
        for attachment in attachments:
            source = attachment.get("source")
            content = self._read(source)
            if content is None:
                continue

            if self.client is None:
                self.logger.info(f"[DRY RUN] Would upload attachment: {source}")
                continue

            self.logger.info(f"Uploading attachment: {source}")
            response = await self.client.upload_attachment(source, content, attachment.get("type"))
            refs.append({"id": response["id"]})
        return refs
