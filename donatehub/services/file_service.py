import logging
import os
import uuid

import requests
from werkzeug.utils import secure_filename

from donatehub.utils.exceptions import InvalidArgumentError, ServiceError

ALLOWED_IMAGE_EXTENSIONS = {"png", "jpg", "jpeg", "gif", "webp"}


class FileService:
    """Uploads images to object storage, or to the local uploads folder."""

    def __init__(self, config, logger=None):
        self.config = config
        self.log = logger or logging.getLogger(__name__)

    def upload_file(self, file, folder):
        if not file or not file.filename:
            return None

        filename = secure_filename(file.filename)
        ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
        if ext not in ALLOWED_IMAGE_EXTENSIONS:
            raise InvalidArgumentError(
                "Unsupported image type",
                code="INVALID_FILE",
                details={"filename": file.filename},
            )
        unique_name = f"{uuid.uuid4().hex}_{filename}"

        upload_url = self.config.get("STORAGE_UPLOAD_URL")
        if upload_url:
            return self._upload_remote(upload_url, file, folder, unique_name)
        return self._save_local(file, folder, unique_name)

    def _upload_remote(self, upload_url, file, folder, unique_name):
        headers = {}
        if self.config.get("STORAGE_API_KEY"):
            headers["Authorization"] = f"Bearer {self.config['STORAGE_API_KEY']}"
        try:
            res = requests.post(
                upload_url,
                files={"file": (unique_name, file.stream, file.mimetype)},
                data={"folder": folder},
                headers=headers,
                timeout=30,
            )
            res.raise_for_status()
            url = res.json().get("url")
        except (requests.RequestException, ValueError) as e:
            self.log.error("Upload of %s to storage failed: %s", unique_name, e)
            raise ServiceError("UPLOAD_FAILED", "Could not upload file", status=502)
        if not url:
            raise ServiceError("UPLOAD_FAILED", "Storage did not return a URL", status=502)
        self.log.info("Uploaded %s to %s", unique_name, url)
        return url

    def _save_local(self, file, folder, unique_name):
        root = self.config.get("UPLOADS_FOLDER")
        target_dir = os.path.join(root, folder)
        os.makedirs(target_dir, exist_ok=True)
        file.save(os.path.join(target_dir, unique_name))
        self.log.info("Saved %s under %s", unique_name, target_dir)
        return f"/uploads/{folder}/{unique_name}"
