from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError


# Environment variable names for convenience configuration
ENV_BUCKET = "TASK_BUCKET"
ENV_PREFIX = "TASK_PREFIX"

# Backward-compatible fallback (legacy binding name)
FALLBACK_ENV_BUCKET = "COUNTER_STORAGE_BUCKET"

DEFAULT_PREFIX = "tasks/"


class TaskStoreError(RuntimeError):
    """Raised when S3 rejects or fails a task store operation."""


@dataclass
class S3Location:
    bucket: str
    prefix: str

    def key_for(self, name: str) -> str:
        return f"{self.prefix}{name}"

    def name_for(self, key: str) -> str:
        return key[len(self.prefix):] if key.startswith(self.prefix) else key


class S3TaskStore:
    """
    S3-backed key-value store for task timestamps.

    Usage
    - One object per task: key = `{prefix}{task name}`, body = UTF-8 ISO-8601
      timestamp.
    - `list_tasks()` returns task names in S3 key order.
    - `get(name)` returns the stored value or None when the object is absent.
    - `put(name, value)` overwrites; `delete(name)` is idempotent.
    - Every S3/botocore failure surfaces as `TaskStoreError`.

    Environment variables (optional)
    - `TASK_BUCKET`: S3 bucket (fallback `COUNTER_STORAGE_BUCKET`)
    - `TASK_PREFIX`: key prefix, default `tasks/`
    """

    def __init__(
        self,
        *,
        s3: Optional[object] = None,
        bucket: str,
        prefix: str = DEFAULT_PREFIX,
        region_name: Optional[str] = None,
    ) -> None:
        self._s3 = s3 or boto3.client("s3", region_name=region_name)
        self._loc = S3Location(bucket=bucket, prefix=prefix)

    # -------- Construction helpers --------
    @classmethod
    def from_env(cls) -> "S3TaskStore":
        bucket = os.environ.get(ENV_BUCKET) or os.environ.get(FALLBACK_ENV_BUCKET)
        if not bucket:
            raise RuntimeError(
                f"Missing required environment variable for S3 task store: {ENV_BUCKET}"
            )
        prefix = os.environ.get(ENV_PREFIX)
        return cls(bucket=bucket, prefix=DEFAULT_PREFIX if prefix is None else prefix)

    # -------- Core operations --------
    def list_tasks(self) -> List[str]:
        """Return every stored task name, following ListObjectsV2 pagination."""
        names: List[str] = []
        kwargs = {"Bucket": self._loc.bucket, "Prefix": self._loc.prefix}
        try:
            while True:
                resp = self._s3.list_objects_v2(**kwargs)
                for obj in resp.get("Contents", []) or []:
                    name = self._loc.name_for(obj["Key"])
                    if name:
                        names.append(name)
                if not resp.get("IsTruncated"):
                    break
                kwargs["ContinuationToken"] = resp["NextContinuationToken"]
        except (ClientError, BotoCoreError) as e:
            raise TaskStoreError(f"Failed to list tasks: {e}") from e
        return names

    def get(self, name: str) -> Optional[str]:
        try:
            resp = self._s3.get_object(Bucket=self._loc.bucket, Key=self._loc.key_for(name))
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code")
            if code in ("NoSuchKey", "404"):
                return None
            raise TaskStoreError(f"Failed to read task {name!r}: {e}") from e
        except BotoCoreError as e:
            raise TaskStoreError(f"Failed to read task {name!r}: {e}") from e

        body = resp["Body"].read()
        try:
            return body.decode("utf-8")
        except UnicodeDecodeError as ex:
            raise TaskStoreError(f"Stored value for task {name!r} is not UTF-8") from ex

    def put(self, name: str, value: str) -> None:
        try:
            self._s3.put_object(
                Bucket=self._loc.bucket,
                Key=self._loc.key_for(name),
                Body=value.encode("utf-8"),
                ContentType="text/plain; charset=utf-8",
            )
        except (ClientError, BotoCoreError) as e:
            raise TaskStoreError(f"Failed to write task {name!r}: {e}") from e

    def delete(self, name: str) -> None:
        try:
            self._s3.delete_object(Bucket=self._loc.bucket, Key=self._loc.key_for(name))
        except (ClientError, BotoCoreError) as e:
            raise TaskStoreError(f"Failed to delete task {name!r}: {e}") from e
