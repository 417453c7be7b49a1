#!/usr/bin/env python3
# CUI // SP-PROPIN
"""Object storage for uploaded RFP files and archived response documents.

Both backends are bound to a single documents bucket at construction time;
uploads, archived responses and download links all use that bucket.
"""

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional, Union

import boto3

logger = logging.getLogger("healthrfp.storage.objects")


class ObjectStore(ABC):
    """Storage abstraction for the documents bucket."""

    bucket: str = ""

    @abstractmethod
    def put(self, key: str, body: Union[bytes, str], content_type: str,
            metadata: Optional[Dict[str, str]] = None) -> None:
        raise NotImplementedError()

    @abstractmethod
    def get(self, key: str) -> bytes:
        raise NotImplementedError()

    @abstractmethod
    def presigned_get(self, key: str, expires_in: int) -> str:
        raise NotImplementedError()

    @abstractmethod
    def presigned_put(self, key: str, content_type: str, expires_in: int) -> str:
        raise NotImplementedError()


class LocalObjectStore(ObjectStore):
    """Filesystem-backed store rooted at ``root_dir``.

    Metadata is written next to the object as ``<key>.meta.json``.
    Presigned URLs are plain ``file://`` URIs; expiry is not enforced.
    """

    def __init__(self, root_dir, bucket: str = "local-documents"):
        self.root = Path(root_dir)
        self.bucket = bucket
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        clean = key.replace("\\", "/").lstrip("/")
        path = (self.root / clean).resolve()
        if self.root.resolve() not in path.parents:
            raise ValueError(f"Object key escapes storage root: {key}")
        return path

    def put(self, key, body, content_type, metadata=None):
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        data = body.encode("utf-8") if isinstance(body, str) else body
        path.write_bytes(data)
        meta = {"content_type": content_type, "metadata": metadata or {}}
        path.with_name(path.name + ".meta.json").write_text(
            json.dumps(meta, indent=2), encoding="utf-8",
        )
        logger.debug("Stored local object %s (%d bytes)", key, len(data))

    def get(self, key):
        path = self._path(key)
        if not path.exists():
            raise FileNotFoundError(f"No object at {key}")
        return path.read_bytes()

    def head(self, key: str) -> Dict[str, Any]:
        meta_path = self._path(key)
        meta_path = meta_path.with_name(meta_path.name + ".meta.json")
        if not meta_path.exists():
            return {}
        return json.loads(meta_path.read_text(encoding="utf-8"))

    def presigned_get(self, key, expires_in):
        return f"{self._path(key).as_uri()}?expires_in={expires_in}"

    def presigned_put(self, key, content_type, expires_in):
        return f"{self._path(key).as_uri()}?expires_in={expires_in}"


class S3ObjectStore(ObjectStore):
    """S3 backend bound to one bucket."""

    def __init__(self, bucket: str, region: Optional[str] = None,
                 endpoint_url: Optional[str] = None):
        if not bucket:
            raise ValueError("S3 storage requires a bucket name (S3_DOCUMENTS_BUCKET)")
        client_kwargs: Dict[str, Any] = {}
        if region:
            client_kwargs["region_name"] = region
        if endpoint_url:
            client_kwargs["endpoint_url"] = endpoint_url
        self.bucket = bucket
        self.s3_client = boto3.client("s3", **client_kwargs)

    def put(self, key, body, content_type, metadata=None):
        data = body.encode("utf-8") if isinstance(body, str) else body
        kwargs: Dict[str, Any] = {
            "Bucket": self.bucket,
            "Key": key,
            "Body": data,
            "ContentType": content_type,
        }
        if metadata:
            # S3 user metadata values must be strings.
            kwargs["Metadata"] = {k: str(v) for k, v in metadata.items()}
        self.s3_client.put_object(**kwargs)
        logger.debug("Stored s3://%s/%s (%d bytes)", self.bucket, key, len(data))

    def get(self, key):
        response = self.s3_client.get_object(Bucket=self.bucket, Key=key)
        return response["Body"].read()

    def presigned_get(self, key, expires_in):
        return self.s3_client.generate_presigned_url(
            "get_object",
            Params={"Bucket": self.bucket, "Key": key},
            ExpiresIn=expires_in,
        )

    def presigned_put(self, key, content_type, expires_in):
        return self.s3_client.generate_presigned_url(
            "put_object",
            Params={"Bucket": self.bucket, "Key": key, "ContentType": content_type},
            ExpiresIn=expires_in,
        )
