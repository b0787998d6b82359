from __future__ import annotations

import logging
from typing import Optional, Sequence

import boto3
from botocore.config import Config
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectionClosedError,
    ConnectTimeoutError,
    EndpointConnectionError,
    ReadTimeoutError,
)

from ..core.constants import (
    DEFAULT_FACE_CALL_TIMEOUT_SECONDS,
    DEFAULT_FACE_COLLECTION_ID,
    DEFAULT_FACE_MATCH_THRESHOLD,
)
from ..core.exceptions import NoFaceDetectedError, ProviderError
from .directory import FaceDirectory
from .model import EnrolledFace, FaceMatch

logger = logging.getLogger(__name__)

PROVIDER = "rekognition"

_TRANSIENT_ERRORS = (EndpointConnectionError, ConnectTimeoutError, ReadTimeoutError, ConnectionClosedError)
_TRANSIENT_CODES = {
    "ThrottlingException",
    "ProvisionedThroughputExceededException",
    "InternalServerError",
    "ServiceUnavailableException",
}


def build_rekognition_client(*, region: str, timeout_seconds: float = DEFAULT_FACE_CALL_TIMEOUT_SECONDS):
    """Rekognition client with bounded timeouts and botocore retries disabled."""
    return boto3.client(
        "rekognition",
        region_name=region,
        config=Config(
            connect_timeout=timeout_seconds,
            read_timeout=timeout_seconds,
            retries={"total_max_attempts": 1},
        ),
    )


def _error_code(exc: ClientError) -> str:
    return exc.response.get("Error", {}).get("Code", "")


class RekognitionFaceDirectory(FaceDirectory):
    """Face directory backed by an AWS Rekognition collection.

    Idempotent calls (search, delete, list) are retried once on a transient
    failure. ``index`` is never retried: a blind retry could enroll the same
    face twice.
    """

    def __init__(
        self,
        client,
        *,
        collection_id: str = DEFAULT_FACE_COLLECTION_ID,
        match_threshold: float = DEFAULT_FACE_MATCH_THRESHOLD,
    ):
        self._client = client
        self._collection_id = collection_id
        self._threshold = float(match_threshold)

    def _call(self, operation: str, *, retry: bool, **params) -> dict:
        """Invoke a client operation.

        Returns the response, re-raises a non-transient ClientError for the
        caller to interpret, and turns exhausted transport failures into
        ProviderError.
        """
        method = getattr(self._client, operation)
        attempts = 2 if retry else 1
        for attempt in range(1, attempts + 1):
            try:
                return method(**params)
            except ClientError as e:
                if attempt < attempts and _error_code(e) in _TRANSIENT_CODES:
                    logger.warning("Rekognition %s throttled/unavailable (%s), retrying", operation, _error_code(e))
                    continue
                raise
            except _TRANSIENT_ERRORS as e:
                if attempt < attempts:
                    logger.warning("Rekognition %s transport failure (%s), retrying", operation, e)
                    continue
                raise ProviderError(f"Face directory did not answer {operation}: {e}", provider=PROVIDER) from e
            except BotoCoreError as e:
                raise ProviderError(f"Face directory call {operation} failed: {e}", provider=PROVIDER) from e
        raise AssertionError("unreachable")

    def ensure_collection(self) -> None:
        try:
            self._call("create_collection", retry=False, CollectionId=self._collection_id)
            logger.info("Created face collection %s", self._collection_id)
        except ClientError as e:
            if _error_code(e) == "ResourceAlreadyExistsException":
                return
            raise ProviderError(f"Could not ensure face collection: {e}", provider=PROVIDER) from e

    def index(self, image: bytes, subject_id: str) -> str:
        try:
            resp = self._call(
                "index_faces",
                retry=False,
                CollectionId=self._collection_id,
                Image={"Bytes": image},
                ExternalImageId=str(subject_id),
                MaxFaces=1,
                QualityFilter="AUTO",
                DetectionAttributes=["DEFAULT"],
            )
        except ClientError as e:
            if _error_code(e) == "InvalidParameterException":
                raise NoFaceDetectedError("No face detected in the image") from e
            raise ProviderError(f"Face indexing failed: {e}", provider=PROVIDER) from e

        records = resp.get("FaceRecords") or []
        if not records:
            raise NoFaceDetectedError("No face detected in the image")
        return records[0]["Face"]["FaceId"]

    def search(self, image: bytes) -> Optional[FaceMatch]:
        try:
            resp = self._call(
                "search_faces_by_image",
                retry=True,
                CollectionId=self._collection_id,
                Image={"Bytes": image},
                MaxFaces=1,
                FaceMatchThreshold=self._threshold,
            )
        except ClientError as e:
            # Rekognition rejects images in which it finds no face at all.
            if _error_code(e) == "InvalidParameterException":
                return None
            raise ProviderError(f"Face search failed: {e}", provider=PROVIDER) from e

        matches = resp.get("FaceMatches") or []
        if not matches:
            return None

        best = matches[0]
        similarity = float(best.get("Similarity") or 0.0)
        face = best.get("Face") or {}
        if similarity < self._threshold or not face.get("FaceId"):
            return None
        return FaceMatch(face_ref=face["FaceId"], subject_id=face.get("ExternalImageId"), confidence=similarity)

    def delete(self, face_ref: str) -> None:
        try:
            self._call("delete_faces", retry=True, CollectionId=self._collection_id, FaceIds=[face_ref])
        except ClientError as e:
            if _error_code(e) == "ResourceNotFoundException":
                return
            raise ProviderError(f"Face deletion failed: {e}", provider=PROVIDER) from e

    def list_faces(self) -> Sequence[EnrolledFace]:
        faces: list[EnrolledFace] = []
        params = {"CollectionId": self._collection_id, "MaxResults": 1000}
        while True:
            try:
                resp = self._call("list_faces", retry=True, **params)
            except ClientError as e:
                raise ProviderError(f"Listing faces failed: {e}", provider=PROVIDER) from e

            for f in resp.get("Faces") or []:
                faces.append(
                    EnrolledFace(
                        face_ref=f["FaceId"],
                        subject_id=f.get("ExternalImageId"),
                        image_id=f.get("ImageId"),
                        indexed_confidence=f.get("Confidence"),
                    )
                )

            token = resp.get("NextToken")
            if not token:
                return faces
            params["NextToken"] = token
