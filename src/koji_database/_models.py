"""Immutable request and response models."""

from __future__ import annotations

import dataclasses

from koji_database._types import Payload  # noqa: TC001


@dataclasses.dataclass(frozen=True)
class PendingRequest:
    """One store operation, captured so it can be sent now or replayed in a commit.

    :param target_path: API path, e.g. ``/v1/store/set``.
    :param payload: JSON body for the operation.
    """

    target_path: str
    payload: Payload


@dataclasses.dataclass(frozen=True)
class SignedRequest:
    """Pre-authorized POST target for uploading straight to object storage.

    :param url: Upload endpoint.
    :param fields: Form fields that must accompany the upload.
    """

    url: str
    fields: dict[str, str] = dataclasses.field(default_factory=dict)


@dataclasses.dataclass(frozen=True)
class SignedUploadRequest:
    """Result of :meth:`Database.generate_signed_upload_request`.

    :param url: Public URL the file will have once uploaded.
    :param signed_request: Where and how to upload it.
    """

    url: str
    signed_request: SignedRequest


@dataclasses.dataclass(frozen=True)
class TranscodeJob:
    """A started transcode.

    :param url: URL the transcoded asset will be served from.
    :param callback_token: Token to poll with :meth:`Database.get_transcode_status`.
    """

    url: str
    callback_token: str


@dataclasses.dataclass(frozen=True)
class TranscodeStatus:
    """Progress of a transcode.

    :param is_finished: Whether the transcoded asset is ready to serve.
    """

    is_finished: bool
