"""Uploads — send a file, sign a direct upload, and transcode a video."""

from __future__ import annotations

import sys
import time

from koji_database import Database

if __name__ == "__main__":
    with Database() as db:
        if len(sys.argv) > 1:
            url = db.upload_file(sys.argv[1])
            print(f"Uploaded to {url}")

        signed = db.generate_signed_upload_request("avatar.jpg")
        print(f"POST to {signed.signed_request.url} with {signed.signed_request.fields}")
        print(f"File will be served from {signed.url}")

        if len(sys.argv) > 2:
            job = db.transcode_asset(sys.argv[2], "video+hls")
            while not db.get_transcode_status(job.callback_token).is_finished:
                time.sleep(0.5)
            print(f"Stream ready at {job.url}")
