#!/usr/bin/env python3
"""Operate on the configured S3 bucket from the command line.

Usage:
  .venv/bin/python scripts/cloud_bucket.py put ./report.pdf assets/Uploads/report.pdf
  .venv/bin/python scripts/cloud_bucket.py mv assets/Uploads/a.txt assets/Uploads/b.txt
  .venv/bin/python scripts/cloud_bucket.py link assets/Uploads/b.txt --expires 600

Names are logical filenames relative to the site root; the bucket path
(ASSETS_ROOT) is stripped to form the object key. Credentials and the
container come from the S3_* environment variables or a .env file.
"""

from __future__ import annotations

import argparse
import logging
import shutil
import sys
from dataclasses import dataclass
from typing import Sequence, TextIO

from cloudassets.buckets.base import NOT_FOUND, Bucket, BucketError
from cloudassets.buckets.s3_bucket import S3Bucket
from cloudassets.common.config import Settings, get_settings
from cloudassets.common.logging import setup_logging
from cloudassets.domain.files import LocalFile
from cloudassets.infra.storage.client import StorageError

logger = logging.getLogger("cloudassets.cli")


@dataclass(frozen=True, slots=True)
class UploadSource:
    """A local file published under a logical filename."""

    filename: str
    full_path: str


def build_bucket(settings: Settings) -> Bucket:
    return S3Bucket(settings.ASSETS_ROOT, settings.bucket_config(), settings=settings)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Manage files in the asset bucket")
    sub = parser.add_subparsers(dest="command", required=True)

    put = sub.add_parser("put", help="Upload a local file")
    put.add_argument("local_path")
    put.add_argument("name")

    get = sub.add_parser("get", help="Download an object")
    get.add_argument("name")
    get.add_argument("-o", "--output", default=None, help="Write to file (default: stdout)")

    rm = sub.add_parser("rm", help="Delete an object")
    rm.add_argument("name")

    mv = sub.add_parser("mv", help="Rename an object (copy then delete)")
    mv.add_argument("old_name")
    mv.add_argument("new_name")

    exists = sub.add_parser("exists", help="Exit 0 if the object exists")
    exists.add_argument("name")

    size = sub.add_parser("size", help="Print object size in bytes (-1 if missing)")
    size.add_argument("name")

    link = sub.add_parser("link", help="Print a temporary download link")
    link.add_argument("name")
    link.add_argument("--expires", type=int, default=None, help="Lifetime in seconds")
    return parser


def run(
    args: argparse.Namespace,
    bucket: Bucket,
    *,
    settings: Settings,
    out: TextIO = sys.stdout,
) -> int:
    if args.command == "put":
        bucket.put(UploadSource(filename=args.name, full_path=args.local_path))
        print(f"Uploaded {args.local_path} -> {args.name}", file=out)
        return 0
    if args.command == "get":
        body = bucket.get_contents(args.name)
        if args.output:
            with open(args.output, "wb") as target:
                shutil.copyfileobj(body, target)
        else:
            out.write(body.read().decode("utf-8", errors="replace"))
        return 0
    if args.command == "rm":
        bucket.delete(args.name)
        print(f"Deleted {args.name}", file=out)
        return 0
    if args.command == "mv":
        bucket.rename(LocalFile(filename=args.old_name), args.old_name, args.new_name)
        print(f"Renamed {args.old_name} -> {args.new_name}", file=out)
        return 0
    if args.command == "exists":
        found = bucket.check_exists(args.name)
        print("yes" if found else "no", file=out)
        return 0 if found else 1
    if args.command == "size":
        size = bucket.get_file_size(args.name)
        print(size, file=out)
        return 0 if size != NOT_FOUND else 1
    if args.command == "link":
        expires = args.expires or settings.STORAGE_PRESIGN_EXPIRES_SECONDS
        print(bucket.get_temporary_link_for(args.name, expires), file=out)
        return 0
    raise ValueError(f"Unknown command: {args.command}")


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    setup_logging(settings.LOG_LEVEL, settings.LOG_JSON)
    try:
        bucket = build_bucket(settings)
        return run(args, bucket, settings=settings)
    except (BucketError, StorageError) as exc:
        logger.debug("command_failed command=%s", args.command, exc_info=exc)
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
