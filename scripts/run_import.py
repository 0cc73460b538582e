"""
Run a chunked LCA or prevailing wage import from CLI.

Examples:
    python -m scripts.run_import --dataset disclosure --file LCA_FY2024_Q1.csv --dataset-year 2024
    python -m scripts.run_import --dataset wage --archive-url https://flag.dol.gov/.../OFLC_Wages_2024-25.zip
    python -m scripts.run_import --job-id 3f2c...  # resume from the last checkpoint
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import uuid
from pathlib import Path

from app.archive.fetcher import ArchiveFetcher
from app.config import get_archive_settings, get_ingestion_settings, get_storage_settings
from app.domain.ingestion import ChunkResult, DatasetKind, IngestReport
from app.errors import IngestionError
from app.services.import_job_runner import ImportJobRunner
from db.config import describe_database_url, resolve_database_url
from db.repositories.errors import ImportRepositoryError
from db.repositories.storage import LocalFileStorage, copy_local_file
from db.session import SessionLocal

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run a chunked import job to completion.")
    parser.add_argument(
        "--dataset",
        choices=[DatasetKind.DISCLOSURE, DatasetKind.WAGE],
        default=None,
        help="Dataset to import. Required unless --job-id resumes an existing job.",
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--file", dest="file_path", default=None, help="Local CSV or ZIP file to import.")
    source.add_argument("--source-ref", default=None, help="Storage path of an already uploaded source.")
    source.add_argument("--archive-url", default=None, help="Allow-listed wage archive URL to download.")
    parser.add_argument("--job-id", default=None, help="Resume an existing job from its checkpoint.")
    parser.add_argument(
        "--dataset-year",
        default=None,
        help="Fiscal year for disclosures, or wage year such as 2024-2025.",
    )
    parser.add_argument(
        "--no-replace",
        action="store_true",
        help="Append wage rows without deleting the wage year first.",
    )
    parser.add_argument(
        "--max-chunks",
        type=int,
        default=None,
        help="Stop after this many chunks; rerun with --job-id to continue.",
    )
    parser.add_argument(
        "--keep-source",
        action="store_true",
        help="Keep the stored source file after the job completes.",
    )
    return parser


def _print_progress(result: ChunkResult, report: IngestReport) -> None:
    logger.info(
        "Chunk processed chunks=%s progress=%s%% parsed=%s inserted=%s skipped=%s",
        report.chunks,
        result.progress_percent,
        report.parsed,
        report.inserted,
        report.skipped,
    )


def main() -> int:
    parser = _build_parser()
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, os.getenv("LOG_LEVEL", "INFO").strip().upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logger.info("Using database %s", describe_database_url(resolve_database_url()))

    storage_settings = get_storage_settings()
    storage = LocalFileStorage(storage_settings.root_dir, namespace=storage_settings.namespace)
    runner = ImportJobRunner(
        session_factory=SessionLocal,
        storage=storage,
        settings=get_ingestion_settings(),
    )

    try:
        if args.job_id:
            job_id = uuid.UUID(args.job_id)
        else:
            if args.dataset is None:
                parser.error("--dataset is required when starting a new job.")
            job_id = uuid.uuid4()
            dataset_year = args.dataset_year
            if args.file_path:
                metadata = copy_local_file(storage, path=Path(args.file_path), job_id=job_id)
                source_ref = metadata.storage_path
            elif args.archive_url:
                fetched = ArchiveFetcher(settings=get_archive_settings()).fetch(args.archive_url)
                metadata = storage.save(
                    file_name=fetched.file_name,
                    content=fetched.content,
                    content_type=fetched.content_type,
                    job_id=job_id,
                )
                source_ref = metadata.storage_path
                dataset_year = dataset_year or fetched.wage_year
            elif args.source_ref:
                source_ref = args.source_ref
            else:
                parser.error("One of --file, --source-ref or --archive-url is required.")

            runner.create_job(
                dataset=args.dataset,
                source_ref=source_ref,
                dataset_year=dataset_year,
                replace_existing=not args.no_replace,
                job_id=job_id,
            )

        report = runner.run(
            job_id,
            max_chunks=args.max_chunks,
            delete_source_on_success=not args.keep_source,
            on_chunk=_print_progress,
        )
    except IngestionError as exc:
        print(json.dumps({"status": "failed", "error": exc.to_dict()}, indent=2))
        return 1
    except ImportRepositoryError as exc:
        print(json.dumps({"status": "failed", "error": {"message": str(exc), "context": {}}}, indent=2))
        return 1

    payload = {
        "job_id": str(job_id),
        "status": "completed" if report.done else "paused",
        "report": report.to_dict(),
    }
    print(json.dumps(payload, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
