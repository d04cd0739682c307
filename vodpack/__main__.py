"""
Command-line interface for the vodpack transcoding pipeline
"""
import argparse
import json
import logging
import sys
from pathlib import Path

from . import __version__
from .config import DEFAULT_CONCURRENCY, OUTPUT_ROOT, THUMBNAIL_OFFSET
from .exceptions import DependencyError, RequestError
from .formatting import (
    console, print_error, print_field, print_header, print_info,
    print_renditions, print_stage, print_warning
)
from .locator import base_name_from_filename
from .logging import configure_logging
from .models import JobStatus, SourceAsset
from .pipeline import run_job
from .tiers import ALL_TIERS
from .utils import check_dependencies, format_elapsed

EXIT_CODES = {
    JobStatus.SUCCEEDED: 0,
    JobStatus.PARTIALLY_SUCCEEDED: 2,
    JobStatus.FAILED: 1,
}

def parse_args(argv=None):
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(
        prog="vodpack",
        description="Package a video as multi-tier HLS with a poster thumbnail"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "--log-level",
        dest="log_level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Set logging level (default from VODPACK_LOG_LEVEL)"
    )
    parser.add_argument(
        "--no-log-file",
        dest="file_logging",
        action="store_false",
        help="Only log to the console"
    )
    parser.add_argument("--owner", required=True, help="Owner (uploading user) id")
    parser.add_argument(
        "--name",
        dest="base_name",
        default=None,
        help="Base name of the outputs (default: source file name without extension)"
    )
    parser.add_argument(
        "--tiers",
        default=",".join(t.label for t in ALL_TIERS),
        help="Comma-separated tiers to produce (default: %(default)s)"
    )
    parser.add_argument(
        "--concurrency",
        type=int,
        default=DEFAULT_CONCURRENCY,
        help="Maximum tier encodes running at once (default: %(default)s)"
    )
    parser.add_argument(
        "--output-root",
        type=Path,
        default=OUTPUT_ROOT,
        help="Directory holding videos/<owner>/ (default: %(default)s)"
    )
    parser.add_argument(
        "--thumbnail-offset",
        type=float,
        default=THUMBNAIL_OFFSET,
        help="Poster frame position in seconds (default: %(default)s)"
    )
    parser.add_argument(
        "--json",
        dest="as_json",
        action="store_true",
        help="Print the job output record as JSON"
    )
    parser.add_argument("source", type=Path, help="Staged source video")
    return parser.parse_args(argv)

def print_summary(job) -> None:
    """Print a human readable job summary."""
    print_header("Transcode Summary")
    print_field("Source", job.source.path)
    print_field("Duration", f"{job.duration_seconds}s")
    print_renditions(job.renditions)
    thumbnail = job.thumbnail
    if thumbnail is None:
        print_stage("Thumbnail", "Skipped")
    elif thumbnail.succeeded:
        print_stage("Thumbnail", thumbnail.status.value, thumbnail.location.public_url)
    else:
        print_stage("Thumbnail", thumbnail.status.value, str(thumbnail.error or ""))
    for condition in job.conditions:
        print_warning(str(condition))
    if job.error is not None:
        print_error(str(job.error))
    print_stage("Status", job.status.value, f"{job.status.value} in {format_elapsed(job.elapsed)}")

def main(argv=None):
    """Main entry point"""
    args = parse_args(argv)
    configure_logging(args.log_level, file_logging=args.file_logging)
    log = logging.getLogger("vodpack")

    if not args.as_json:
        print_header(f"vodpack v{__version__}")
        print_info(f"Processing {args.source}")

    try:
        check_dependencies()
    except DependencyError as e:
        log.error("%s", e.message)
        return 1

    try:
        base_name = args.base_name or base_name_from_filename(args.source)
        source = SourceAsset(path=args.source, owner_id=args.owner, base_name=base_name)
        tiers = [label for label in args.tiers.split(",") if label.strip()]
        job = run_job(
            source,
            tiers,
            concurrency_limit=args.concurrency,
            output_root=args.output_root,
            thumbnail_offset=args.thumbnail_offset,
        )
    except RequestError as e:
        log.error("Invalid request: %s", e.message)
        return 1
    except KeyboardInterrupt:
        log.warning("Transcoding interrupted by user")
        return 130

    if args.as_json:
        console.print_json(json.dumps(job.to_output_contract()))
    else:
        print_summary(job)
    return EXIT_CODES[job.status]

if __name__ == "__main__":
    sys.exit(main())
