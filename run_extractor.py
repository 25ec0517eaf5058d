#!/usr/bin/env python3
"""
CLI script to run the media extractor over saved HTML pages.

Pages are read as raw bytes so they are decoded with the charset they
declare. Each file gets its own JSON envelope; a failure in one file is
reported in its envelope and does not stop the batch.

Log records go to stderr (and --log-file). Host lists come from --hosts, else MEDIA_EXTRACTOR_HOSTS_FILE (a .env file in
the working directory is honoured), else the built-in defaults.
"""

import argparse
import json
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv
load_dotenv()

from media_extractor.bundle_cache import BundleCache
from media_extractor.config import load_config
from media_extractor.document import Document
from media_extractor.exceptions import ConfigError, InvalidInputError
from media_extractor.logger import LOG_LEVEL_ENV, setup_logger
from media_extractor.main import MediaExtractor
from media_extractor.schemas import ExtractionResponse


def main(argv=None):
    parser = argparse.ArgumentParser(description="Extract episode and download links from HTML pages")
    parser.add_argument("files", nargs="+", help="HTML files to process")
    parser.add_argument("--url", "-u", help="Source URL of the page (single file only)")
    parser.add_argument("--hosts", help="JSON file with host allow-lists")
    parser.add_argument("--output", "-o", help="Output JSON file")
    parser.add_argument("--cache", "-c", action="store_true", help="Reuse and store results in ./bundle_cache")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    parser.add_argument("--log-file", help="Also write log records to this file")
    args = parser.parse_args(argv)

    if args.url and len(args.files) > 1:
        parser.error("--url can only be used with a single file")

    try:
        config = load_config(args.hosts)
    except ConfigError as e:
        print(f"✗ {e.message}", file=sys.stderr)
        return 2

    # Quiet by default; MEDIA_EXTRACTOR_LOG_LEVEL or -v turn it up
    setup_logger(level=logging.DEBUG if args.verbose else os.getenv(LOG_LEVEL_ENV, "WARNING"),
                 log_file=args.log_file)

    extractor = MediaExtractor(config=config)
    cache = BundleCache() if args.cache else None

    results = []

    for filepath in args.files:
        path = Path(filepath)
        print(f"Extracting: {path.name}", file=sys.stderr)

        try:
            html = Document.decode_bytes(path.read_bytes())

            bundle = cache.get(html, source_url=args.url) if cache else None
            if bundle is not None:
                response = ExtractionResponse(success=True, data=bundle, message="Served from cache")
            else:
                response = extractor.extract(html, source_url=args.url)
                if cache and response.data is not None and not response.data.is_empty():
                    cache.put(response.data, html, source_url=args.url)

            results.append({"file": path.name, **response.to_dict()})

            if response.message:
                print(f"  ✓ {response.message}", file=sys.stderr)
            else:
                print(f"  ✓ {response.data.content_type.value}: {response.data.title}", file=sys.stderr)

        except InvalidInputError as e:
            results.append({"file": path.name, **e.to_response()})
            print(f"  ✗ {e.message}", file=sys.stderr)
        except OSError as e:
            results.append({
                "file": path.name,
                "success": False,
                "error": "Failed to read document",
                "message": str(e),
            })
            print(f"  ✗ Error: {e}", file=sys.stderr)

    output = json.dumps(results, indent=2, ensure_ascii=False)

    if args.output:
        Path(args.output).write_text(output)
        print(f"\nSaved to: {args.output}", file=sys.stderr)
    else:
        print(output)

    return 0


if __name__ == "__main__":
    sys.exit(main())
