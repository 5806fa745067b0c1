"""
Run a billing analysis from CLI.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from dashboard.config import ParseErrorPolicy
from dashboard.domain.records import FileRole
from dashboard.domain.sources import FileSource, PathSource, UploadBatch
from dashboard.errors import PipelineError
from dashboard.services.analysis_service import AnalysisService


def main() -> int:
    parser = argparse.ArgumentParser(description="Analyze one customer's billing files.")
    parser.add_argument("files", nargs="+", help="Primary files named Customer_Type_YYYYMM.ext, in order.")
    parser.add_argument("--cross-reference", dest="cross_reference", default=None, help="Optional ID -> name/region file.")
    parser.add_argument("--partner-report", dest="partner_report", default=None, help="Optional trading partner report.")
    parser.add_argument("--map-configuration", dest="map_configuration", default=None, help="Optional map configuration file.")
    parser.add_argument(
        "--parse-error-policy",
        dest="parse_error_policy",
        choices=[ParseErrorPolicy.SKIP, ParseErrorPolicy.ABORT],
        default=None,
        help="Skip unreadable files (default from PARSE_ERROR_POLICY) or abort the run.",
    )
    parser.add_argument("--log-level", dest="log_level", default="WARNING", help="Logging level.")
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level.strip().upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    auxiliary: dict[str, FileSource] = {}
    for role, path in (
        (FileRole.CROSS_REFERENCE, args.cross_reference),
        (FileRole.PARTNER_REPORT, args.partner_report),
        (FileRole.MAP_CONFIGURATION, args.map_configuration),
    ):
        if path:
            auxiliary[role] = PathSource(path)
    batch = UploadBatch(primary=[PathSource(path) for path in args.files], auxiliary=auxiliary)

    service = AnalysisService()
    try:
        result = asyncio.run(service.run(batch, parse_error_policy=args.parse_error_policy))
    except PipelineError as exc:
        print(json.dumps({"error": exc.to_dict()}, indent=2, default=str), file=sys.stderr)
        return 2

    payload = result.to_dict()
    payload.pop("timeline", None)
    print(json.dumps(payload, indent=2, default=str))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
