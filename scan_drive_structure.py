import argparse
import json
import logging
import sys

from googleapiclient.errors import HttpError

import drive_config
from drive_errors import DriveConfigurationError, DriveRequestError
from folder_tree import create_folder_tree


def render(lister, mode: str, delimiter: str) -> str:
    """Run one walk and format its result for the console."""
    if mode == "paths":
        return "\n".join(lister.get_filename_with_path(delimiter))

    if mode == "files":
        nodes = lister.get_tree_with_files()
    else:
        nodes = lister.get_tree()
    return json.dumps([node.to_dict() for node in nodes], indent=2, ensure_ascii=False)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Print the folder tree under a Google Drive folder.")
    parser.add_argument("--root-id", help="Folder to start from (default: DRIVE_TREE_ROOT_ID or 'root').")
    parser.add_argument(
        "--backend",
        choices=sorted(drive_config.VALID_BACKENDS),
        help="sdk = google-api-python-client, rest = raw HTTP (default: DRIVE_TREE_BACKEND).",
    )
    parser.add_argument(
        "--mode",
        choices=["tree", "files", "paths"],
        default="tree",
        help="tree = folder chains, files = chains with files, paths = one file path per line.",
    )
    parser.add_argument("--delimiter", default="/", help="Path delimiter for --mode paths.")
    parser.add_argument("--impersonate", help="User to impersonate with a service account.")
    parser.add_argument("--output", help="Also write the result to this file.")
    parser.add_argument("--verbose", action="store_true", help="Log every listing call.")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    # drive_service ships its own handler at INFO
    logging.getLogger("drive_service").setLevel(logging.INFO if args.verbose else logging.WARNING)

    try:
        lister = create_folder_tree(
            backend=args.backend,
            root_id=args.root_id,
            subject=args.impersonate,
            correlation_id="scan-drive-structure",
        )
    except DriveConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"📁 Scanning Drive folder: {lister.root_id}", file=sys.stderr)

    try:
        text = render(lister, args.mode, args.delimiter)
    except (DriveRequestError, HttpError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    print(text)

    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(text + "\n")
        print(f"\nScan complete. Output saved to {args.output}", file=sys.stderr)

    return 0


if __name__ == "__main__":
    sys.exit(main())
