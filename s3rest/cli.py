"""Command-line interface for signing and sending S3 requests.

Subcommands:
    sign METHOD [BUCKET [KEY]]   Build and sign a request, print it
    get [BUCKET [KEY]]           Send a signed GET and print the response
"""

import argparse
import logging
import sys
from typing import Optional
from xml.etree import ElementTree

import httpx

from s3rest.client import S3Connection
from s3rest.config import load_config
from s3rest.console import ConsoleRenderer, collect_leaves
from s3rest.errors import AuthorizationRejectedError, ConfigurationError
from s3rest.models import ServiceConfig
from s3rest.request import build_request
from s3rest.signer import RequestSigner, request_string_to_sign

logger = logging.getLogger(__name__)


def parse_metadata(pairs: Optional[list[str]]) -> list[tuple[str, str]]:
    """Split NAME=VALUE arguments.

    Raises:
        ValueError: If an argument has no '='.
    """
    metadata = []
    for pair in pairs or []:
        name, sep, value = pair.partition("=")
        if not sep or not name:
            raise ValueError(f"Expected NAME=VALUE, got {pair!r}")
        metadata.append((name, value))
    return metadata


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        prog="s3rest",
        description="Sign and send requests to an S3-compatible service",
    )

    parser.add_argument(
        "-c", "--config",
        default="s3rest.json",
        help="Path to configuration file (default: s3rest.json)",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    sign = subparsers.add_parser("sign", help="Build and sign a request without sending it")
    sign.add_argument("method", help="HTTP method, e.g. GET or PUT")
    sign.add_argument("bucket", nargs="?", help="Bucket name")
    sign.add_argument("key", nargs="?", help="Object key")
    sign.add_argument("--content-type", help="Content-Type header value")
    sign.add_argument("--content-md5", help="Content-MD5 header value")
    sign.add_argument(
        "-m", "--meta",
        action="append",
        metavar="NAME=VALUE",
        help="Add an x-amz-meta-NAME header (repeatable)",
    )

    get = subparsers.add_parser("get", help="Send a signed GET request")
    get.add_argument("bucket", nargs="?", help="Bucket name")
    get.add_argument("key", nargs="?", help="Object key")

    return parser.parse_args(argv)


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def cmd_sign(config: ServiceConfig, args: argparse.Namespace, renderer: ConsoleRenderer) -> int:
    """Build and sign a request, then print it.

    Returns:
        Exit code (0 on success, 2 on bad arguments).
    """
    try:
        metadata = parse_metadata(args.meta)
    except ValueError as e:
        renderer.error(str(e))
        return 2

    request = build_request(config, args.method, args.bucket, args.key)
    if args.content_type:
        request.content_type = args.content_type
    if args.content_md5:
        request.content_md5 = args.content_md5
    for name, value in metadata:
        request.set_metadata(name, value)

    RequestSigner().authorize(request, config.credentials)
    renderer.show_signed_request(request, request_string_to_sign(request))
    return 0


def cmd_get(config: ServiceConfig, args: argparse.Namespace, renderer: ConsoleRenderer) -> int:
    """Send a signed GET and print the response.

    Returns:
        Exit code (0 for a 2xx response, 1 otherwise).
    """
    try:
        with S3Connection(config) as connection:
            request = connection.request("GET", args.bucket, args.key)
            with connection.send(request) as response:
                renderer.show_response(response)
                content_type = response.headers.get("Content-Type", "")
                if "xml" in content_type:
                    reader = response.reader
                    root_name = reader.node.name
                    renderer.show_xml(root_name, collect_leaves(reader))
                return 0 if response.is_success else 1
    except AuthorizationRejectedError as e:
        renderer.error(str(e))
        return 1
    except httpx.HTTPError as e:
        renderer.error(f"Transport error: {e}")
        return 1
    except ElementTree.ParseError as e:
        renderer.error(f"Malformed XML response: {e}")
        return 1


COMMANDS = {
    "sign": cmd_sign,
    "get": cmd_get,
}


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code: 0 for success, 1 for request failures, 2 for errors
    """
    args = parse_args(argv)
    configure_logging(args.verbose)

    try:
        config = load_config(args.config)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    logger.debug("Using service %s", config.host)
    return COMMANDS[args.command](config, args, ConsoleRenderer())


if __name__ == "__main__":
    sys.exit(main())
