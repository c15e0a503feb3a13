"""CLI entrypoint for secret-courier."""
import sys
import json
import argparse
import logging
from pathlib import Path

from .validators import validate_secret_name
from secret_courier.logging_config import configure_logging
from secret_courier.version import VERSION

logger = logging.getLogger(__name__)


def cmd_version(args):
    """Show version information."""
    print(f"secret-courier {VERSION}")


def cmd_serve(args):
    """Run the retrieval web service and event endpoint."""
    import uvicorn
    from secret_courier.web.app import build_app

    configure_logging(logging.INFO, json_logs=args.json_logs)
    app = build_app()
    uvicorn.run(app, host=args.host, port=args.port, log_config=None)


def _read_event(args) -> object:
    if args.secret:
        validate_secret_name(args.secret)
        return {"data": {"objectName": args.secret}}

    if args.event_file == "-":
        raw = sys.stdin.read()
    else:
        event_path = Path(args.event_file)
        if not event_path.is_file():
            print(f"Error: Event file does not exist: {event_path}", file=sys.stderr)
            sys.exit(2)
        raw = event_path.read_text()

    try:
        return json.loads(raw)
    except ValueError:
        # Handled downstream as an invalid event, like any other transport
        return None


def cmd_notify(args):
    """Process one secret-created event and report the outcome."""
    from secret_courier.notifications.workflows.secret_created import build_handler
    from secret_courier.secrets.domains.config_loader import load_config
    from secret_courier.secrets.domains.gcp_client import GCPSecretStore
    from secret_courier.secrets.workflows.secret_operations import SecretMetadataResolver

    payload = _read_event(args)
    config = load_config()
    resolver = SecretMetadataResolver(GCPSecretStore.from_config(config.secret_store))
    handler = build_handler(config, resolver)

    outcome = handler.handle(payload)
    if outcome.delivered:
        print(f"Notification sent for secret '{outcome.secret_name}'")
        sys.exit(0)

    kind = outcome.failure.value if outcome.failure else "UnexpectedError"
    print(f"Error: {kind}: {outcome.detail}", file=sys.stderr)
    sys.exit(1)


def cmd_config_set_path(args):
    """Set config file path preference."""
    from secret_courier.secrets.domains.preferences import set_preference

    config_path = Path(args.path).resolve()

    if not config_path.is_file():
        print(f"Error: Config file does not exist: {config_path}", file=sys.stderr)
        sys.exit(1)

    set_preference("config_path", str(config_path))
    print(f"Config path set to: {config_path}")


def cmd_config_show(args):
    """Show which config file would be used."""
    from secret_courier.secrets.domains import config_loader

    config_path = config_loader._get_config_path()
    if config_path:
        print(f"Config path: {config_path}")
    else:
        print(f"Config path: {config_loader.DEFAULT_CONFIG_PATH} (file not found, environment only)")


def cmd_config_clear(args):
    """Clear config path preference."""
    from secret_courier.secrets.domains.config_loader import DEFAULT_CONFIG_PATH
    from secret_courier.secrets.domains.preferences import clear_preference

    clear_preference("config_path")
    print(f"Config path preference cleared. Will use default: {DEFAULT_CONFIG_PATH}")


def cmd_config_check(args):
    """Validate configuration without contacting any service."""
    from secret_courier.secrets.domains.config_loader import ConfigError, load_config

    try:
        config = load_config()
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    print("Configuration OK")
    print(f"  Project: {config.secret_store.project_id}")
    print(f"  Retrieval URL: {config.retrieval_url}")
    print(f"  Sender: {config.notification.sender}")
    print(f"  SMTP: {config.notification.smtp_host}:{config.notification.smtp_port}")
    if config.notification.dry_run:
        print("  Dry run: enabled (notifications are logged, not sent)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="secret-courier",
        description="Notify recipients of new secrets and serve the retrieval form",
        epilog="""
Exit codes:
  0 - Success
  1 - Runtime error (configuration, secret store, notification failure)
  2 - Usage error (invalid arguments, invalid secret name format, etc.)

Environment variables:
  SECRET_COURIER_CONFIG - Path to the YAML config file
  GCP_PROJECT           - GCP project holding the secrets
  RETRIEVAL_URL         - Base URL of the retrieval form
  EMAIL_USER / EMAIL_PASS - Sender address and SMTP password
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log informational messages")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("version", help="Show version information")

    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the web service",
        description="Serve GET /retrieve, POST /retrievepost and POST /events/secret-created",
    )
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    serve_parser.add_argument("--port", type=int, default=8080, help="Bind port (default: 8080)")
    serve_parser.add_argument("--json-logs", action="store_true", help="Emit logs as JSON lines")

    notify_parser = subparsers.add_parser(
        "notify",
        help="Process one secret-created event",
        description="Run the notification workflow once, from an event file or a secret name",
    )
    source = notify_parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--event-file", help="Path to the event JSON ('-' for stdin)")
    source.add_argument("--secret", help="Secret name; builds {\"data\": {\"objectName\": NAME}}")

    config_parser = subparsers.add_parser(
        "config",
        help="Configuration management",
        description="Manage secret-courier configuration",
    )
    config_subparsers = config_parser.add_subparsers(dest="config_command")
    set_path_parser = config_subparsers.add_parser("set-path", help="Set config file path")
    set_path_parser.add_argument("path", help="Path to config file")
    config_subparsers.add_parser("show", help="Show current config path")
    config_subparsers.add_parser("clear", help="Clear config path preference")
    config_subparsers.add_parser("check", help="Load and validate configuration")

    return parser


def main(argv=None):
    """Main CLI entrypoint."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(2)

    if args.command != "serve":
        configure_logging(logging.INFO if args.verbose else logging.WARNING)

    config_commands = {
        "set-path": cmd_config_set_path,
        "show": cmd_config_show,
        "clear": cmd_config_clear,
        "check": cmd_config_check,
    }

    try:
        if args.command == "version":
            cmd_version(args)
        elif args.command == "serve":
            cmd_serve(args)
        elif args.command == "notify":
            cmd_notify(args)
        elif args.command == "config" and args.config_command in config_commands:
            config_commands[args.config_command](args)
        else:
            parser.print_help()
            sys.exit(2)
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
