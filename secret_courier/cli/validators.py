"""Input validation for CLI arguments."""
import re
import sys

# GCP Secret Manager secret IDs: letters, digits, underscores and hyphens, at most 255 chars
SECRET_NAME_PATTERN = re.compile(r'^[a-zA-Z0-9_-]{1,255}$')


def validate_secret_name(name: str) -> None:
    """
    Validate a secret name before building a synthetic secret-created event.

    Raises:
        SystemExit with code 2 if validation fails
    """
    if not name:
        print("Error: Secret name cannot be empty", file=sys.stderr)
        sys.exit(2)

    if not SECRET_NAME_PATTERN.match(name):
        print(f"Error: Invalid secret name '{name}'", file=sys.stderr)
        print("\nAllowed characters: letters, numbers, underscores (_), hyphens (-)", file=sys.stderr)
        print("Not allowed: dots (.), spaces, slashes, special characters (@, $, !, etc.)", file=sys.stderr)
        sys.exit(2)
