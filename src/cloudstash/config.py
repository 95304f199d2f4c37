"""Configuration loading for the upload client."""

from __future__ import annotations

import json
import os
from dataclasses import fields
from pathlib import Path

import keyring

from cloudstash.models import UploadConfig


SERVICE_NAME = "cloudstash"
KEY_NAME = "api_token"

TOKEN_ENV_VAR = "CLOUDSTASH_API_TOKEN"
URL_ENV_VAR = "CLOUDSTASH_API_URL"

DEFAULT_CONFIG_PATH = Path("config/upload_config.json")


def find_api_token() -> tuple[str | None, str | None]:
    """Look up the storage API token without failing.

    Returns:
        ``(token, source)`` where source is ``"keyring"`` or
        ``"environment"``, or ``(None, None)`` when no token is set.
    """
    token = keyring.get_password(SERVICE_NAME, KEY_NAME)
    if token:
        return token, "keyring"

    token = os.environ.get(TOKEN_ENV_VAR)
    if token:
        return token, "environment"

    return None, None


def get_api_token() -> str:
    """Get the storage API token: system keyring first, then env var fallback.

    Returns:
        Token string.

    Raises:
        RuntimeError: If no token found anywhere, with actionable instructions.
    """
    token, _ = find_api_token()
    if token:
        return token

    raise RuntimeError(
        "Storage API token not found.\n"
        "Set it with: cloudstash config set-token YOUR_TOKEN\n"
        f"Or: export {TOKEN_ENV_VAR}=your-token"
    )


def store_api_token(token: str) -> None:
    """Save *token* in the system keyring.

    Raises:
        ValueError: If *token* is empty or whitespace.
    """
    token = token.strip()
    if not token:
        raise ValueError("Token cannot be empty")
    keyring.set_password(SERVICE_NAME, KEY_NAME, token)


def delete_api_token() -> bool:
    """Remove the keyring token. Returns ``False`` if none was stored."""
    if not keyring.get_password(SERVICE_NAME, KEY_NAME):
        return False
    keyring.delete_password(SERVICE_NAME, KEY_NAME)
    return True


def mask_token(token: str, visible: int = 8) -> str:
    """Hide all but a short prefix of *token*.

    Tokens no longer than *visible* keep at most two characters, and at
    least one ``*`` is always shown.
    """
    if len(token) <= visible:
        visible = min(2, len(token) - 1) if len(token) > 1 else 0
    return token[:visible] + "*" * max(1, len(token) - visible)


def load_upload_config(config_path: Path | None = None) -> UploadConfig:
    """Load upload configuration from JSON, falling back to defaults.

    Reads from ``config/upload_config.json`` when *config_path* is ``None``.
    If the file does not exist, returns an ``UploadConfig`` with defaults.
    ``CLOUDSTASH_API_URL`` overrides the base URL.  The token comes from
    the file if present, otherwise from the keyring
    (service: ``cloudstash``, key: ``api_token``) or ``CLOUDSTASH_API_TOKEN``.

    Args:
        config_path: Optional explicit path to upload_config.json.

    Returns:
        UploadConfig populated from file, environment and keyring.
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    data: dict = {}
    if config_path.exists():
        with open(config_path) as f:
            data = json.load(f)

    # Only recognised fields
    field_names = {f.name for f in fields(UploadConfig)}
    kwargs = {k: v for k, v in data.items() if k in field_names}

    env_url = os.environ.get(URL_ENV_VAR)
    if env_url:
        kwargs["api_base_url"] = env_url

    config = UploadConfig(**kwargs)

    if config.api_token is None:
        config.api_token, _ = find_api_token()

    return config
