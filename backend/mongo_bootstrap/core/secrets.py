"""
Password reference resolution.

A reference is resolved in order: environment variable, secret file,
then (only when the reference allows it) the insecure development default.
"""
import logging
import os
from pathlib import Path
from typing import Mapping, Optional

from dotenv import dotenv_values

from mongo_bootstrap.config import Settings
from mongo_bootstrap.core.errors import InsecurePasswordError, PasswordResolutionError
from mongo_bootstrap.models.specs import PasswordRef

logger = logging.getLogger("mongo_bootstrap.secrets")


def load_environ(env_file: Optional[str]) -> dict[str, str]:
    """
    Variables from the .env file overlaid by the process environment.

    Same precedence pydantic-settings applies when loading Settings.
    """
    environ: dict[str, str] = {}
    if env_file:
        environ.update(
            {key: value for key, value in dotenv_values(env_file).items() if value is not None}
        )
    environ.update(os.environ)
    return environ


class PasswordResolver:
    """Resolves PasswordRef objects to plain passwords at apply time."""

    def __init__(
        self,
        secrets_dir: str,
        insecure_default: str,
        production_mode: bool = False,
        environ: Optional[Mapping[str, str]] = None,
    ):
        self.secrets_dir = Path(secrets_dir)
        self.insecure_default = insecure_default
        self.production_mode = production_mode
        self.environ = os.environ if environ is None else environ

    @classmethod
    def from_settings(cls, settings: Settings) -> "PasswordResolver":
        """Resolver reading the process environment over the settings .env file."""
        return cls(
            secrets_dir=settings.secrets_dir,
            insecure_default=settings.insecure_default_password,
            production_mode=settings.production_mode,
            environ=load_environ(settings.model_config.get("env_file")),
        )

    def resolve(self, ref: PasswordRef) -> str:
        """
        Resolve a password reference.

        Raises:
            InsecurePasswordError: If only the insecure default is available
                and production mode is on
            PasswordResolutionError: If nothing resolves the reference
        """
        if ref.env:
            value = self.environ.get(ref.env)
            if value:
                return value

        if ref.secret:
            secret_path = self.secrets_dir / ref.secret
            try:
                value = secret_path.read_text().strip()
            except FileNotFoundError:
                value = ""
            except OSError as e:
                raise PasswordResolutionError(f"cannot read secret {ref.secret}: {e}") from e
            if value:
                return value

        sources = " / ".join(
            source for source in (
                f"env {ref.env}" if ref.env else None,
                f"secret {ref.secret}" if ref.secret else None,
            ) if source
        )

        if not ref.allow_insecure_default:
            raise PasswordResolutionError(f"no password found in {sources}")

        if self.production_mode:
            raise InsecurePasswordError(
                f"no password found in {sources} and the insecure default is refused in production mode"
            )

        logger.warning(f"Using insecure default password for {sources} (development only)")
        return self.insecure_default
