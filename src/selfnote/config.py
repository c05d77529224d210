"""Configuration for selfnote."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from .types import DEFAULT_SCRYPT_LOG_N, KEY_SECURITY_UNKNOWN


@dataclass
class NoteConfig:
    """Configuration for note creation and key sharing."""

    scrypt_log_n: int = DEFAULT_SCRYPT_LOG_N
    """scrypt work factor for new password-wrapped keys (N = 2^log_n)."""

    key_security: int = KEY_SECURITY_UNKNOWN
    """Key security byte recorded in new password-wrapped keys."""

    title_max_length: int = 50
    """Maximum generated title length before the ellipsis."""

    title_max_words: int = 10
    """Number of words taken from the content for a generated title."""

    share_param: str = "key"
    """Query parameter that carries a shared key."""

    credential_path: Optional[Path] = None
    """Credential file for FileCredentialStore (default: ~/.selfnote/credential)."""

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "NoteConfig":
        """
        Creates configuration from environment variables.

        Reads SELFNOTE_SCRYPT_LOG_N, SELFNOTE_TITLE_MAX_LENGTH,
        SELFNOTE_SHARE_PARAM and SELFNOTE_CREDENTIAL_PATH. Unset variables
        keep their defaults.
        """
        env = os.environ if environ is None else environ
        config = cls()

        if env.get("SELFNOTE_SCRYPT_LOG_N"):
            config.scrypt_log_n = int(env["SELFNOTE_SCRYPT_LOG_N"])
        if env.get("SELFNOTE_TITLE_MAX_LENGTH"):
            config.title_max_length = int(env["SELFNOTE_TITLE_MAX_LENGTH"])
        if env.get("SELFNOTE_SHARE_PARAM"):
            config.share_param = env["SELFNOTE_SHARE_PARAM"]
        if env.get("SELFNOTE_CREDENTIAL_PATH"):
            config.credential_path = Path(env["SELFNOTE_CREDENTIAL_PATH"]).expanduser()

        return config
