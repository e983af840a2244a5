from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from common.config.env import get_env_bool, get_env_float, get_env_int, get_env_str

load_dotenv()

DEFAULT_STORAGE_KEY = "schemacraft_database"
DEFAULT_SAVED_DATABASES_KEY = "schemacraft_saved_databases"


@dataclass(frozen=True)
class SessionConfig:
    """Configuration for a query session and its storage."""

    storage_key: str = DEFAULT_STORAGE_KEY
    saved_databases_key: str = DEFAULT_SAVED_DATABASES_KEY
    storage_dir: Optional[str] = None
    storage_timeout_seconds: float = 5.0
    table_rows_limit: int = 100
    export_rows_limit: int = 10000
    tokenized_statement_split: bool = False

    @classmethod
    def from_env(cls) -> "SessionConfig":
        """Load session config from environment variables."""
        return cls(
            storage_key=get_env_str("SCHEMACRAFT_STORAGE_KEY", DEFAULT_STORAGE_KEY),
            saved_databases_key=get_env_str(
                "SCHEMACRAFT_SAVED_DATABASES_KEY", DEFAULT_SAVED_DATABASES_KEY
            ),
            storage_dir=get_env_str("SCHEMACRAFT_STORAGE_DIR") or None,
            storage_timeout_seconds=get_env_float("DAL_STORAGE_TIMEOUT_SECS", 5.0),
            table_rows_limit=get_env_int("DAL_TABLE_ROWS_LIMIT", 100),
            export_rows_limit=get_env_int("DAL_EXPORT_ROWS_LIMIT", 10000),
            tokenized_statement_split=get_env_bool("DAL_TOKENIZED_STATEMENT_SPLIT", False),
        )
