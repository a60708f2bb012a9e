"""
Application settings

All configuration comes from the environment, with defaults suitable for a
local MongoDB:

- DATABASE_URL   -> MongoDB connection string
- DATABASE_NAME  -> database holding the user/product/order collections
- PUBLIC_DIR     -> directory served for non-API GET requests
- BCRYPT_ROUNDS  -> cost factor for new password hashes
- HOST / PORT    -> bind address for `python main.py`
- LOG_LEVEL      -> root log level for `python main.py`
"""
import os
from dataclasses import dataclass


@dataclass
class Settings:
    database_url: str = "mongodb://localhost:27017"
    database_name: str = "WebShopDb"
    public_dir: str = "public"
    bcrypt_rounds: int = 12
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            database_url=os.getenv("DATABASE_URL", cls.database_url),
            database_name=os.getenv("DATABASE_NAME", cls.database_name),
            public_dir=os.getenv("PUBLIC_DIR", cls.public_dir),
            bcrypt_rounds=int(os.getenv("BCRYPT_ROUNDS", cls.bcrypt_rounds)),
            host=os.getenv("HOST", cls.host),
            port=int(os.getenv("PORT", cls.port)),
            log_level=os.getenv("LOG_LEVEL", cls.log_level).upper(),
        )
