from datetime import date
from typing import List, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Database Configuration
    database_url: Optional[str] = None
    db_username: Optional[str] = None
    db_password: Optional[str] = None
    db_host: str = "localhost"
    db_port: str = "5432"
    db_name: Optional[str] = None
    sql_echo: bool = False

    # Authentication (tokens are issued by the external auth service)
    secret_key: str = "devsecret"
    algorithm: str = "HS256"
    access_token_expire_minutes: Optional[int] = 60

    @field_validator('algorithm', mode='before')
    @classmethod
    def parse_algorithm(cls, v):
        if v is None or v == '':
            return "HS256"
        return v

    @field_validator('access_token_expire_minutes', mode='before')
    @classmethod
    def parse_token_expire(cls, v):
        if v is None or v == '':
            return 60
        return int(v)

    # CORS
    allowed_origins: List[str] = ["http://localhost:5173", "http://127.0.0.1:5173"]

    @field_validator('allowed_origins', mode='before')
    @classmethod
    def parse_origins(cls, v):
        if isinstance(v, str):
            return [o.strip() for o in v.split(",") if o.strip()]
        return v

    # Logging
    log_level: str = "INFO"

    # Reports: lower bound used when no start date is supplied
    report_floor_date: date = date(1900, 1, 1)
    report_ceiling_date: date = date(2900, 1, 1)

    # Rate limiting
    rate_limit_enabled: bool = True
    posting_rate_limit: str = "60/minute"
    general_rate_limit: str = "200/minute"

    @property
    def database_connection_url(self) -> str:
        """Build database URL from individual components or use direct URL"""
        if all([self.db_username, self.db_password, self.db_host, self.db_port, self.db_name]):
            return f"postgresql://{self.db_username}:{self.db_password}@{self.db_host}:{self.db_port}/{self.db_name}"
        elif self.database_url:
            return self.database_url
        else:
            return "sqlite:///./salonbooks.db"  # Fallback to SQLite

    class Config:
        env_file = ".env"


settings = Settings()
