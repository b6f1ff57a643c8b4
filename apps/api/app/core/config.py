from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_env: str = "dev"
    auth_mode: str = "none"  # none | forwardauth
    internal_admin_token: str = "change-me"
    root_path: str = ""
    log_level: str = "INFO"

    postgres_db: str = "family_tree"
    postgres_user: str = "family_tree_user"
    postgres_password: str = "family_tree_pass"
    postgres_host: str = "db"
    postgres_port: int = 5432

    # What the sub-family resolver does with auto-enrolled rows whose member
    # is no longer in the head's lineage: keep | deactivate
    subfamily_prune_policy: str = "keep"
    default_page_size: int = 10

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def database_url(self) -> str:
        return (
            f"postgresql+psycopg2://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )


settings = Settings()
