from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="APP_",
        extra="ignore",
        case_sensitive=False,
    )

    # Application
    debug: bool = False
    log_level: str = "INFO"
    root_path: str = ""
    trusted_hosts: list[str] = ["*"]

    # Session cookie
    session_secret_key: str = "change-me"
    session_cookie: str = "cadnotes_session"
    session_max_age: int = 14 * 24 * 60 * 60
    session_https_only: bool = False

    # Supabase
    supabase_url: str = "http://localhost:54321"
    supabase_anon_key: str = ""

    # Onshape OAuth
    onshape_client_id: str = ""
    onshape_client_secret: str = ""
    onshape_redirect_uri: str = "http://localhost:8000/oauthRedirect"
    onshape_scope: str = "OAuth2Read OAuth2Write"
    onshape_authorize_url: str = "https://oauth.onshape.com/oauth/authorize"
    onshape_token_url: str = "https://oauth.onshape.com/oauth/token"
    onshape_api_url: str = "https://cad.onshape.com/api"
    oauth_success_redirect: str = "/"

    # Refresh tokens this many seconds before they expire
    token_refresh_leeway: int = 60
    http_timeout: float = 30.0

    # Notes
    default_note_title: str = "Untitled Note"
    list_notes_limit: int = 100

    # Authentication security settings
    max_login_attempts: int = 5  # Maximum failed login attempts before rate limiting
    login_attempt_window: int = 300  # Time window for login attempts (5 minutes)
    enable_rate_limiting: bool = True  # Enable rate limiting for auth endpoints


settings = Settings()
