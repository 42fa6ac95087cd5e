from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from yarl import URL


class Settings(BaseSettings):
    """Settings for the doctor portal."""

    API_BASE_URL: str = "http://localhost:5000/api/"
    API_TIMEOUT: int = Field(default=30, description="Request timeout in seconds")

    # Credentials used by the console entry point
    PORTAL_EMAIL: str | None = None
    PORTAL_PASSWORD: str | None = None

    DEFAULT_PAGE_SIZE: int = Field(
        default=10,
        description="Page size for patient and appointment lists",
    )

    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"

    @property
    def base_url(self) -> URL:
        """
        Base URL of the backend API, always ending with a slash.

        :return: base URL.
        """
        url = URL(self.API_BASE_URL)
        if not url.path.endswith("/"):
            url = url.with_path(f"{url.path}/")
        return url

    def api_url(self, path: str) -> URL:
        """
        Join an endpoint path onto the API base URL.

        :param path: endpoint path relative to the API root.
        :return: absolute URL.
        """
        return self.base_url.join(URL(path.lstrip("/")))

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


settings = Settings()
