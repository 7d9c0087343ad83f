from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from jobsift.models import DetailSource

load_dotenv()

# =============================================================================
# Main Application Config
# =============================================================================


class Config(BaseSettings):
    """Main application configuration."""

    model_config = SettingsConfigDict(
        env_prefix="JOBSIFT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # =============================================================================
    # Remote site
    # =============================================================================

    home_url: str = Field(
        default="https://de.indeed.com/",
        description="Root URL of the job site, with a trailing slash.",
    )
    security_check_string: str = Field(
        default="Checking if the site connection is secure",
        description="Text shown by the site while it checks the browser.",
    )
    detail_source: DetailSource = Field(
        default=DetailSource.API,
        description="Where job details come from: the viewjob endpoint or the results page.",
    )

    # =============================================================================
    # Browser and timing
    # =============================================================================

    headless: bool = Field(default=False, description="Run the browser headless.")
    navigation_timeout: int = Field(default=30000, description="Page load timeout (ms).")
    selector_timeout: int = Field(default=15000, description="Element wait timeout (ms).")
    modal_timeout: int = Field(default=100, description="Modal lookup timeout (ms).")
    pagination_probe_timeout: int = Field(
        default=3000,
        description="How long to look for the next page button before giving up (ms).",
    )
    startup_delay: float = Field(
        default=3.0, description="Seconds to wait on the home page before searching."
    )
    modal_check_interval: float = Field(
        default=1.0, description="Seconds between subscription modal checks."
    )
    security_check_interval: float = Field(
        default=5.0, description="Seconds between security check page checks."
    )
    min_delay: float = Field(default=0.5, description="Minimum pause between jobs (s).")
    max_delay: float = Field(default=2.0, description="Maximum pause between jobs (s).")

    # =============================================================================
    # Pagination retries
    # =============================================================================

    page_advance_tries: int = Field(
        default=10, ge=1, description="Clicks on a page button before reloading."
    )
    page_advance_interval: float = Field(
        default=1.0, description="Seconds between page button clicks."
    )
    page_advance_retries: int = Field(
        default=3, ge=0, description="Reloads allowed before pagination gives up."
    )
    page_advance_backoff: float = Field(
        default=2.0, description="Seconds to wait after a reload."
    )

    # =============================================================================
    # project directories configuration
    # =============================================================================

    output_dir: Path = Field(
        default=Path.cwd() / "output",
        description="Directory to store matched jobs.",
    )
    screenshot_dir: Path = Field(
        default=Path.cwd() / "output" / "screenshots",
        description="Directory to store browser screenshots.",
    )

    @model_validator(mode="after")
    def check_delay_band(self):
        if self.min_delay < 0 or self.min_delay > self.max_delay:
            raise ValueError(
                f"Invalid delay band: min_delay={self.min_delay}, max_delay={self.max_delay}"
            )
        return self


# Global config instance
cfg = Config()
