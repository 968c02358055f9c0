"""Typed runtime settings with dotenv support and startup validation."""

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_VALID_LOG_LEVELS = frozenset({"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"})
_VALID_PROGRAM_MODES = frozenset({"server", "desktop"})


class SettingsLoadError(RuntimeError):
    """Raised when runtime settings cannot be loaded or validated."""


class AppSettings(BaseSettings):
    """Application settings for the render service runtime.

    Environment variable names map directly to field names in uppercase.
    Example: `interpreter_path` reads from `INTERPRETER_PATH`.

    Attributes:
        environment_name: Runtime environment label.
        application_host: Host interface for web server binding.
        application_port: Web server port.
        log_level: Root logging level name.
        interpreter_path: Rscript binary name or absolute path.
        interpreter_args: Arguments placed before the `-e` render expression.
        render_command_template: R expression template with `{filename}` and `{encoding}` fields.
        pandoc_path: Optional pandoc binary exported to renders as `RSTUDIO_PANDOC`.
        home_directory: Root used for `~` aliased paths; defaults to the user home.
        output_mount: URL segment under which rendered output is served.
        mathjax_directory: Optional local MathJax directory override.
        program_mode: `server` or `desktop` hosting mode.
        rmarkdown_required_version: Minimum rmarkdown package version.
        interpreter_query_timeout_seconds: Timeout for short interpreter queries.
        process_poll_interval_seconds: Interval between render continuation checks.
        process_read_chunk_bytes: Max bytes read from a render stream per callback.
        process_termination_grace_seconds: Delay between terminate and kill signals.
        publish_records_path: Optional JSON file with previous publish upload ids.
        event_queue_max_events: Retained outward event count.
        api_event_default_limit: Default events endpoint page size.
        api_event_max_limit: Maximum events endpoint page size.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    environment_name: str = Field(default="development")
    application_host: str = Field(default="127.0.0.1")
    application_port: int = Field(default=8787, ge=1, le=65535)
    log_level: str = Field(default="INFO")
    interpreter_path: str = Field(default="Rscript", min_length=1)
    interpreter_args: list[str] = Field(default_factory=lambda: ["--slave", "--no-save", "--no-restore"])
    render_command_template: str = Field(default="rmarkdown::render('{filename}', encoding='{encoding}');")
    pandoc_path: str | None = Field(default=None)
    home_directory: str | None = Field(default=None)
    output_mount: str = Field(default="rmd_output", min_length=1)
    mathjax_directory: str | None = Field(default=None)
    program_mode: str = Field(default="server")
    rmarkdown_required_version: str = Field(default="0.2", min_length=1)
    interpreter_query_timeout_seconds: float = Field(default=30.0, gt=0)
    process_poll_interval_seconds: float = Field(default=0.1, gt=0)
    process_read_chunk_bytes: int = Field(default=4096, ge=1)
    process_termination_grace_seconds: float = Field(default=5.0, ge=0)
    publish_records_path: str | None = Field(default=None)
    event_queue_max_events: int = Field(default=1000, ge=1)
    api_event_default_limit: int = Field(default=100, ge=1)
    api_event_max_limit: int = Field(default=500, ge=1)

    @field_validator("interpreter_path", "rmarkdown_required_version")
    @classmethod
    def _validate_non_empty_string(cls, value: str) -> str:
        stripped_value = value.strip()
        if not stripped_value:
            raise ValueError("value must not be blank")
        return stripped_value

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        normalized_value = value.strip().upper()
        if normalized_value not in _VALID_LOG_LEVELS:
            raise ValueError(f"log_level must be one of {sorted(_VALID_LOG_LEVELS)}")
        return normalized_value

    @field_validator("program_mode")
    @classmethod
    def _validate_program_mode(cls, value: str) -> str:
        normalized_value = value.strip().lower()
        if normalized_value not in _VALID_PROGRAM_MODES:
            raise ValueError(f"program_mode must be one of {sorted(_VALID_PROGRAM_MODES)}")
        return normalized_value

    @field_validator("output_mount")
    @classmethod
    def _validate_output_mount(cls, value: str) -> str:
        normalized_value = value.strip().strip("/")
        if not normalized_value or "/" in normalized_value:
            raise ValueError("output_mount must be a single non-blank path segment")
        return normalized_value

    @field_validator("render_command_template")
    @classmethod
    def _validate_render_command_template(cls, value: str) -> str:
        if "{filename}" not in value:
            raise ValueError("render_command_template must contain a {filename} field")
        try:
            value.format(filename="document.Rmd", encoding="UTF-8")
        except (KeyError, IndexError, ValueError) as error:
            raise ValueError(
                "render_command_template must only use {filename} and {encoding} fields; "
                f"write literal braces as {{{{ and }}}} ({error!r})"
            ) from error
        return value

    @field_validator("pandoc_path", "home_directory", "mathjax_directory", "publish_records_path")
    @classmethod
    def _validate_optional_path(cls, value: str | None) -> str | None:
        if value is None:
            return None
        stripped_value = value.strip()
        return stripped_value or None

    @field_validator("api_event_max_limit")
    @classmethod
    def _validate_limit_bounds(cls, value: int, info) -> int:
        default_limit = info.data.get("api_event_default_limit", 100)
        if value < default_limit:
            raise ValueError("api_event_max_limit must be greater than or equal to api_event_default_limit")
        return value


def config_load_settings() -> AppSettings:
    """Load and validate runtime settings from environment and dotenv.

    Returns:
        AppSettings: Validated runtime settings object.

    Raises:
        SettingsLoadError: Raised when required settings are missing or invalid.
    """

    try:
        return AppSettings()
    except ValidationError as error:
        raise SettingsLoadError(
            f"Startup configuration validation failed. Update .env or environment variables. Details: {error}"
        ) from error
