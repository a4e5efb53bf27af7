"""
Application settings and configuration

Uses pydantic-settings for type-safe configuration via environment variables.
All settings use EXTRAMARK_ prefix (e.g., EXTRAMARK_HIGHLIGHT_CODE=false).

Settings can also be loaded from a .env file in the project root.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """
    Application configuration via environment variables.

    Environment variables use EXTRAMARK_ prefix.

    Examples:
        EXTRAMARK_ESCAPE_HTML=true
        EXTRAMARK_PYGMENTS_STYLE=monokai
        EXTRAMARK_OUTPUT_SUFFIX=.htm
    """

    model_config = SettingsConfigDict(
        env_prefix="EXTRAMARK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Parser configuration
    context_key: str = Field(
        default="extramark",
        description="Key under which the parse context is stored in the engine's per-parse env",
    )

    escape_html: bool = Field(
        default=False,
        description="Escape raw HTML that is not claimed by an extension; off passes it through and keeps entity references",
    )

    hard_wrap: bool = Field(
        default=False,
        description="Turn every newline inside a paragraph into <br />",
    )

    # Rendering configuration
    highlight_code: bool = Field(
        default=True,
        description="Highlight fenced code blocks with pygments",
    )

    pygments_style: str = Field(
        default="default",
        description="Pygments style used for inline-styled code highlighting",
    )

    # Output configuration
    output_suffix: str = Field(
        default=".html",
        description="File suffix for compiled documents",
    )

    debug_mode: bool = Field(
        default=False,
        description="Enable debug output during compilation",
    )

    def outputName_make(self, source_name: str) -> str:
        """
        Generate the output filename for a markdown source file.

        Args:
            source_name: Source filename (e.g., "notes.md")

        Returns:
            Output filename with the configured suffix

        Example:
            >>> settings = AppSettings()
            >>> settings.outputName_make('notes.md')
            'notes.html'
        """
        stem = source_name.rsplit('.', 1)[0] if '.' in source_name else source_name
        return f"{stem}{self.output_suffix}"


# Singleton instance - import this in your code
appsettings = AppSettings()
