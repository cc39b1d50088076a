"""Discord bot configuration"""

import logging
from functools import lru_cache
from pathlib import Path

import discord
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

# === Path Configuration ===
PACKAGE_DIR = Path(__file__).parent
PROJECT_DIR = PACKAGE_DIR.parent
COGS_PACKAGE = f"{PACKAGE_DIR.name}.cogs"

BOT_NAME = "Kymera Bot"
COMMAND_PREFIX = "!"

# Client ids copied from .env templates; never poll with one of these.
PLACEHOLDER_CLIENT_IDS = {
    "",
    "changeme",
    "placeholder",
    "client_id",
    "your_client_id",
    "your_client_id_here",
    "your_twitch_client_id",
    # demo app id bundled with the first release of this bot
    "esxex3tcfso8mnbauccx47o5calegp",
}


class BotSettings(BaseSettings):
    """Discord bot settings"""

    model_config = SettingsConfigDict(
        env_file=PROJECT_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Discord
    discord_token: str = Field(..., description="Discord bot token")
    announcement_channel_id: int | None = Field(
        default=None, description="Channel receiving live announcements"
    )
    welcome_channel_id: int | None = Field(
        default=None, description="Channel receiving welcomes and the role message"
    )
    mod_log_channel_id: int | None = Field(
        default=None, description="Moderation audit log channel (falls back to welcome)"
    )

    # Twitch
    twitch_channel: str = Field(default="Kymera_Gaming", description="Monitored channel login")
    twitch_client_id: str = Field(default="", description="Twitch OAuth Client ID")
    twitch_client_secret: str = Field(default="", description="Twitch OAuth Client Secret")

    # Presence
    discord_status: str = Field(default="online", description="Bot status")
    discord_activity_name: str = Field(default="Warframe | !help", description="Playing ...")

    # Storage
    data_dir: Path = Field(default=PROJECT_DIR / "data", description="JSON state directory")

    # Health server
    health_server_enabled: bool = Field(default=False, description="Serve /health over HTTP")
    port: int = Field(default=8080, description="Health server port")

    # Environment
    log_level: str = Field(default="INFO", description="Logging level")

    @field_validator(
        "announcement_channel_id", "welcome_channel_id", "mod_log_channel_id", mode="before"
    )
    @classmethod
    def blank_id_is_unset(cls, v: object) -> object:
        """Treat KEY= (empty) in .env the same as a missing key"""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid"""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            logger.warning(f"Invalid log level '{v}', defaulting to INFO")
            return "INFO"
        return v_upper

    @property
    def audit_channel_id(self) -> int | None:
        return self.mod_log_channel_id or self.welcome_channel_id

    @property
    def twitch_enabled(self) -> bool:
        """Stream polling needs real client credentials, not a template value"""
        client_id = self.twitch_client_id.strip()
        if client_id.lower() in PLACEHOLDER_CLIENT_IDS or client_id.lower().startswith("your_"):
            return False
        return bool(self.twitch_client_secret.strip())

    @property
    def twitch_url(self) -> str:
        return f"https://twitch.tv/{self.twitch_channel}"

    def get_status(self) -> discord.Status:
        status_map = {
            "online": discord.Status.online,
            "idle": discord.Status.idle,
            "dnd": discord.Status.dnd,
            "invisible": discord.Status.invisible,
        }
        return status_map.get(self.discord_status.lower(), discord.Status.online)

    def get_activity(self) -> discord.Activity | None:
        if not self.discord_activity_name:
            return None
        return discord.Activity(type=discord.ActivityType.playing, name=self.discord_activity_name)


@lru_cache
def get_settings() -> BotSettings:
    """Get cached settings instance"""
    return BotSettings()  # type: ignore[call-arg]
