from pydantic import Field
from pydantic_settings import BaseSettings


class BotSettings(BaseSettings):
    discord_token: str = Field(default="", description="Discord bot token")

    bot_prefix: str = Field(default="!", description="Command prefix")
    environment: str = Field(default="development", description="Environment")
    log_level: str = Field(default="INFO", description="Logging level")

    owner_ids: list[int] = Field(default=[], description="User ids allowed to run owner-only commands")
    block_bots: bool = Field(default=True, description="Ignore messages sent by bots")

    # Guards
    default_cooldown: float = Field(
        default=0, description="Cooldown in ms for commands that set none (0 disables it)"
    )

    # Argument prompts
    prompt_retries: int = Field(default=1, description="Replies allowed after the first failed one")
    prompt_time: float = Field(default=30000, description="Time in ms to wait for each reply")
    prompt_cancel_word: str = Field(default="cancel", description="Reply that cancels a prompt")
    prompt_stop_word: str = Field(default="stop", description="Reply that ends an infinite prompt")
    prompt_breakout: bool = Field(
        default=True, description="Let a reply that is itself a command abandon the prompt"
    )

    # Development settings
    debug: bool = Field(default=False, description="Enable debug mode")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"


# Global settings instance
settings = BotSettings()
