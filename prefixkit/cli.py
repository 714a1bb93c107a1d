import logging
from pathlib import Path
from typing import List, Optional

import typer

from config.settings import settings

from .commands.content_parser import ContentParser, FlagToken, OptionFlagToken
from .core.bot import PrefixBot

app = typer.Typer(
    name="prefixkit",
    help="Text command framework for hikari bots",
    add_completion=False,
)


def setup_logging(level: str = "INFO") -> None:
    """Setup logging configuration."""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )


@app.command()
def run(
    prefix: Optional[str] = typer.Option(None, "--prefix", help="Command prefix"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Set log level"),
) -> None:
    """Run the bot."""
    setup_logging(log_level or settings.log_level)

    if not settings.discord_token:
        typer.echo("❌ DISCORD_TOKEN is not set", err=True)
        raise typer.Exit(code=1)

    bot = PrefixBot(prefix=prefix)
    bot.run()


@app.command()
def parse(
    text: str = typer.Argument(..., help="Content to tokenize"),
    flag: List[str] = typer.Option([], "--flag", "-f", help="Flag word (repeatable)"),
    option: List[str] = typer.Option([], "--option", "-o", help="Option-flag word (repeatable)"),
    separator: Optional[str] = typer.Option(None, "--separator", "-s", help="Split on this instead of whitespace"),
    no_quotes: bool = typer.Option(False, "--no-quotes", help="Treat quotes as plain characters"),
) -> None:
    """Show how content is split into phrases, flags and option flags."""
    parser = ContentParser(flag_words=flag, option_flag_words=option, quoted=not no_quotes, separator=separator)
    result = parser.parse(text)

    typer.echo(f"📝 Phrases ({len(result.phrases)}):")
    for index, phrase in enumerate(result.phrases):
        typer.echo(f"  {index}: {phrase.value!r}")

    for token in result.all:
        if isinstance(token, FlagToken):
            typer.echo(f"🚩 Flag: {token.key}")
        elif isinstance(token, OptionFlagToken):
            typer.echo(f"⚙️  Option: {token.key} = {token.value!r}")


@app.command()
def init(
    directory: Optional[str] = typer.Option(None, help="Directory to initialize")
) -> None:
    """Write a .env template for a new bot."""
    target_dir = Path(directory) if directory else Path.cwd()

    if not target_dir.exists():
        target_dir.mkdir(parents=True)

    env_file = target_dir / ".env"
    if env_file.exists():
        typer.echo(f"⚠️  {env_file} already exists, leaving it alone")
        return

    env_content = """# Discord Bot Configuration
DISCORD_TOKEN=your_discord_bot_token_here
BOT_PREFIX=!
ENVIRONMENT=development
LOG_LEVEL=INFO
OWNER_IDS=[]
DEFAULT_COOLDOWN=0
PROMPT_RETRIES=1
PROMPT_TIME=30000
PROMPT_CANCEL_WORD=cancel
PROMPT_STOP_WORD=stop
"""
    env_file.write_text(env_content)

    typer.echo(f"✅ Bot project initialized in {target_dir}")


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
