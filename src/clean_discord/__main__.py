"""Entry-point para execução do CleanDiscord (python -m clean_discord)."""

from clean_discord.cli import run

if __name__ == "__main__":
    run()
