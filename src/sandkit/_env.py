"""Environment variable utilities."""

from __future__ import annotations


def load_dotenv(filepath: str = ".env") -> dict[str, str]:
    """Load environment variables from a .env file.

    Keys declared without a value are dropped.

    Raises:
        FileNotFoundError: If the .env file doesn't exist

    Example:
        env = {**load_dotenv(".env"), "OVERRIDE": "value"}
        options = CreateOptions(env=env, command=SandboxCommand(argv=["env"]))
    """
    from pathlib import Path

    from dotenv import dotenv_values

    if not Path(filepath).is_file():
        raise FileNotFoundError(filepath)

    return {key: value for key, value in dotenv_values(filepath).items() if value is not None}


def parse_env_pairs(pairs: list[str] | tuple[str, ...]) -> dict[str, str]:
    """Parse ``KEY=VALUE`` strings; the value may itself contain ``=``."""
    env: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not key or not sep:
            raise ValueError(f"Invalid environment variable {pair!r}, expected KEY=VALUE")
        env[key] = value
    return env
