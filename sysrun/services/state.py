"""Global state management for sysrun."""

from sysrun.config import Config
from sysrun.services.runner import Runner

# Global state (initialized on first access)
_config: Config | None = None
_runner: Runner | None = None


def get_config() -> Config:
    """Get or create config."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def get_runner() -> Runner:
    """Get or create the shared runner."""
    global _runner
    if _runner is None:
        _runner = Runner.from_config(get_config())
    return _runner


def reset_state() -> None:
    """Reset global state for testing.

    Clears the singleton instances so tests start with fresh state.
    """
    global _config, _runner
    _config = None
    _runner = None


def set_config(config: Config) -> None:
    """Set the global config instance.

    The shared runner is rebuilt from it on next access.
    """
    global _config, _runner
    _config = config
    _runner = None


def set_runner(runner: Runner) -> None:
    """Set the global runner instance."""
    global _runner
    _runner = runner
