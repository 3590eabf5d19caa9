from enum import Enum
from pathlib import Path

from pydantic_settings import BaseSettings

from domain.selection import DEFAULT_CONDITION, SelectionSettings


ROOT_DIR = Path(__file__).resolve().parent.parent


class Env(Enum):
    local = "local"
    dev = "dev"
    prod = "prod"


class Config(BaseSettings):
    env: Env = Env.local
    log_level: str = "INFO"
    assets_dir: Path = ROOT_DIR / "assets"
    html_dir: Path = ROOT_DIR / "assets" / "html"
    menu_path: Path | None = None
    session_secret: str = "green-fc-local-secret"
    openai_api_key: str | None = None
    core_model: str = "gpt-4o-mini"
    spin_ticks: int = 12
    spin_interval: float = 0.15
    settle_delay: float = 0.5
    error_recovery_delay: float = 2.0
    default_condition: str = DEFAULT_CONDITION
    fallback_on_error: bool = False

    def selection_settings(self) -> SelectionSettings:
        return SelectionSettings(
            spin_ticks=self.spin_ticks,
            spin_interval=self.spin_interval,
            settle_delay=self.settle_delay,
            error_recovery_delay=self.error_recovery_delay,
            default_condition=self.default_condition,
            fallback_on_error=self.fallback_on_error,
        )
