"""
Runtime settings for the vault service
"""

import os
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional

from .tiers import TierSchedule


@dataclass
class VaultSettings:
    """Service settings, normally read from the environment"""

    host: str = "0.0.0.0"
    port: int = 10000
    log_level: str = "INFO"
    state_path: Optional[str] = None  # JSON snapshot of requests and cooldowns
    event_log_path: Optional[str] = None  # JSONL audit log
    admin: Optional[str] = None  # address holding the admin role at startup
    initial_balance: int = 0  # base units credited at startup
    cooldown_overrides: Dict[int, int] = field(default_factory=dict)  # tier id -> seconds

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'VaultSettings':
        """Read VAULT_* settings (and PORT) from the environment"""
        env = os.environ if environ is None else environ

        overrides = {}
        for tier in TierSchedule.default():
            value = env.get(f"VAULT_TIER{tier.tier_id}_COOLDOWN")
            if value is not None:
                seconds = int(value)
                if seconds < 0:
                    raise ValueError(f"VAULT_TIER{tier.tier_id}_COOLDOWN cannot be negative")
                overrides[tier.tier_id] = seconds

        return cls(
            host=env.get("VAULT_HOST", cls.host),
            port=int(env.get("PORT", cls.port)),
            log_level=env.get("VAULT_LOG_LEVEL", cls.log_level).upper(),
            state_path=env.get("VAULT_STATE_PATH") or None,
            event_log_path=env.get("VAULT_EVENT_LOG") or None,
            admin=env.get("VAULT_ADMIN") or None,
            initial_balance=int(env.get("VAULT_INITIAL_BALANCE", cls.initial_balance)),
            cooldown_overrides=overrides
        )

    def schedule(self) -> TierSchedule:
        """Default tier schedule with any cooldown overrides applied"""
        schedule = TierSchedule.default()
        if self.cooldown_overrides:
            schedule = schedule.with_cooldowns(self.cooldown_overrides)
        return schedule
