from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from commandkit.preferences import AmbientPreferences, LegalActions
from commandkit.scope import VariableScope
from pipeshell.framework.config import SessionConfig

InquireHandler = Callable[[str, Any], bool]


@dataclass
class SessionContext:
    session_id: str
    logger: logging.Logger
    scope: VariableScope = field(default_factory=VariableScope)
    ambient: AmbientPreferences = field(default_factory=AmbientPreferences)
    legal_actions: LegalActions = field(default_factory=LegalActions)
    inquire_handler: InquireHandler | None = None

    @classmethod
    def from_config(
        cls,
        cfg: SessionConfig,
        *,
        session_id: str,
        logger: logging.Logger,
        scope: VariableScope | None = None,
        inquire_handler: InquireHandler | None = None,
    ) -> "SessionContext":
        return cls(
            session_id=session_id,
            logger=logger,
            scope=scope or VariableScope(session_id),
            ambient=cfg.ambient,
            legal_actions=cfg.legal_actions,
            inquire_handler=inquire_handler,
        )

    def inquire(self, channel: str, record: Any) -> bool:
        if self.inquire_handler is None:
            self.logger.info("Inquire on %s (no handler, continuing): %s", channel, record)
            return True
        return bool(self.inquire_handler(channel, record))

    def with_child_scope(self, name: str) -> "SessionContext":
        """Context whose variables live in a child scope (script block, job)."""

        return SessionContext(
            session_id=self.session_id,
            logger=self.logger,
            scope=VariableScope(name, parent=self.scope),
            ambient=self.ambient,
            legal_actions=self.legal_actions,
            inquire_handler=self.inquire_handler,
        )
