from __future__ import annotations

from mushroom_battle.application import app

__all__ = ["app"]
