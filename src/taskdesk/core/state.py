# src/taskdesk/core/state.py

from __future__ import annotations

from dataclasses import dataclass

from .ports import TaskRepo


@dataclass
class AppState:
    # Settings are kept on the state so command handlers can read them.
    settings: object

    # The one store instance for this process; built by cli.bootstrap.
    task_store: TaskRepo
