"""
Keyed local state for the TokenStake SDK.

Holds the last seen user position under "currentUser" and the transaction
ledger under "transactions". Values are overwritten wholesale.
"""
import os
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import portalocker

logger = logging.getLogger(__name__)

CURRENT_USER_KEY = "currentUser"
TRANSACTIONS_KEY = "transactions"


class LocalStore:
    """Process-safe JSON file store"""

    def __init__(self, store_path: Optional[str] = None):
        """
        Initialize the store.

        Args:
            store_path: Optional custom path for the state file
        """
        # Use TOKENSTAKE_STATE_PATH env var or default to ~/.tokenstake/state.json
        if store_path:
            self.store_path = Path(store_path)
        else:
            default_path = os.environ.get(
                "TOKENSTAKE_STATE_PATH",
                os.path.expanduser("~/.tokenstake/state.json")
            )
            self.store_path = Path(default_path)

        self.store_path.parent.mkdir(parents=True, exist_ok=True)

    def _get_lock_path(self) -> str:
        return str(self.store_path) + '.lock'

    def read(self) -> Dict[str, Any]:
        """Read the whole store; empty if missing or unreadable"""
        with portalocker.Lock(self._get_lock_path(), timeout=10):
            try:
                with open(self.store_path, 'r') as f:
                    data = json.load(f)
            except FileNotFoundError:
                return {}
            except json.JSONDecodeError:
                logger.warning(f"Ignoring corrupt state file {self.store_path}")
                return {}
        return data if isinstance(data, dict) else {}

    def write(self, data: Dict[str, Any]) -> None:
        with portalocker.Lock(self._get_lock_path(), timeout=10):
            with open(self.store_path, 'w') as f:
                json.dump(data, f, indent=2)

    def get(self, key: str, default: Any = None) -> Any:
        return self.read().get(key, default)

    def set(self, key: str, value: Any) -> None:
        data = self.read()
        data[key] = value
        self.write(data)
