from .store import BLOCK_LIST_FILE, HISTORY_FILE, JsonStore

__all__ = ['BLOCK_LIST_FILE', 'HISTORY_FILE', 'JsonStore']
