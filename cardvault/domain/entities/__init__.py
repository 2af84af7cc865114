from .account import Account
from .deck import Deck

__all__ = ["Account", "Deck"]
