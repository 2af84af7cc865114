from structlog import get_logger

from cardvault.domain.entities.deck import Deck
from cardvault.domain.interfaces.repositories import IDefaultResourceProvisioner
from cardvault.infrastructure.database.transaction import SQLAlchemyTransactionManager

logger = get_logger(__name__)

DEFAULT_DECK_NAME = "Default"


class DefaultDeckProvisioner(IDefaultResourceProvisioner):
    """Writes the default deck of a freshly registered account."""

    def __init__(self, transaction_manager: SQLAlchemyTransactionManager):
        self._transactions = transaction_manager

    async def create_default_resource(self, account_id: int) -> int:
        async with self._transactions.transaction() as session:
            deck = Deck(account_id=account_id, name=DEFAULT_DECK_NAME, is_default=True)
            session.add(deck)
            await session.flush()
            logger.debug("Default deck created", account_id=account_id, deck_id=deck.id)
            return deck.id
